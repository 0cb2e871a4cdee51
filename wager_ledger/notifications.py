import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from uuid import UUID, uuid4

from .models import Notification


class NotificationSink(ABC):
    """One-way message sink for players. Delivery is best effort."""

    @abstractmethod
    def notify(self, account_id: UUID, message: str) -> None: ...

    @abstractmethod
    def list_for_account(self, account_id: UUID) -> list[Notification]: ...

    @abstractmethod
    def mark_all_read(self, account_id: UUID) -> int: ...


class InMemoryNotificationSink(NotificationSink):
    def __init__(self):
        self._lock = threading.Lock()
        self.notifications: list[dict] = []

    def notify(self, account_id: UUID, message: str) -> None:
        with self._lock:
            self.notifications.append({
                "id": uuid4(),
                "account_id": account_id,
                "message": message,
                "timestamp": datetime.now(timezone.utc),
                "is_read": False,
            })

    def list_for_account(self, account_id: UUID) -> list[Notification]:
        with self._lock:
            rows = [dict(n) for n in reversed(self.notifications) if n["account_id"] == account_id]
        rows.sort(key=lambda n: n["timestamp"], reverse=True)
        return [Notification(**n) for n in rows]

    def mark_all_read(self, account_id: UUID) -> int:
        updated = 0
        with self._lock:
            for n in self.notifications:
                if n["account_id"] == account_id and not n["is_read"]:
                    n["is_read"] = True
                    updated += 1
        return updated
