from datetime import datetime, timezone
from uuid import UUID, uuid4

from .errors import NotFoundError
from .models import Account
from .storage import StoragePort


class AccountStore:
    """Player balances and lifetime payment counters."""

    def __init__(self, storage: StoragePort):
        self.storage = storage

    def open(self, username: str) -> Account:
        row = {
            "id": uuid4(),
            "username": username,
            "balance": 0,
            "paid_match_count": 0,
            "is_active": True,
            "created_at": datetime.now(timezone.utc),
        }
        return Account(**self.storage.insert_account(row))

    def get(self, account_id: UUID) -> Account:
        row = self.storage.get_account_row(account_id)
        if row is None:
            raise NotFoundError(f"Account {account_id} not found")
        return Account(**row)

    def list(self) -> list[Account]:
        rows = [r for r in self.storage.list_account_rows() if r["is_active"]]
        rows.sort(key=lambda r: r["created_at"])
        return [Account(**r) for r in rows]

    def apply_delta(self, account_id: UUID, amount: int) -> Account:
        # Negative balances are allowed; there is no overdraft check.
        row = self.storage.increment_account(account_id, "balance", amount)
        if row is None:
            raise NotFoundError(f"Account {account_id} not found")
        return Account(**row)

    def increment_paid_count(self, account_id: UUID) -> Account:
        row = self.storage.increment_account(account_id, "paid_match_count", 1)
        if row is None:
            raise NotFoundError(f"Account {account_id} not found")
        return Account(**row)

    def deactivate(self, account_id: UUID) -> Account:
        row = self.storage.set_account_field(account_id, "is_active", False)
        if row is None:
            raise NotFoundError(f"Account {account_id} not found")
        return Account(**row)
