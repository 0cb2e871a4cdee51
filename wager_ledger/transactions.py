from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from .models import EntryKind, LedgerEntry
from .storage import StoragePort


class TransactionLedger:
    """Append-only audit trail of balance-affecting events. Entries are never updated or deleted."""

    def __init__(self, storage: StoragePort):
        self.storage = storage

    def append(
        self,
        account_id: UUID,
        amount: int,
        kind: EntryKind,
        description: str,
        match_id: Optional[UUID] = None,
    ) -> LedgerEntry:
        row = {
            "id": uuid4(),
            "account_id": account_id,
            "amount": amount,
            "kind": kind,
            "description": description,
            "match_id": match_id,
            "timestamp": datetime.now(timezone.utc),
        }
        return LedgerEntry(**self.storage.append_entry(row))

    def list_all(self) -> list[LedgerEntry]:
        return self._newest_first(self.storage.list_entry_rows())

    def list_by_account(self, account_id: UUID) -> list[LedgerEntry]:
        return self._newest_first(self.storage.list_entry_rows(account_id))

    def sum_for_account(self, account_id: UUID) -> tuple[int, int]:
        rows = self.storage.list_entry_rows(account_id)
        return sum(r["amount"] for r in rows), len(rows)

    @staticmethod
    def _newest_first(rows: list[dict]) -> list[LedgerEntry]:
        # Rows arrive in append order; reversing first keeps the later append
        # ahead of an earlier one when timestamps tie.
        rows = list(reversed(rows))
        rows.sort(key=lambda r: r["timestamp"], reverse=True)
        return [LedgerEntry(**r) for r in rows]
