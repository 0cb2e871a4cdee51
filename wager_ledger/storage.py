"""
Storage port for the wagering ledger.

The core components talk to a ``StoragePort`` only. Rows are plain dicts
shaped like the pydantic models in ``wager_ledger.models``; callers always
receive copies, never the stored objects.
"""

import copy
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional
from uuid import UUID

from .errors import StorageUnavailableError
from .logging_config import get_logger

logger = get_logger(__name__)


class StoragePort(ABC):
    """Persistence operations needed by the account store, ledger and match record."""

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @property
    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def transaction(self):
        """Context manager grouping several operations into one atomic unit."""

    # Accounts
    @abstractmethod
    def insert_account(self, row: dict) -> dict: ...

    @abstractmethod
    def get_account_row(self, account_id: UUID) -> Optional[dict]: ...

    @abstractmethod
    def list_account_rows(self) -> list[dict]: ...

    @abstractmethod
    def increment_account(self, account_id: UUID, field: str, amount: int) -> Optional[dict]:
        """Atomically add ``amount`` to a numeric field. Returns None if the account is missing."""

    @abstractmethod
    def set_account_field(self, account_id: UUID, field: str, value) -> Optional[dict]: ...

    # Ledger
    @abstractmethod
    def append_entry(self, row: dict) -> dict: ...

    @abstractmethod
    def list_entry_rows(self, account_id: Optional[UUID] = None) -> list[dict]:
        """Entries in append order, optionally filtered by account."""

    # Matches
    @abstractmethod
    def insert_match(self, row: dict) -> dict: ...

    @abstractmethod
    def get_match_row(self, match_id: UUID) -> Optional[dict]: ...

    @abstractmethod
    def list_match_rows(self) -> list[dict]: ...

    @abstractmethod
    def replace_match(self, row: dict) -> dict: ...

    @abstractmethod
    def replace_match_if_status(self, row: dict, expected_status: str) -> bool:
        """Compare-and-set: store ``row`` only if the stored status equals ``expected_status``."""


class InMemoryStorage(StoragePort):
    """
    Process-local storage guarded by a single re-entrant lock.

    Every operation holds the lock for its duration, so a reader never sees a
    half-applied write. ``transaction()`` keeps the lock for the whole block and
    records the prior value of each row the block writes; if the block raises,
    only those rows are restored and its ledger appends are dropped.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._open = False
        self._depth = 0
        self._undo: Optional[dict[tuple[str, UUID], Optional[dict]]] = None
        self.accounts: dict[UUID, dict] = {}
        self.matches: dict[UUID, dict] = {}
        self.entries: list[dict] = []

    def open(self) -> None:
        with self._lock:
            self._open = True
        logger.info("storage_opened", backend="memory")

    def close(self) -> None:
        with self._lock:
            self._open = False
        logger.info("storage_closed", backend="memory")

    @property
    def is_open(self) -> bool:
        return self._open

    def _ensure_open(self):
        if not self._open:
            raise StorageUnavailableError("Ledger storage is not available")

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStorage"]:
        with self._lock:
            self._ensure_open()
            outermost = self._depth == 0
            if outermost:
                self._undo = {}
                entry_count = len(self.entries)
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    discarded = len(self.entries) - entry_count
                    restored = self._rollback()
                    del self.entries[entry_count:]
                    logger.warning(
                        "storage_transaction_rolled_back",
                        restored_rows=restored,
                        discarded_entries=discarded,
                    )
                raise
            finally:
                self._depth -= 1
                if outermost:
                    self._undo = None

    def _remember(self, table: str, key: UUID):
        """Save a row's value before its first write inside the open transaction."""
        if self._undo is None or (table, key) in self._undo:
            return
        row = getattr(self, table).get(key)
        self._undo[(table, key)] = copy.deepcopy(row) if row is not None else None

    def _rollback(self) -> int:
        for (table, key), prior in self._undo.items():
            rows = getattr(self, table)
            if prior is None:
                rows.pop(key, None)
            else:
                rows[key] = prior
        return len(self._undo)

    def insert_account(self, row: dict) -> dict:
        with self._lock:
            self._ensure_open()
            self._remember("accounts", row["id"])
            self.accounts[row["id"]] = copy.deepcopy(row)
            return copy.deepcopy(row)

    def get_account_row(self, account_id: UUID) -> Optional[dict]:
        with self._lock:
            self._ensure_open()
            row = self.accounts.get(account_id)
            return copy.deepcopy(row) if row is not None else None

    def list_account_rows(self) -> list[dict]:
        with self._lock:
            self._ensure_open()
            return [copy.deepcopy(row) for row in self.accounts.values()]

    def increment_account(self, account_id: UUID, field: str, amount: int) -> Optional[dict]:
        with self._lock:
            self._ensure_open()
            row = self.accounts.get(account_id)
            if row is None:
                return None
            self._remember("accounts", account_id)
            row[field] = row[field] + amount
            return copy.deepcopy(row)

    def set_account_field(self, account_id: UUID, field: str, value) -> Optional[dict]:
        with self._lock:
            self._ensure_open()
            row = self.accounts.get(account_id)
            if row is None:
                return None
            self._remember("accounts", account_id)
            row[field] = value
            return copy.deepcopy(row)

    def append_entry(self, row: dict) -> dict:
        with self._lock:
            self._ensure_open()
            self.entries.append(copy.deepcopy(row))
            return copy.deepcopy(row)

    def list_entry_rows(self, account_id: Optional[UUID] = None) -> list[dict]:
        with self._lock:
            self._ensure_open()
            return [
                copy.deepcopy(e) for e in self.entries
                if account_id is None or e["account_id"] == account_id
            ]

    def insert_match(self, row: dict) -> dict:
        with self._lock:
            self._ensure_open()
            self._remember("matches", row["id"])
            self.matches[row["id"]] = copy.deepcopy(row)
            return copy.deepcopy(row)

    def get_match_row(self, match_id: UUID) -> Optional[dict]:
        with self._lock:
            self._ensure_open()
            row = self.matches.get(match_id)
            return copy.deepcopy(row) if row is not None else None

    def list_match_rows(self) -> list[dict]:
        with self._lock:
            self._ensure_open()
            return [copy.deepcopy(row) for row in self.matches.values()]

    def replace_match(self, row: dict) -> dict:
        with self._lock:
            self._ensure_open()
            self._remember("matches", row["id"])
            self.matches[row["id"]] = copy.deepcopy(row)
            return copy.deepcopy(row)

    def replace_match_if_status(self, row: dict, expected_status: str) -> bool:
        with self._lock:
            self._ensure_open()
            current = self.matches.get(row["id"])
            if current is None or current["status"] != expected_status:
                return False
            self._remember("matches", row["id"])
            self.matches[row["id"]] = copy.deepcopy(row)
            return True
