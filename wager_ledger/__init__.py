"""
Wagering Ledger for Staked Team Matches

This module provides:
- Player accounts with signed credit balances and payment counters
- An append-only transaction log that always sums to each balance
- Two-team matches with per-player stakes and paid flags
- Exactly-once settlement: winners credited, losers debited, atomically
- Idempotent payment marking
"""

from .errors import (
    LedgerServiceError,
    NotFoundError,
    ConflictError,
    InvalidArgumentError,
    StorageUnavailableError,
)
from .models import (
    Team,
    MatchStatus,
    EntryKind,
    Account,
    RosterEntry,
    Match,
    LedgerEntry,
    Notification,
)
from .storage import StoragePort, InMemoryStorage
from .service import LedgerService

__all__ = [
    "LedgerServiceError",
    "NotFoundError",
    "ConflictError",
    "InvalidArgumentError",
    "StorageUnavailableError",
    "Team",
    "MatchStatus",
    "EntryKind",
    "Account",
    "RosterEntry",
    "Match",
    "LedgerEntry",
    "Notification",
    "StoragePort",
    "InMemoryStorage",
    "LedgerService",
]
