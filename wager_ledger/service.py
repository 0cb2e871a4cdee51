from typing import Optional, Union
from uuid import UUID

from .accounts import AccountStore
from .logging_config import get_logger
from .matches import MatchRecord
from .models import (
    Account,
    AccountAudit,
    AdjustmentResponse,
    CreateMatchRequest,
    EntryKind,
    LedgerEntry,
    Match,
    Notification,
    PaymentResponse,
    SettlementResponse,
    Team,
)
from .notifications import InMemoryNotificationSink, NotificationSink
from .payments import PaymentTracker
from .settlement import SettlementEngine
from .storage import InMemoryStorage, StoragePort
from .transactions import TransactionLedger

logger = get_logger(__name__)


def format_adjustment_message(amount: int, description: str) -> str:
    sign = "+" if amount >= 0 else ""
    return f"System Adjustment: {sign}{amount} credits ({description})"


class LedgerService:
    """Entry point for every ledger operation exposed to the routing layer."""

    def __init__(
        self,
        storage: Optional[StoragePort] = None,
        notifications: Optional[NotificationSink] = None,
    ):
        if storage is None:
            storage = InMemoryStorage()
            storage.open()
        self.storage = storage
        self.notifications = notifications or InMemoryNotificationSink()

        self.accounts = AccountStore(self.storage)
        self.ledger = TransactionLedger(self.storage)
        self.matches = MatchRecord(self.storage)
        self.settlement = SettlementEngine(self.storage, self.accounts, self.ledger, self.matches)
        self.payments = PaymentTracker(self.storage, self.accounts, self.matches)

    def open(self) -> None:
        if not self.storage.is_open:
            self.storage.open()

    def close(self) -> None:
        if self.storage.is_open:
            self.storage.close()

    # Accounts

    def open_account(self, username: str) -> Account:
        account = self.accounts.open(username)
        logger.info("account_opened", account_id=str(account.id), username=username)
        return account

    def get_account(self, account_id: UUID) -> Account:
        return self.accounts.get(account_id)

    def list_accounts(self) -> list[Account]:
        return self.accounts.list()

    def deactivate_account(self, account_id: UUID) -> Account:
        account = self.accounts.deactivate(account_id)
        logger.info("account_deactivated", account_id=str(account_id))
        return account

    def adjust(self, account_id: UUID, amount: int, description: str) -> AdjustmentResponse:
        with self.storage.transaction():
            account = self.accounts.apply_delta(account_id, amount)
            entry = self.ledger.append(account_id, amount, EntryKind.ADMIN_ADJUST, description)

        logger.info(
            "balance_adjusted",
            account_id=str(account_id),
            amount=amount,
            balance=account.balance,
        )
        self._notify(account_id, format_adjustment_message(amount, description))
        return AdjustmentResponse(
            account=account,
            ledger_entry=entry,
            message="Balance adjusted",
        )

    def audit_account(self, account_id: UUID) -> AccountAudit:
        with self.storage.transaction():
            account = self.accounts.get(account_id)
            total, count = self.ledger.sum_for_account(account_id)
        return AccountAudit(
            account_id=account_id,
            balance=account.balance,
            ledger_total=total,
            total_entries=count,
            consistent=account.balance == total,
        )

    # Matches

    def create_match(self, request: CreateMatchRequest) -> Match:
        match = self.matches.create(request.name, request.team_a, request.team_b)
        logger.info(
            "match_created",
            match_id=str(match.id),
            name=match.name,
            team_a=len(match.team_a),
            team_b=len(match.team_b),
        )
        return match

    def get_match(self, match_id: UUID) -> Match:
        return self.matches.get(match_id)

    def list_matches(self) -> list[Match]:
        return self.matches.list()

    def settle_match(self, match_id: UUID, winning_team: Union[Team, str]) -> SettlementResponse:
        return self.settlement.settle(match_id, winning_team)

    def pay_player(self, match_id: UUID, account_id: UUID) -> PaymentResponse:
        return self.payments.record_payment(match_id, account_id)

    # Ledger queries

    def list_all_transactions(self) -> list[LedgerEntry]:
        return self.ledger.list_all()

    def list_transactions_for_account(self, account_id: UUID) -> list[LedgerEntry]:
        return self.ledger.list_by_account(account_id)

    # Notifications

    def list_notifications(self, account_id: UUID) -> list[Notification]:
        return self.notifications.list_for_account(account_id)

    def mark_notifications_read(self, account_id: UUID) -> int:
        return self.notifications.mark_all_read(account_id)

    def _notify(self, account_id: UUID, message: str) -> None:
        try:
            self.notifications.notify(account_id, message)
        except Exception:
            logger.warning("notification_failed", account_id=str(account_id), exc_info=True)
