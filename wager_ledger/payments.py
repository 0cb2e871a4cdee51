from uuid import UUID

from .accounts import AccountStore
from .logging_config import get_logger
from .matches import MatchRecord
from .models import PaymentResponse
from .storage import StoragePort

logger = get_logger(__name__)


class PaymentTracker:
    """Marks roster entries paid and keeps each player's lifetime payment count."""

    def __init__(self, storage: StoragePort, accounts: AccountStore, matches: MatchRecord):
        self.storage = storage
        self.accounts = accounts
        self.matches = matches

    def record_payment(self, match_id: UUID, account_id: UUID) -> PaymentResponse:
        # Mark and count under one transaction so two concurrent calls cannot
        # both observe the entry as unpaid.
        with self.storage.transaction():
            match, already_paid = self.matches.mark_paid(match_id, account_id)
            if already_paid:
                account = self.accounts.get(account_id)
            else:
                account = self.accounts.increment_paid_count(account_id)

        logger.info(
            "payment_recorded",
            match_id=str(match_id),
            account_id=str(account_id),
            counted=not already_paid,
        )
        return PaymentResponse(
            match=match,
            account=account,
            counted=not already_paid,
            message="Player already marked paid" if already_paid else "Payment recorded",
        )
