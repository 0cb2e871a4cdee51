"""
Settlement engine.

Settling a match declares the winning side and moves every stake exactly
once: winners are credited their own stake, losers are debited theirs. The
claim (UNDECIDED -> SETTLED), the balance deltas and the ledger entries all
run in a single storage transaction. If any step fails the transaction is
rolled back, the match is left UNDECIDED and the whole settlement can be
retried.

Team stake totals are not required to match, so a settlement can create or
destroy credits overall. ``SettlementResponse`` reports what moved.
"""

from typing import Union
from uuid import UUID

from .accounts import AccountStore
from .errors import ConflictError, LedgerServiceError
from .logging_config import get_logger
from .matches import MatchRecord, parse_team
from .models import EntryKind, LedgerEntry, SettlementResponse, Team
from .storage import StoragePort
from .transactions import TransactionLedger

logger = get_logger(__name__)


class SettlementEngine:
    def __init__(
        self,
        storage: StoragePort,
        accounts: AccountStore,
        ledger: TransactionLedger,
        matches: MatchRecord,
    ):
        self.storage = storage
        self.accounts = accounts
        self.ledger = ledger
        self.matches = matches

    def settle(self, match_id: UUID, winning_team: Union[Team, str]) -> SettlementResponse:
        team = parse_team(winning_team)

        try:
            with self.storage.transaction():
                match = self.matches.get(match_id)
                if match.is_settled():
                    raise ConflictError(f"Match {match.name} is already settled")

                settled = self.matches.mark_settled(match_id, team)
                entries: list[LedgerEntry] = []

                for player in settled.roster(team):
                    self.accounts.apply_delta(player.account_id, player.stake_amount)
                    entries.append(self.ledger.append(
                        player.account_id,
                        player.stake_amount,
                        EntryKind.WIN,
                        f"Victory: {settled.name}",
                        match_id=settled.id,
                    ))

                for player in settled.roster(team.opponent):
                    self.accounts.apply_delta(player.account_id, -player.stake_amount)
                    entries.append(self.ledger.append(
                        player.account_id,
                        -player.stake_amount,
                        EntryKind.LOSS,
                        f"Defeat: {settled.name}",
                        match_id=settled.id,
                    ))
        except LedgerServiceError as e:
            logger.warning(
                "settlement_rejected",
                match_id=str(match_id),
                winning_team=team.value,
                kind=e.kind,
                reason=e.message,
            )
            raise

        credited = sum(e.amount for e in entries if e.kind == EntryKind.WIN)
        debited = -sum(e.amount for e in entries if e.kind == EntryKind.LOSS)
        logger.info(
            "match_settled",
            match_id=str(settled.id),
            winning_team=team.value,
            credited=credited,
            debited=debited,
            net_change=credited - debited,
        )
        return SettlementResponse(
            match=settled,
            ledger_entries=entries,
            message=f"Team {team.value} declared winner of {settled.name}",
        )
