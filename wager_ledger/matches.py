from datetime import datetime, timezone
from typing import Union
from uuid import UUID, uuid4

from .errors import ConflictError, InvalidArgumentError, NotFoundError
from .models import Match, MatchStatus, RosterEntryIn, Team
from .storage import StoragePort


def parse_team(value: Union[Team, str]) -> Team:
    try:
        return Team(value)
    except ValueError:
        raise InvalidArgumentError(f"Winning team must be 'A' or 'B', got {value!r}")


class MatchRecord:
    """Two-team matches, their rosters and settlement status."""

    def __init__(self, storage: StoragePort):
        self.storage = storage

    def create(self, name: str, team_a: list[RosterEntryIn], team_b: list[RosterEntryIn]) -> Match:
        # Team stake totals are not compared; unequal sides are accepted as given.
        for entry in [*team_a, *team_b]:
            if entry.stake_amount <= 0:
                raise InvalidArgumentError(
                    f"Stake for {entry.username or entry.account_id} must be positive"
                )

        row = {
            "id": uuid4(),
            "name": name,
            "team_a": [self._roster_row(e) for e in team_a],
            "team_b": [self._roster_row(e) for e in team_b],
            "status": MatchStatus.UNDECIDED,
            "winning_team": None,
            "created_at": datetime.now(timezone.utc),
            "settled_at": None,
        }
        return Match(**self.storage.insert_match(row))

    def get(self, match_id: UUID) -> Match:
        row = self.storage.get_match_row(match_id)
        if row is None:
            raise NotFoundError(f"Match {match_id} not found")
        return Match(**row)

    def list(self) -> list[Match]:
        rows = list(reversed(self.storage.list_match_rows()))
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return [Match(**r) for r in rows]

    def mark_settled(self, match_id: UUID, winning_team: Union[Team, str]) -> Match:
        """
        Move a match from UNDECIDED to SETTLED.

        The status check and the write happen as one compare-and-set in the
        storage, so of several concurrent callers exactly one succeeds.
        """
        team = parse_team(winning_team)
        row = self.storage.get_match_row(match_id)
        if row is None or row["status"] == MatchStatus.SETTLED:
            raise ConflictError(f"Match {match_id} is not open for settlement")

        row["status"] = MatchStatus.SETTLED
        row["winning_team"] = team
        row["settled_at"] = datetime.now(timezone.utc)
        if not self.storage.replace_match_if_status(row, MatchStatus.UNDECIDED):
            raise ConflictError(f"Match {match_id} is already settled")
        return Match(**row)

    def mark_paid(self, match_id: UUID, account_id: UUID) -> tuple[Match, bool]:
        """
        Flag every roster entry of ``account_id`` as paid.

        Returns the match and whether the player was already fully paid before
        this call. Re-marking is a no-op.
        """
        with self.storage.transaction():
            row = self.storage.get_match_row(match_id)
            if row is None:
                raise NotFoundError(f"Match {match_id} not found")

            entries = [
                e for e in [*row["team_a"], *row["team_b"]]
                if e["account_id"] == account_id
            ]
            if not entries:
                raise NotFoundError(f"Player {account_id} not found in match {match_id}")

            already_paid = all(e["paid"] for e in entries)
            if not already_paid:
                for e in entries:
                    e["paid"] = True
                self.storage.replace_match(row)
            return Match(**row), already_paid

    @staticmethod
    def _roster_row(entry: RosterEntryIn) -> dict:
        return {
            "account_id": entry.account_id,
            "username": entry.username,
            "stake_amount": entry.stake_amount,
            "paid": False,
        }
