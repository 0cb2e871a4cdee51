"""
Unit Tests for the Ledger Components

Tests cover:
1. Account store deltas and payment counters
2. Transaction log ordering
3. Match creation and settlement status transitions
4. Payment marking idempotency
"""

import pytest
from uuid import UUID

from pydantic import ValidationError

from wager_ledger.errors import ConflictError, InvalidArgumentError, NotFoundError
from wager_ledger.models import (
    AdjustBalanceRequest,
    EntryKind,
    MatchStatus,
    RosterEntryIn,
    Team,
)
from wager_ledger.service import LedgerService


# Test constants
MISSING_ID = UUID("00000000-0000-0000-0000-000000000000")


class TestAccountStore:
    """Tests for balance deltas and counters."""

    def test_open_account_starts_empty(self):
        """Test a new account has zero balance and zero payments."""
        service = LedgerService()

        account = service.open_account("maverick")

        assert account.balance == 0
        assert account.paid_match_count == 0
        assert account.is_active is True

    def test_apply_delta_accumulates(self):
        """Test positive and negative deltas add up."""
        service = LedgerService()
        account = service.open_account("goose")

        service.accounts.apply_delta(account.id, 250)
        updated = service.accounts.apply_delta(account.id, -100)

        assert updated.balance == 150
        assert service.get_account(account.id).balance == 150

    def test_balance_may_go_negative(self):
        """Test there is no overdraft protection."""
        service = LedgerService()
        account = service.open_account("iceman")

        updated = service.accounts.apply_delta(account.id, -500)

        assert updated.balance == -500

    def test_apply_delta_missing_account(self):
        """Test deltas against an unknown account fail."""
        service = LedgerService()

        with pytest.raises(NotFoundError):
            service.accounts.apply_delta(MISSING_ID, 10)

    def test_increment_paid_count(self):
        service = LedgerService()
        account = service.open_account("viper")

        service.accounts.increment_paid_count(account.id)
        updated = service.accounts.increment_paid_count(account.id)

        assert updated.paid_match_count == 2

        with pytest.raises(NotFoundError):
            service.accounts.increment_paid_count(MISSING_ID)

    def test_deactivated_accounts_hidden_from_listing(self):
        """Test soft-deactivated accounts keep their balance but are not listed."""
        service = LedgerService()
        keep = service.open_account("jester")
        gone = service.open_account("cougar")
        service.accounts.apply_delta(gone.id, 40)

        service.deactivate_account(gone.id)

        listed = [a.id for a in service.list_accounts()]
        assert listed == [keep.id]
        assert service.get_account(gone.id).balance == 40
        assert service.get_account(gone.id).is_active is False


class TestTransactionLedger:
    """Tests for the append-only transaction log."""

    def test_append_and_list_newest_first(self):
        service = LedgerService()
        account = service.open_account("hollywood")

        first = service.ledger.append(account.id, 10, EntryKind.ADMIN_ADJUST, "first")
        second = service.ledger.append(account.id, -5, EntryKind.ADMIN_ADJUST, "second")

        entries = service.list_transactions_for_account(account.id)
        assert [e.id for e in entries] == [second.id, first.id]
        assert entries[0].timestamp >= entries[1].timestamp

    def test_list_by_account_filters(self):
        """Test per-account listing only returns that account's entries."""
        service = LedgerService()
        a = service.open_account("wolfman")
        b = service.open_account("slider")

        service.ledger.append(a.id, 10, EntryKind.ADMIN_ADJUST, "a")
        service.ledger.append(b.id, 20, EntryKind.ADMIN_ADJUST, "b")
        service.ledger.append(a.id, 30, EntryKind.ADMIN_ADJUST, "a again")

        assert len(service.list_all_transactions()) == 3
        assert {e.account_id for e in service.list_transactions_for_account(a.id)} == {a.id}
        assert service.ledger.sum_for_account(a.id) == (40, 2)

    def test_unknown_account_has_no_entries(self):
        service = LedgerService()

        assert service.list_transactions_for_account(MISSING_ID) == []


class TestMatchRecord:
    """Tests for match creation and status transitions."""

    def test_create_match_undecided(self, service, match_factory):
        """Test a created match stores rosters as given."""
        p1 = service.open_account("p1")
        p2 = service.open_account("p2")

        match = match_factory("Alpha vs Beta", [(p1, 100)], [(p2, 100)])

        assert match.status == MatchStatus.UNDECIDED
        assert match.winning_team is None
        assert match.team_a[0].account_id == p1.id
        assert match.team_a[0].stake_amount == 100
        assert match.team_a[0].paid is False
        assert match.team_b[0].username == "p2"

    def test_unequal_team_stakes_accepted(self, service, match_factory):
        """Test rosters with different stake totals are not rejected."""
        p1 = service.open_account("p1")
        p2 = service.open_account("p2")

        match = match_factory("Lopsided", [(p1, 500)], [(p2, 20)])

        assert sum(e.stake_amount for e in match.team_a) != sum(e.stake_amount for e in match.team_b)

    def test_non_positive_stake_rejected(self, service, match_factory):
        p1 = service.open_account("p1")
        p2 = service.open_account("p2")

        with pytest.raises(InvalidArgumentError):
            match_factory("Zero", [(p1, 0)], [(p2, 100)])
        with pytest.raises(InvalidArgumentError):
            match_factory("Negative", [(p1, 100)], [(p2, -5)])

        assert service.list_matches() == []

    def test_boolean_stake_rejected(self):
        """Test a JSON true is not coerced into a stake of 1."""
        with pytest.raises(ValidationError):
            RosterEntryIn(account_id=MISSING_ID, username="p1", stake_amount=True)
        with pytest.raises(ValidationError):
            AdjustBalanceRequest(amount=False, description="bonus")

        assert RosterEntryIn(account_id=MISSING_ID, stake_amount=5).stake_amount == 5

    def test_list_matches_newest_first(self, service, match_factory):
        p1 = service.open_account("p1")

        older = match_factory("Older", [(p1, 10)], [])
        newer = match_factory("Newer", [(p1, 10)], [])

        assert [m.id for m in service.list_matches()] == [newer.id, older.id]

    def test_get_missing_match(self):
        service = LedgerService()

        with pytest.raises(NotFoundError):
            service.get_match(MISSING_ID)

    def test_mark_settled_once(self, service, match_factory):
        """Test the status transition only happens from UNDECIDED."""
        p1 = service.open_account("p1")
        match = match_factory("Once", [(p1, 10)], [])

        settled = service.matches.mark_settled(match.id, "B")
        assert settled.status == MatchStatus.SETTLED
        assert settled.winning_team == Team.B

        with pytest.raises(ConflictError):
            service.matches.mark_settled(match.id, "A")

    def test_mark_settled_rejects_bad_designator(self, service, match_factory):
        p1 = service.open_account("p1")
        match = match_factory("Bad side", [(p1, 10)], [])

        with pytest.raises(InvalidArgumentError):
            service.matches.mark_settled(match.id, "C")
        assert service.get_match(match.id).status == MatchStatus.UNDECIDED

    def test_mark_settled_missing_match_conflicts(self):
        service = LedgerService()

        with pytest.raises(ConflictError):
            service.matches.mark_settled(MISSING_ID, "A")


class TestPaymentTracker:
    """Tests for payment marking."""

    def test_pay_player_marks_entry_and_counts(self, service, match_factory):
        p1 = service.open_account("p1")
        p2 = service.open_account("p2")
        match = match_factory("Paid", [(p1, 100)], [(p2, 100)])

        response = service.pay_player(match.id, p2.id)

        assert response.counted is True
        assert response.match.team_b[0].paid is True
        assert response.match.team_a[0].paid is False
        assert response.account.paid_match_count == 1

    def test_pay_player_twice_counts_once(self, service, match_factory):
        """Test re-marking a paid entry does not increment the counter again."""
        p1 = service.open_account("p1")
        match = match_factory("Twice", [(p1, 100)], [])

        service.pay_player(match.id, p1.id)
        second = service.pay_player(match.id, p1.id)

        assert second.counted is False
        assert "already" in second.message.lower()
        assert service.get_account(p1.id).paid_match_count == 1

    def test_pay_player_not_in_match(self, service, match_factory):
        p1 = service.open_account("p1")
        outsider = service.open_account("outsider")
        match = match_factory("Closed roster", [(p1, 100)], [])

        with pytest.raises(NotFoundError):
            service.pay_player(match.id, outsider.id)
        with pytest.raises(NotFoundError):
            service.pay_player(MISSING_ID, p1.id)

        assert service.get_account(outsider.id).paid_match_count == 0

    def test_player_on_both_teams_marked_everywhere(self, service, match_factory):
        p1 = service.open_account("p1")
        match = match_factory("Hedge", [(p1, 10)], [(p1, 20)])

        response = service.pay_player(match.id, p1.id)

        assert response.match.team_a[0].paid is True
        assert response.match.team_b[0].paid is True
        assert response.account.paid_match_count == 1

    def test_payment_after_settlement(self, service, match_factory):
        """Test paid flags can still change on a settled match."""
        p1 = service.open_account("p1")
        p2 = service.open_account("p2")
        match = match_factory("Late payer", [(p1, 100)], [(p2, 100)])
        service.settle_match(match.id, "A")

        response = service.pay_player(match.id, p2.id)

        assert response.match.status == MatchStatus.SETTLED
        assert response.match.winning_team == Team.A
        assert response.match.team_b[0].paid is True
        assert response.match.team_b[0].stake_amount == 100


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
