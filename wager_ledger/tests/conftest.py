"""Shared fixtures for ledger tests."""

import pytest

from wager_ledger.models import CreateMatchRequest, RosterEntryIn
from wager_ledger.service import LedgerService


@pytest.fixture
def service() -> LedgerService:
    return LedgerService()


@pytest.fixture
def match_factory(service):
    """Create a match from ``[(account, stake), ...]`` rosters."""

    def _create(name, team_a, team_b, svc=None):
        svc = svc or service
        return svc.create_match(CreateMatchRequest(
            name=name,
            team_a=[RosterEntryIn(account_id=a.id, username=a.username, stake_amount=s) for a, s in team_a],
            team_b=[RosterEntryIn(account_id=a.id, username=a.username, stake_amount=s) for a, s in team_b],
        ))

    return _create
