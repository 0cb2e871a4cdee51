from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict


class Team(str, Enum):
    A = "A"
    B = "B"

    @property
    def opponent(self) -> "Team":
        return Team.B if self is Team.A else Team.A


class MatchStatus(str, Enum):
    UNDECIDED = "UNDECIDED"
    SETTLED = "SETTLED"


class EntryKind(str, Enum):
    WIN = "WIN"
    LOSS = "LOSS"
    ADMIN_ADJUST = "ADMIN_ADJUST"


class OpenAccountRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Display label for the player")

    model_config = ConfigDict(json_schema_extra={
        "example": {"username": "maverick"}
    })


class RosterEntryIn(BaseModel):
    account_id: UUID
    username: str = ""
    stake_amount: int = Field(..., strict=True, description="Credits wagered on the match outcome")


class CreateMatchRequest(BaseModel):
    name: str
    team_a: list[RosterEntryIn] = Field(default_factory=list)
    team_b: list[RosterEntryIn] = Field(default_factory=list)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "Alpha vs Beta",
            "team_a": [{"account_id": "550e8400-e29b-41d4-a716-446655440000", "username": "p1", "stake_amount": 100}],
            "team_b": [{"account_id": "660e8400-e29b-41d4-a716-446655440001", "username": "p2", "stake_amount": 100}],
        }
    })


class SettleMatchRequest(BaseModel):
    winning_team: str = Field(..., description="Winning side designator, 'A' or 'B'")


class AdjustBalanceRequest(BaseModel):
    amount: int = Field(..., strict=True, description="Signed credit delta")
    description: str = ""


class Account(BaseModel):
    id: UUID
    username: str
    balance: int = 0
    paid_match_count: int = 0
    is_active: bool = True
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RosterEntry(BaseModel):
    account_id: UUID
    username: str = ""
    stake_amount: int
    paid: bool = False

    model_config = ConfigDict(from_attributes=True)


class Match(BaseModel):
    id: UUID
    name: str
    team_a: list[RosterEntry] = Field(default_factory=list)
    team_b: list[RosterEntry] = Field(default_factory=list)
    status: MatchStatus = MatchStatus.UNDECIDED
    winning_team: Optional[Team] = None
    created_at: datetime
    settled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def roster(self, team: Team) -> list[RosterEntry]:
        return self.team_a if team is Team.A else self.team_b

    def is_settled(self) -> bool:
        return self.status == MatchStatus.SETTLED


class LedgerEntry(BaseModel):
    id: UUID
    account_id: UUID
    amount: int
    kind: EntryKind
    description: str
    match_id: Optional[UUID] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class Notification(BaseModel):
    id: UUID
    account_id: UUID
    message: str
    timestamp: datetime
    is_read: bool = False

    model_config = ConfigDict(from_attributes=True)


class AccountAudit(BaseModel):
    account_id: UUID
    balance: int
    ledger_total: int
    total_entries: int
    consistent: bool


class SettlementResponse(BaseModel):
    match: Match
    ledger_entries: list[LedgerEntry]
    message: str


class PaymentResponse(BaseModel):
    match: Match
    account: Account
    counted: bool
    message: str


class AdjustmentResponse(BaseModel):
    account: Account
    ledger_entry: LedgerEntry
    message: str


class MarkReadResponse(BaseModel):
    account_id: UUID
    updated: int
