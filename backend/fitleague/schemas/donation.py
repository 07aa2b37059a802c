from __future__ import annotations
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from fitleague.schemas.common import ApiModel


class DonationCreate(ApiModel):
    receiver_member_id: UUID
    days_transferred: int = Field(ge=1, le=30)
    notes: str | None = Field(default=None, max_length=500)
    proof_url: str | None = None


class DonationAction(ApiModel):
    action: Literal["approve", "reject"]
    proof_url: str | None = None


class DonationOut(ApiModel):
    id: UUID
    league_id: UUID
    donor_member_id: UUID
    receiver_member_id: UUID
    days_transferred: int
    status: str
    notes: str | None = None
    proof_url: str | None = None
    captain_approved_by: UUID | None = None
    captain_approved_at: datetime | None = None
    final_approved_by: UUID | None = None
    final_approved_at: datetime | None = None
    rejected_by: UUID | None = None
    created_at: datetime


class RestDayBalanceOut(ApiModel):
    member_id: UUID
    allowed: int
    used: int
    adjustments: int
    remaining: int
