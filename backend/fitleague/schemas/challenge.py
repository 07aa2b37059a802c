from __future__ import annotations
from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from fitleague.schemas.common import ApiModel

ChallengeType = Literal["individual", "team", "sub_team", "tournament"]
ReviewDecision = Literal["approved", "rejected"]


class SubmissionStats(ApiModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class SubmissionOut(ApiModel):
    id: UUID
    challenge_id: UUID
    league_member_id: UUID
    team_id: UUID | None = None
    sub_team_id: UUID | None = None
    proof_url: str | None = None
    status: str
    awarded_points: float | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    created_at: datetime


class ChallengeOut(ApiModel):
    id: UUID
    league_id: UUID
    name: str
    description: str | None = None
    challenge_type: ChallengeType
    total_points: float
    status: str  # effective
    stored_status: str
    start_date: date | None = None
    end_date: date | None = None
    stats: SubmissionStats | None = None  # host/governor only
    my_submission: SubmissionOut | None = None


class ReviewIn(ApiModel):
    status: ReviewDecision
    awarded_points: float | None = None


class TeamScoreItem(ApiModel):
    team_id: UUID
    score: float = Field(ge=0)


class TeamScoresIn(ApiModel):
    scores: list[TeamScoreItem] = Field(min_length=1)


class TeamScoreOut(ApiModel):
    team_id: UUID
    source: str
    score: float
    scored_on: date | None = None
    updated_at: datetime | None = None
