from __future__ import annotations
from datetime import date
from uuid import UUID

from fitleague.schemas.common import ApiModel


class StandingOut(ApiModel):
    rank: int
    id: UUID
    name: str
    points: float
    avg_rr: float = 0.0
    team_id: UUID | None = None
    team_name: str | None = None
    activity_points: int = 0
    challenge_points: float = 0.0
    member_count: int = 0
    submission_count: int = 0


class PendingTeamOut(ApiModel):
    rank: int
    team_id: UUID
    name: str
    points_by_date: dict[str, int]
    total: int
    avg_rr: float


class PendingWindowOut(ApiModel):
    dates: list[date]
    teams: list[PendingTeamOut]


class StatsOut(ApiModel):
    total_submissions: int
    approved: int
    pending: int
    rejected: int
    total_rr: float
    skipped_records: int
    skipped_by_reason: dict[str, int] = {}


class DateRangeOut(ApiModel):
    start_date: date | None = None
    end_date: date | None = None


class LeaderboardOut(ApiModel):
    teams: list[StandingOut]
    individuals: list[StandingOut]
    sub_teams: list[StandingOut]
    challenge_teams: list[StandingOut]
    challenge_individuals: list[StandingOut]
    pending_window: PendingWindowOut
    stats: StatsOut
    date_range: DateRangeOut
    league_status: str | None = None


class ChallengeLeaderboardOut(ApiModel):
    challenge_id: UUID
    challenge_type: str
    status: str
    teams: list[StandingOut]
    sub_teams: list[StandingOut]
    individuals: list[StandingOut]
    skipped_records: int = 0
