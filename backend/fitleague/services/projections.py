"""
Typed read models for the scoring pipeline.

Rows are turned into these right after loading so the pipeline never has to
guess at optional joins.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class TeamRow:
    team_id: UUID
    name: str


@dataclass(frozen=True)
class MemberRow:
    member_id: UUID
    user_id: UUID
    username: str
    team_id: UUID | None


@dataclass(frozen=True)
class EntryRow:
    id: UUID
    member_id: UUID
    date: date
    status: str
    rr_value: float | None
    created_at: datetime
    type: str = "workout"


@dataclass(frozen=True)
class ChallengeRow:
    id: UUID
    name: str
    challenge_type: str
    total_points: float
    status: str  # effective status
    start_date: date | None
    end_date: date | None


@dataclass(frozen=True)
class SubmissionRow:
    id: UUID
    challenge_id: UUID
    member_id: UUID
    status: str
    awarded_points: float | None
    created_at: datetime
    team_id: UUID | None = None
    sub_team_id: UUID | None = None


@dataclass(frozen=True)
class SubTeamRow:
    sub_team_id: UUID
    challenge_id: UUID
    team_id: UUID
    name: str


@dataclass(frozen=True)
class BonusRow:
    """A row of the team bonus table (legacy or manual source)."""
    team_id: UUID
    score: float
    source: str
    challenge_id: UUID | None = None
    scored_on: date | None = None


@dataclass(frozen=True)
class MatchRow:
    team1_id: UUID | None
    team2_id: UUID | None
    score1: int | None
    score2: int | None
    status: str


@dataclass
class RosterSnapshot:
    """Team membership as read once for the whole request."""
    teams: dict[UUID, TeamRow] = field(default_factory=dict)
    members: dict[UUID, MemberRow] = field(default_factory=dict)

    @classmethod
    def build(cls, teams: list[TeamRow], members: list[MemberRow]) -> "RosterSnapshot":
        return cls(
            teams={t.team_id: t for t in teams},
            members={m.member_id: m for m in members},
        )

    def team_of(self, member_id: UUID) -> UUID | None:
        m = self.members.get(member_id)
        return m.team_id if m else None

    def team_sizes(self) -> dict[UUID, int]:
        sizes = {tid: 0 for tid in self.teams}
        for m in self.members.values():
            if m.team_id in sizes:
                sizes[m.team_id] += 1
        return sizes

    def team_name(self, team_id: UUID | None) -> str | None:
        if team_id is None:
            return None
        t = self.teams.get(team_id)
        return t.name if t else None
