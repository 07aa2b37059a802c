"""
Folding approved challenge submissions into team / sub-team / member buckets.

Fan-out per challenge type:
  - team        => the submission's team (or the submitter's team), capped
  - sub_team    => the sub-team bucket uncapped, plus the submitter's team, capped
  - individual  => the submitter's team, capped; also kept per member for the
                   challenge-only board, never for individual standings
  - tournament  => manual team scores if any, else 3/1/0 match points

"Capped" means one contribution never exceeds total_points / team_size.
"""
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID

import structlog

from fitleague.services.projections import (
    BonusRow,
    ChallengeRow,
    MatchRow,
    RosterSnapshot,
    SubmissionRow,
    SubTeamRow,
)

log = structlog.get_logger()

WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0


@dataclass
class ChallengePoints:
    team: dict[UUID, float] = field(default_factory=dict)
    sub_team: dict[UUID, float] = field(default_factory=dict)
    member: dict[UUID, float] = field(default_factory=dict)
    skipped: Counter = field(default_factory=Counter)

    def _add(self, bucket: dict[UUID, float], key: UUID, amount: float) -> None:
        bucket[key] = round(bucket.get(key, 0.0) + amount, 2)

    def skip(self, reason: str, **ctx) -> None:
        self.skipped[reason] += 1
        log.warning("challenge_points_skipped", reason=reason, **{k: str(v) for k, v in ctx.items()})


def internal_cap(total_points: float, team_size: int) -> float:
    """Most a single contribution may add to a team bucket."""
    if team_size <= 0 or total_points <= 0:
        return 0.0
    return round(total_points / team_size, 2)


def tournament_standings(manual: Iterable[BonusRow], matches: Iterable[MatchRow]) -> dict[UUID, float]:
    """Manual team scores win outright; otherwise score completed matches 3/1/0."""
    manual = list(manual)
    if manual:
        totals: dict[UUID, float] = {}
        for row in manual:
            totals[row.team_id] = totals.get(row.team_id, 0.0) + float(row.score)
        return totals

    totals = {}
    for m in matches:
        if m.status != "completed" or m.team1_id is None or m.team2_id is None:
            continue
        if m.score1 is None or m.score2 is None:
            continue
        totals.setdefault(m.team1_id, 0.0)
        totals.setdefault(m.team2_id, 0.0)
        if m.score1 > m.score2:
            totals[m.team1_id] += WIN_POINTS
            totals[m.team2_id] += LOSS_POINTS
        elif m.score2 > m.score1:
            totals[m.team2_id] += WIN_POINTS
            totals[m.team1_id] += LOSS_POINTS
        else:
            totals[m.team1_id] += DRAW_POINTS
            totals[m.team2_id] += DRAW_POINTS
    return totals


def _capped_team_contribution(
    out: ChallengePoints,
    ch: ChallengeRow,
    team_id: UUID,
    points: float,
    team_sizes: dict[UUID, int],
    record_id: UUID,
) -> None:
    size = team_sizes.get(team_id, 0)
    if size <= 0:
        out.skip("empty_team", challenge_id=ch.id, record_id=record_id, team_id=team_id)
        return
    out._add(out.team, team_id, min(points, internal_cap(ch.total_points, size)))


def aggregate_challenge_points(
    challenges: Iterable[ChallengeRow],
    submissions: Iterable[SubmissionRow],
    roster: RosterSnapshot,
    sub_teams: dict[UUID, SubTeamRow] | None = None,
    manual_scores: Iterable[BonusRow] = (),
    matches: dict[UUID, list[MatchRow]] | None = None,
) -> ChallengePoints:
    """
    Expects submissions already deduplicated and restricted to the settled
    window. A bad row is skipped and counted; it never aborts the fold.
    """
    sub_teams = sub_teams or {}
    matches = matches or {}
    by_id = {c.id: c for c in challenges}
    team_sizes = roster.team_sizes()

    manual_by_challenge: dict[UUID, list[BonusRow]] = {}
    for row in manual_scores:
        if row.challenge_id is not None:
            manual_by_challenge.setdefault(row.challenge_id, []).append(row)

    out = ChallengePoints()

    # team challenges: a host-assigned score replaces that team's submissions
    manual_teams: set[tuple[UUID, UUID]] = set()
    for ch in by_id.values():
        if ch.challenge_type != "team":
            continue
        for row in manual_by_challenge.get(ch.id, []):
            manual_teams.add((ch.id, row.team_id))
            if row.score <= 0:
                out.skip("non_positive_points", challenge_id=ch.id, team_id=row.team_id)
                continue
            _capped_team_contribution(out, ch, row.team_id, float(row.score), team_sizes, row.team_id)

    for s in submissions:
        ch = by_id.get(s.challenge_id)
        if ch is None or s.status != "approved":
            continue
        points = float(s.awarded_points or 0)
        if points <= 0:
            out.skip("non_positive_points", challenge_id=ch.id, record_id=s.id)
            continue

        member_team = roster.team_of(s.member_id)

        if ch.challenge_type == "team":
            team_id = s.team_id or member_team
            if team_id is None:
                out.skip("missing_team", challenge_id=ch.id, record_id=s.id)
                continue
            if (ch.id, team_id) in manual_teams:
                continue
            _capped_team_contribution(out, ch, team_id, points, team_sizes, s.id)

        elif ch.challenge_type == "sub_team":
            st = sub_teams.get(s.sub_team_id) if s.sub_team_id else None
            if st is None:
                out.skip("missing_sub_team", challenge_id=ch.id, record_id=s.id)
            else:
                out._add(out.sub_team, st.sub_team_id, points)
            if member_team is None:
                out.skip("missing_team", challenge_id=ch.id, record_id=s.id)
                continue
            _capped_team_contribution(out, ch, member_team, points, team_sizes, s.id)

        elif ch.challenge_type == "individual":
            out._add(out.member, s.member_id, points)
            if member_team is None:
                out.skip("missing_team", challenge_id=ch.id, record_id=s.id)
                continue
            _capped_team_contribution(out, ch, member_team, points, team_sizes, s.id)

    for ch in by_id.values():
        if ch.challenge_type != "tournament":
            continue
        standings = tournament_standings(manual_by_challenge.get(ch.id, []), matches.get(ch.id, []))
        for team_id, pts in standings.items():
            if pts < 0:
                out.skip("non_positive_points", challenge_id=ch.id, team_id=team_id)
                continue
            if pts == 0:  # a loss, nothing to add
                continue
            out._add(out.team, team_id, pts)

    return out
