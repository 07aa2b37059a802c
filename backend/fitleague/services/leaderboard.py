"""
League and per-challenge leaderboards.

The pipeline is pure: dedupe -> visibility split -> aggregate by challenge
type -> rank. Everything it needs (including "today" and the requester's
zone) is passed in; ``fitleague.services.loaders`` builds the inputs.
"""
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, tzinfo
from uuid import UUID

import structlog

from fitleague.services.challenge_points import ChallengePoints, aggregate_challenge_points
from fitleague.services.dedupe import dedupe_entries, dedupe_submissions
from fitleague.services.projections import (
    BonusRow,
    ChallengeRow,
    EntryRow,
    MatchRow,
    RosterSnapshot,
    SubmissionRow,
    SubTeamRow,
)
from fitleague.services.rankings import (
    Standing,
    Tally,
    challenge_individual_standings,
    challenge_team_standings,
    individual_standings,
    shared_zero_rank,
    sub_team_standings,
    team_standings,
)
from fitleague.services.status import SCORING_STATUSES, UnknownStatus, normalize_status
from fitleague.services.time_windows import local_date
from fitleague.services.visibility import VisibilityWindow

log = structlog.get_logger()


@dataclass
class LeaguePool:
    """Everything read for one league, already projected."""
    roster: RosterSnapshot
    entries: list[EntryRow] = field(default_factory=list)
    challenges: list[ChallengeRow] = field(default_factory=list)
    submissions: list[SubmissionRow] = field(default_factory=list)
    sub_teams: dict[UUID, SubTeamRow] = field(default_factory=dict)
    bonus: list[BonusRow] = field(default_factory=list)  # legacy + manual rows
    matches: dict[UUID, list[MatchRow]] = field(default_factory=dict)


@dataclass(frozen=True)
class PendingTeam:
    team_id: UUID
    name: str
    points_by_date: dict[str, int]
    total: int
    avg_rr: float
    rank: int = 0


@dataclass(frozen=True)
class PendingWindow:
    dates: list[date]
    teams: list[PendingTeam]


@dataclass(frozen=True)
class LeaderboardStats:
    total_submissions: int
    approved: int
    pending: int
    rejected: int
    total_rr: float
    skipped_records: int
    skipped_by_reason: dict[str, int]


@dataclass(frozen=True)
class DateRange:
    start_date: date | None
    end_date: date | None


@dataclass(frozen=True)
class Leaderboard:
    teams: list[Standing]
    individuals: list[Standing]
    sub_teams: list[Standing]
    challenge_teams: list[Standing]
    challenge_individuals: list[Standing]
    pending_window: PendingWindow
    stats: LeaderboardStats
    date_range: DateRange


@dataclass(frozen=True)
class ChallengeLeaderboard:
    challenge_id: UUID
    challenge_type: str
    status: str
    teams: list[Standing]
    sub_teams: list[Standing]
    individuals: list[Standing]
    skipped_records: int


def _in_range(d: date | None, start: date | None, end: date | None) -> bool:
    if d is None:
        return True
    if start is not None and d < start:
        return False
    if end is not None and d > end:
        return False
    return True


def counts_toward_league(ch: ChallengeRow, start: date | None, end: date | None) -> bool:
    """Released (published/closed) and ending inside the requested range."""
    return normalize_status(ch.status) in SCORING_STATUSES and _in_range(ch.end_date, start, end)


def _released_challenges(
    challenges: list[ChallengeRow], start: date | None, end: date | None
) -> tuple[list[ChallengeRow], Counter]:
    """Challenges that count toward the league; one with an unrecognised status is skipped and counted."""
    released, skipped = [], Counter()
    for ch in challenges:
        try:
            if counts_toward_league(ch, start, end):
                released.append(ch)
        except UnknownStatus:
            skipped["unknown_status"] += 1
            log.warning("challenge_points_skipped", reason="unknown_status", challenge_id=str(ch.id), status=ch.status)
    return released, skipped


def _legacy_bonus(rows: list[BonusRow], start: date | None, end: date | None) -> dict[UUID, float]:
    out: dict[UUID, float] = {}
    for b in rows:
        if b.source != "legacy" or not _in_range(b.scored_on, start, end):
            continue
        out[b.team_id] = out.get(b.team_id, 0.0) + float(b.score)
    return out


def _pending_board(roster: RosterSnapshot, pending: list[EntryRow], window: VisibilityWindow) -> PendingWindow:
    dates = window.pending_dates
    by_team: dict[UUID, dict[date, int]] = {}
    tallies: dict[UUID, Tally] = {}
    for e in pending:
        team_id = roster.team_of(e.member_id)
        if team_id is None:
            continue
        per_day = by_team.setdefault(team_id, {})
        per_day[e.date] = per_day.get(e.date, 0) + 1
        tallies.setdefault(team_id, Tally()).add(e)

    rows = []
    for team_id, team in roster.teams.items():
        per_day = by_team.get(team_id, {})
        t = tallies.get(team_id, Tally())
        rows.append(PendingTeam(
            team_id=team_id,
            name=team.name,
            points_by_date={d.isoformat(): per_day.get(d, 0) for d in dates},
            total=t.points,
            avg_rr=t.avg_rr,
        ))
    rows.sort(key=lambda r: (-r.total, -r.avg_rr, str(r.team_id)))
    zero_rank = shared_zero_rank(r.total for r in rows)
    ranked = [
        PendingTeam(r.team_id, r.name, r.points_by_date, r.total, r.avg_rr, rank=i if r.total > 0 else zero_rank)
        for i, r in enumerate(rows, start=1)
    ]
    return PendingWindow(dates=dates, teams=ranked)


def settled_submissions(
    submissions: list[SubmissionRow],
    window: VisibilityWindow,
    tz: tzinfo,
) -> tuple[list[SubmissionRow], list[SubmissionRow]]:
    """Approved, deduplicated submissions split by the requester's local date of creation."""
    approved = dedupe_submissions(s for s in submissions if s.status == "approved")
    return window.split(approved, lambda s: local_date(s.created_at, tz))


def build_league_leaderboard(
    pool: LeaguePool,
    *,
    window: VisibilityWindow,
    tz: tzinfo,
    start: date | None,
    end: date | None,
) -> Leaderboard:
    roster = pool.roster

    in_range = [e for e in pool.entries if _in_range(e.date, start, end)]
    status_counts = Counter(e.status for e in in_range)
    approved = dedupe_entries(e for e in in_range if e.status == "approved")
    settled, pending = window.split(approved, lambda e: e.date)

    eligible, skipped = _released_challenges(pool.challenges, start, end)
    eligible_ids = {c.id for c in eligible}
    subs = [s for s in pool.submissions if s.challenge_id in eligible_ids]
    settled_subs, _ = settled_submissions(subs, window, tz)

    points: ChallengePoints = aggregate_challenge_points(
        eligible,
        settled_subs,
        roster,
        sub_teams=pool.sub_teams,
        manual_scores=[b for b in pool.bonus if b.source == "manual" and b.challenge_id in eligible_ids],
        matches=pool.matches,
    )

    bonus = _legacy_bonus(pool.bonus, start, end)
    for team_id, pts in points.team.items():
        bonus[team_id] = bonus.get(team_id, 0.0) + pts

    skipped.update(points.skipped)
    if skipped:
        log.info("leaderboard_skipped_records", skipped=dict(skipped))

    stats = LeaderboardStats(
        total_submissions=len(approved) + status_counts.get("pending", 0) + status_counts.get("rejected", 0),
        approved=len(approved),
        pending=status_counts.get("pending", 0),
        rejected=status_counts.get("rejected", 0),
        total_rr=round(sum(float(e.rr_value or 0) for e in settled), 2),
        skipped_records=sum(skipped.values()),
        skipped_by_reason=dict(skipped),
    )

    return Leaderboard(
        teams=team_standings(roster, settled, bonus, logged=in_range),
        individuals=individual_standings(roster, settled, logged=in_range),
        sub_teams=sub_team_standings(points.sub_team, pool.sub_teams, roster),
        challenge_teams=challenge_team_standings(points.team, roster),
        challenge_individuals=challenge_individual_standings(points.member, roster),
        pending_window=_pending_board(roster, pending, window),
        stats=stats,
        date_range=DateRange(start_date=start, end_date=end),
    )


def build_challenge_leaderboard(
    challenge: ChallengeRow,
    pool: LeaguePool,
    *,
    window: VisibilityWindow,
    tz: tzinfo,
) -> ChallengeLeaderboard:
    """Type-specific ranking for one challenge, settled submissions only."""
    try:
        status = normalize_status(challenge.status).value
    except UnknownStatus:
        log.warning("challenge_points_skipped", reason="unknown_status", challenge_id=str(challenge.id), status=challenge.status)
        return ChallengeLeaderboard(
            challenge_id=challenge.id,
            challenge_type=challenge.challenge_type,
            status=str(challenge.status),
            teams=[],
            sub_teams=[],
            individuals=[],
            skipped_records=1,
        )

    subs =[s for s in pool.submissions if s.challenge_id == challenge.id]
    settled_subs, _ = settled_submissions(subs, window, tz)
    points = aggregate_challenge_points(
        [challenge],
        settled_subs,
        pool.roster,
        sub_teams=pool.sub_teams,
        manual_scores=[b for b in pool.bonus if b.source == "manual" and b.challenge_id == challenge.id],
        matches=pool.matches,
    )
    return ChallengeLeaderboard(
        challenge_id=challenge.id,
        challenge_type=challenge.challenge_type,
        status=status,
        teams=challenge_team_standings(points.team, pool.roster),
        sub_teams=sub_team_standings(points.sub_team, pool.sub_teams, pool.roster),
        individuals=challenge_individual_standings(points.member, pool.roster),
        skipped_records=sum(points.skipped.values()),
    )
