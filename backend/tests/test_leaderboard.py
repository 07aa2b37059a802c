from __future__ import annotations
import uuid
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from fitleague.models.challenge import LeagueChallenge
from fitleague.services.leaderboard import LeaguePool, build_challenge_leaderboard, build_league_leaderboard
from fitleague.services.loaders import challenge_row
from fitleague.services.projections import (
    BonusRow,
    ChallengeRow,
    EntryRow,
    MemberRow,
    RosterSnapshot,
    SubmissionRow,
    TeamRow,
)
from fitleague.services.visibility import VisibilityWindow

UTC = timezone.utc
TODAY = date(2024, 6, 10)
START = date(2024, 6, 1)
END = date(2024, 6, 30)
TEAM_A = uuid.uuid4()
TEAM_B = uuid.uuid4()


def _roster():
    members = [MemberRow(uuid.uuid4(), uuid.uuid4(), f"a{i}", TEAM_A) for i in range(4)]
    members += [MemberRow(uuid.uuid4(), uuid.uuid4(), "b0", TEAM_B)]
    return RosterSnapshot.build([TeamRow(TEAM_A, "Alpha"), TeamRow(TEAM_B, "Bravo")], members)


def _first(roster, team_id):
    return next(m.member_id for m in roster.members.values() if m.team_id == team_id)


def _entry(member_id, d, rr=1.0, status="approved", created_at=None):
    return EntryRow(uuid.uuid4(), member_id, d, status, rr, created_at or datetime(2024, 6, 1, tzinfo=UTC))


def _board(pool, status="active", tz=UTC, start=START, end=END):
    window = VisibilityWindow.for_league(TODAY, status, 2)
    return build_league_leaderboard(pool, window=window, tz=tz, start=start, end=end)


def _points(board, team_id):
    return next(t.points for t in board.teams if t.id == team_id)


def test_delay_window_scenario():
    """2024-06-08 is settled, 2024-06-09 only shows on the pending board"""
    roster = _roster()
    a = _first(roster, TEAM_A)
    pool = LeaguePool(roster=roster, entries=[_entry(a, date(2024, 6, 8)), _entry(a, date(2024, 6, 9), rr=2.0)])
    board = _board(pool)
    assert _points(board, TEAM_A) == 1
    assert board.pending_window.dates == [date(2024, 6, 10), date(2024, 6, 9)]
    alpha = next(t for t in board.pending_window.teams if t.team_id == TEAM_A)
    assert alpha.points_by_date == {"2024-06-10": 0, "2024-06-09": 1}
    assert alpha.total == 1 and alpha.avg_rr == 2.0
    assert alpha.rank == 1


def test_completed_league_counts_everything():
    roster = _roster()
    a = _first(roster, TEAM_A)
    pool = LeaguePool(roster=roster, entries=[_entry(a, date(2024, 6, 8)), _entry(a, date(2024, 6, 9))])
    board = _board(pool, status="completed")
    assert _points(board, TEAM_A) == 2
    assert board.pending_window.teams[0].total == 0
    assert board.pending_window.dates == []


def test_duplicate_entries_count_once_and_stats():
    roster = _roster()
    a = _first(roster, TEAM_A)
    d = date(2024, 6, 3)
    pool = LeaguePool(roster=roster, entries=[
        _entry(a, d, rr=1.2),
        _entry(a, d, rr=1.8),
        _entry(a, date(2024, 6, 4), status="pending"),
        _entry(a, date(2024, 6, 5), status="rejected"),
        _entry(a, date(2024, 5, 20)),  # before the range
    ])
    board = _board(pool)
    assert _points(board, TEAM_A) == 1
    top = board.individuals[0]
    assert top.id == a and top.avg_rr == 1.8
    assert board.stats.approved == 1
    assert board.stats.pending == 1
    assert board.stats.rejected == 1
    assert board.stats.total_submissions == 3
    assert board.stats.total_rr == 1.8


def _challenge(status="published", kind="individual", end=date(2024, 6, 5)):
    return ChallengeRow(uuid.uuid4(), "Plank", kind, 100.0, status, date(2024, 6, 1), end)


def _sub(ch, member_id, pts, created_at=datetime(2024, 6, 3, tzinfo=UTC)):
    return SubmissionRow(uuid.uuid4(), ch.id, member_id, "approved", pts, created_at)


def test_only_released_challenges_reach_the_board():
    roster = _roster()
    a = _first(roster, TEAM_A)
    published = _challenge()
    still_open = _challenge(status="submission_closed")
    out_of_range = _challenge(end=date(2024, 7, 15))
    pool = LeaguePool(
        roster=roster,
        challenges=[published, still_open, out_of_range],
        submissions=[_sub(published, a, 100), _sub(still_open, a, 100), _sub(out_of_range, a, 100)],
    )
    board = _board(pool)
    assert _points(board, TEAM_A) == 25
    assert [t.points for t in board.challenge_teams] == [25]
    # challenge points never reach individual standings
    assert all(p.points == 0 for p in board.individuals)
    assert board.challenge_individuals[0].id == a and board.challenge_individuals[0].points == 100


def test_challenge_submission_split_uses_requester_zone():
    roster = _roster()
    a = _first(roster, TEAM_A)
    ch = _challenge()
    # 02:00Z on the 9th is still the 8th in Los Angeles
    pool = LeaguePool(roster=roster, challenges=[ch], submissions=[_sub(ch, a, 100, datetime(2024, 6, 9, 2, 0, tzinfo=UTC))])
    assert _points(_board(pool, tz=UTC), TEAM_A) == 0
    assert _points(_board(pool, tz=ZoneInfo("America/Los_Angeles")), TEAM_A) == 25


def test_legacy_bonus_filtered_by_date_and_computed_rows_ignored():
    roster = _roster()
    pool = LeaguePool(roster=roster, bonus=[
        BonusRow(team_id=TEAM_B, score=7, source="legacy", scored_on=date(2024, 6, 2)),
        BonusRow(team_id=TEAM_B, score=50, source="legacy", scored_on=date(2024, 5, 2)),
        BonusRow(team_id=TEAM_B, score=99, source="computed", challenge_id=uuid.uuid4(), scored_on=date(2024, 6, 2)),
    ])
    board = _board(pool)
    assert _points(board, TEAM_B) == 7
    assert board.teams[0].id == TEAM_B


def test_every_team_and_member_listed():
    roster = _roster()
    board = _board(LeaguePool(roster=roster))
    assert len(board.teams) == 2
    assert len(board.individuals) == 5
    assert board.sub_teams == [] and board.challenge_teams == []
    assert board.date_range.start_date == START


def test_skipped_records_reported():
    roster = _roster()
    a = _first(roster, TEAM_A)
    ch = _challenge()
    pool = LeaguePool(roster=roster, challenges=[ch], submissions=[_sub(ch, a, 0)])
    board = _board(pool)
    assert board.stats.skipped_records == 1
    assert board.stats.skipped_by_reason == {"non_positive_points": 1}


def test_challenge_leaderboard_for_team_challenge():
    roster = _roster()
    ch = _challenge(status="submission_closed", kind="team")
    a1, a2 = [m.member_id for m in roster.members.values() if m.team_id == TEAM_A][:2]
    b = _first(roster, TEAM_B)
    pool = LeaguePool(roster=roster, challenges=[ch], submissions=[
        _sub(ch, a1, 40),
        _sub(ch, b, 60),
        _sub(ch, a2, 70, created_at=datetime(2024, 6, 10, tzinfo=UTC)),  # still pending
    ])
    board = build_challenge_leaderboard(ch, pool, window=VisibilityWindow(TODAY, 2), tz=UTC)
    assert board.status == "submission_closed"
    assert [(t.id, t.points, t.rank) for t in board.teams] == [(TEAM_B, 60, 1), (TEAM_A, 25, 2)]


def test_unknown_challenge_status_is_skipped_not_fatal():
    roster = _roster()
    a = _first(roster, TEAM_A)
    good = _challenge()
    paused = _challenge(status="paused")
    pool = LeaguePool(
        roster=roster,
        entries=[_entry(a, date(2024, 6, 4))],
        challenges=[paused, good],
        submissions=[_sub(paused, a, 100), _sub(good, a, 40)],
    )
    board = _board(pool)
    assert _points(board, TEAM_A) == 1 + 25
    assert board.stats.skipped_by_reason == {"unknown_status": 1}
    assert board.stats.skipped_records == 1

    one = build_challenge_leaderboard(paused, pool, window=VisibilityWindow(TODAY, 2), tz=UTC)
    assert one.status == "paused"
    assert one.teams == [] and one.individuals == []
    assert one.skipped_records == 1


def test_loader_passes_unknown_status_through():
    stored = LeagueChallenge(
        id=uuid.uuid4(), league_id=uuid.uuid4(), name="Plank", challenge_type="individual",
        total_points=100, status="paused", start_date=date(2024, 6, 1), end_date=date(2024, 6, 5),
    )
    assert challenge_row(stored, TODAY).status == "paused"
    stored.status = "active"
    assert challenge_row(stored, TODAY).status == "submission_closed"
