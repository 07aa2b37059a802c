from __future__ import annotations
import uuid
from datetime import date, datetime, timedelta, timezone

from fitleague.services.dedupe import dedupe_entries, dedupe_submissions
from fitleague.services.projections import EntryRow, SubmissionRow

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
MEMBER = uuid.uuid4()
CHALLENGE = uuid.uuid4()


def _sub(points, created_at=T0, sid=None, member=MEMBER):
    return SubmissionRow(
        id=sid or uuid.uuid4(),
        challenge_id=CHALLENGE,
        member_id=member,
        status="approved",
        awarded_points=points,
        created_at=created_at,
    )


def _entry(rr, d=date(2024, 6, 1), created_at=T0, member=MEMBER):
    return EntryRow(id=uuid.uuid4(), member_id=member, date=d, status="approved", rr_value=rr, created_at=created_at)


def test_higher_points_win():
    low, high = _sub(10), _sub(20)
    assert dedupe_submissions([low, high]) == [high]
    assert dedupe_submissions([high, low]) == [high]


def test_equal_points_later_created_wins():
    early = _sub(10, T0)
    late = _sub(10, T0 + timedelta(minutes=1))
    assert dedupe_submissions([early, late]) == [late]
    assert dedupe_submissions([late, early]) == [late]


def test_full_tie_picks_smallest_id_regardless_of_order():
    a = _sub(10, sid=uuid.UUID("00000000-0000-0000-0000-000000000001"))
    b = _sub(10, sid=uuid.UUID("00000000-0000-0000-0000-000000000002"))
    assert dedupe_submissions([a, b]) == [a]
    assert dedupe_submissions([b, a]) == [a]


def test_idempotent_and_lower_duplicate_does_not_change_winner():
    pool = [_sub(5), _sub(15), _sub(15, T0 - timedelta(hours=1))]
    once = dedupe_submissions(pool)
    assert dedupe_submissions(once) == once
    assert dedupe_submissions(pool + [_sub(1, T0 + timedelta(days=1))]) == once


def test_missing_points_count_as_zero():
    none_pts = _sub(None, T0 + timedelta(days=1))
    some = _sub(1)
    assert dedupe_submissions([none_pts, some]) == [some]


def test_distinct_keys_are_kept():
    other = uuid.uuid4()
    rows = [_sub(5), _sub(5, member=other)]
    assert len(dedupe_submissions(rows)) == 2


def test_entries_collapse_per_member_and_day():
    a = _entry(1.2)
    b = _entry(1.5)
    c = _entry(1.1, d=date(2024, 6, 2))
    out = dedupe_entries([a, b, c])
    assert len(out) == 2
    assert b in out and c in out
