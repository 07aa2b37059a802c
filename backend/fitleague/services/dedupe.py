from __future__ import annotations
from datetime import date, datetime
from typing import Callable, Hashable, Iterable, TypeVar
from uuid import UUID

from fitleague.services.projections import EntryRow, SubmissionRow

T = TypeVar("T")


def select_winners(
    records: Iterable[T],
    *,
    key: Callable[[T], Hashable],
    points: Callable[[T], float],
    created_at: Callable[[T], datetime],
    ident: Callable[[T], str],
) -> list[T]:
    """
    Collapse records sharing a key into one authoritative record.

    Winner per key: higher points, then later ``created_at``, then the
    smallest ``ident``. The result is ordered by the winners' idents so it
    never depends on the order rows came back from the store.
    """
    ordered = sorted(records, key=ident)
    # stable sort: on a full (points, created_at) tie the smaller ident stays first
    ordered.sort(key=lambda r: (points(r), created_at(r)), reverse=True)

    winners: dict[Hashable, T] = {}
    for r in ordered:
        winners.setdefault(key(r), r)
    return sorted(winners.values(), key=ident)


def entry_key(e: EntryRow) -> tuple[UUID, date]:
    return (e.member_id, e.date)


def dedupe_entries(entries: Iterable[EntryRow]) -> list[EntryRow]:
    """One entry per (member, date); the effort magnitude is the entry's derived points."""
    return select_winners(
        entries,
        key=entry_key,
        points=lambda e: float(e.rr_value or 0),
        created_at=lambda e: e.created_at,
        ident=lambda e: str(e.id),
    )


def dedupe_submissions(submissions: Iterable[SubmissionRow]) -> list[SubmissionRow]:
    """One submission per (member, challenge)."""
    return select_winners(
        submissions,
        key=lambda s: (s.member_id, s.challenge_id),
        points=lambda s: float(s.awarded_points or 0),
        created_at=lambda s: s.created_at,
        ident=lambda s: str(s.id),
    )
