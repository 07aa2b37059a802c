from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, replace
from typing import Callable, Iterable
from uuid import UUID

from fitleague.services.projections import EntryRow, RosterSnapshot, SubTeamRow


@dataclass(frozen=True)
class Standing:
    id: UUID
    name: str
    points: float = 0.0
    avg_rr: float = 0.0
    rank: int = 0
    team_id: UUID | None = None
    team_name: str | None = None
    activity_points: int = 0
    challenge_points: float = 0.0
    member_count: int = 0
    submission_count: int = 0  # logged entries in range, any status


@dataclass
class Tally:
    """
    Running activity totals: one point per counted entry, plus the effort sum.
    The average only covers entries that carry effort (rr_value > 0).
    """
    points: int = 0
    total_rr: float = 0.0
    rr_count: int = 0

    def add(self, e: EntryRow) -> None:
        self.points += 1
        rr = float(e.rr_value or 0)
        if rr > 0:
            self.total_rr += rr
            self.rr_count += 1

    @property
    def avg_rr(self) -> float:
        return round(self.total_rr / self.rr_count, 2) if self.rr_count else 0.0


def rank_standings(rows: Iterable[Standing], *, drop_zero: bool = False) -> list[Standing]:
    """
    Sort by points desc, then avg_rr desc, then id string asc.

    Scorers get sequential 1-based ranks. Everyone at zero shares the rank
    after the last scorer, so a new zero-point entrant never moves anyone.
    """
    pool = [r for r in rows if not (drop_zero and r.points <= 0)]
    pool.sort(key=lambda r: (-r.points, -r.avg_rr, str(r.id)))
    zero_rank = shared_zero_rank(r.points for r in pool)
    return [replace(r, rank=i if r.points > 0 else zero_rank) for i, r in enumerate(pool, start=1)]


def shared_zero_rank(points: Iterable[float]) -> int:
    return sum(1 for p in points if p > 0) + 1


def tally_entries(entries: Iterable[EntryRow], key: Callable[[EntryRow], UUID | None]) -> dict[UUID, Tally]:
    out: dict[UUID, Tally] = {}
    for e in entries:
        k = key(e)
        if k is None:
            continue
        out.setdefault(k, Tally()).add(e)
    return out


def team_standings(
    roster: RosterSnapshot,
    settled: list[EntryRow],
    bonus: dict[UUID, float],
    logged: Iterable[EntryRow] = (),
) -> list[Standing]:
    """Every roster team is listed, even at zero."""
    tallies = tally_entries(settled, lambda e: roster.team_of(e.member_id))
    logged_by_team = Counter(roster.team_of(e.member_id) for e in logged)
    sizes = roster.team_sizes()
    rows = []
    for team_id, team in roster.teams.items():
        t = tallies.get(team_id, Tally())
        extra = round(bonus.get(team_id, 0.0), 2)
        rows.append(Standing(
            id=team_id,
            name=team.name,
            points=round(t.points + extra, 2),
            avg_rr=t.avg_rr,
            team_id=team_id,
            team_name=team.name,
            activity_points=t.points,
            challenge_points=extra,
            member_count=sizes.get(team_id, 0),
            submission_count=logged_by_team.get(team_id, 0),
        ))
    return rank_standings(rows)


def individual_standings(
    roster: RosterSnapshot,
    settled: list[EntryRow],
    logged: Iterable[EntryRow] = (),
) -> list[Standing]:
    """Activity only; challenge points never reach individual standings."""
    tallies = tally_entries(settled, lambda e: e.member_id)
    logged_by_member = Counter(e.member_id for e in logged)
    rows = []
    for member_id, m in roster.members.items():
        t = tallies.get(member_id, Tally())
        rows.append(Standing(
            id=member_id,
            name=m.username,
            points=float(t.points),
            avg_rr=t.avg_rr,
            team_id=m.team_id,
            team_name=roster.team_name(m.team_id),
            activity_points=t.points,
            submission_count=logged_by_member.get(member_id, 0),
        ))
    return rank_standings(rows)


def sub_team_standings(
    points: dict[UUID, float],
    sub_teams: dict[UUID, SubTeamRow],
    roster: RosterSnapshot,
) -> list[Standing]:
    rows = []
    for sub_team_id, pts in points.items():
        st = sub_teams.get(sub_team_id)
        if st is None:
            continue
        rows.append(Standing(
            id=sub_team_id,
            name=st.name,
            points=pts,
            team_id=st.team_id,
            team_name=roster.team_name(st.team_id),
            challenge_points=pts,
        ))
    return rank_standings(rows, drop_zero=True)


def challenge_team_standings(points: dict[UUID, float], roster: RosterSnapshot) -> list[Standing]:
    rows = [
        Standing(id=tid, name=roster.team_name(tid) or "", points=pts, team_id=tid,
                 team_name=roster.team_name(tid), challenge_points=pts)
        for tid, pts in points.items()
    ]
    return rank_standings(rows, drop_zero=True)


def challenge_individual_standings(points: dict[UUID, float], roster: RosterSnapshot) -> list[Standing]:
    rows = []
    for member_id, pts in points.items():
        m = roster.members.get(member_id)
        team_id = m.team_id if m else None
        rows.append(Standing(
            id=member_id,
            name=m.username if m else "",
            points=pts,
            team_id=team_id,
            team_name=roster.team_name(team_id),
            challenge_points=pts,
        ))
    return rank_standings(rows, drop_zero=True)
