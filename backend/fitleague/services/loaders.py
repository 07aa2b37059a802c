"""
Reads for the scoring pipeline. Each query is scoped to one league's ids;
rows are projected right away so nothing downstream touches ORM objects.
"""
from __future__ import annotations
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitleague.models.challenge import (
    ChallengeSubmission,
    ChallengeSubTeam,
    ChallengeTeamScore,
    LeagueChallenge,
    TournamentMatch,
)
from fitleague.models.entry import EffortEntry
from fitleague.models.league import LeagueMember, Team
from fitleague.models.user import User
from fitleague.services.leaderboard import LeaguePool
from fitleague.services.projections import (
    BonusRow,
    ChallengeRow,
    EntryRow,
    MatchRow,
    MemberRow,
    RosterSnapshot,
    SubmissionRow,
    SubTeamRow,
    TeamRow,
)
from fitleague.services.status import UnknownStatus, derive_status


def challenge_row(ch: LeagueChallenge, today: date) -> ChallengeRow:
    """Effective status when it can be derived; an unknown stored value passes through for the pipeline to skip."""
    try:
        status = derive_status(ch.status, ch.start_date, ch.end_date, today).value
    except UnknownStatus:
        status = ch.status
    return ChallengeRow(
        id=ch.id,
        name=ch.name,
        challenge_type=ch.challenge_type,
        total_points=float(ch.total_points or 0),
        status=status,
        start_date=ch.start_date,
        end_date=ch.end_date,
    )


def submission_row(s: ChallengeSubmission) -> SubmissionRow:
    return SubmissionRow(
        id=s.id,
        challenge_id=s.challenge_id,
        member_id=s.league_member_id,
        status=s.status,
        awarded_points=s.awarded_points,
        created_at=s.created_at,
        team_id=s.team_id,
        sub_team_id=s.sub_team_id,
    )


async def load_roster(session: AsyncSession, league_id: UUID) -> RosterSnapshot:
    """Read team membership once; every consumer in the request shares this snapshot."""
    teams = (await session.execute(select(Team).where(Team.league_id == league_id))).scalars().all()
    rows = (await session.execute(
        select(LeagueMember.id, LeagueMember.user_id, LeagueMember.team_id, User.username)
        .join(User, User.id == LeagueMember.user_id)
        .where(LeagueMember.league_id == league_id)
    )).all()
    return RosterSnapshot.build(
        [TeamRow(team_id=t.id, name=t.name) for t in teams],
        [MemberRow(member_id=r.id, user_id=r.user_id, username=r.username, team_id=r.team_id) for r in rows],
    )


async def load_league_pool(
    session: AsyncSession,
    league_id: UUID,
    today: date,
    *,
    start: date | None = None,
    end: date | None = None,
    challenge_id: UUID | None = None,
    with_entries: bool = True,
) -> LeaguePool:
    roster = await load_roster(session, league_id)
    member_ids = list(roster.members)

    entries: list[EntryRow] = []
    if with_entries and member_ids:
        q = select(EffortEntry).where(EffortEntry.league_member_id.in_(member_ids))
        if start is not None:
            q = q.where(EffortEntry.date >= start)
        if end is not None:
            q = q.where(EffortEntry.date <= end)
        entries = [
            EntryRow(
                id=e.id,
                member_id=e.league_member_id,
                date=e.date,
                status=e.status,
                rr_value=e.rr_value,
                created_at=e.created_at,
                type=e.type,
            )
            for e in (await session.execute(q)).scalars().all()
        ]

    cq = select(LeagueChallenge).where(LeagueChallenge.league_id == league_id)
    if challenge_id is not None:
        cq = cq.where(LeagueChallenge.id == challenge_id)
    challenges = [challenge_row(c, today) for c in (await session.execute(cq)).scalars().all()]
    challenge_ids = [c.id for c in challenges]

    submissions: list[SubmissionRow] = []
    sub_teams: dict[UUID, SubTeamRow] = {}
    matches: dict[UUID, list[MatchRow]] = {}
    if challenge_ids:
        submissions = [
            submission_row(s)
            for s in (await session.execute(
                select(ChallengeSubmission).where(ChallengeSubmission.challenge_id.in_(challenge_ids))
            )).scalars().all()
        ]
        for st in (await session.execute(
            select(ChallengeSubTeam).where(ChallengeSubTeam.challenge_id.in_(challenge_ids))
        )).scalars().all():
            sub_teams[st.id] = SubTeamRow(sub_team_id=st.id, challenge_id=st.challenge_id, team_id=st.team_id, name=st.name)
        for m in (await session.execute(
            select(TournamentMatch).where(TournamentMatch.challenge_id.in_(challenge_ids))
        )).scalars().all():
            matches.setdefault(m.challenge_id, []).append(
                MatchRow(team1_id=m.team1_id, team2_id=m.team2_id, score1=m.score1, score2=m.score2, status=m.status)
            )

    bq = select(ChallengeTeamScore).where(
        ChallengeTeamScore.league_id == league_id,
        ChallengeTeamScore.source.in_(("legacy", "manual")),
    )
    bonus = [
        BonusRow(team_id=b.team_id, score=float(b.score or 0), source=b.source, challenge_id=b.challenge_id, scored_on=b.scored_on)
        for b in (await session.execute(bq)).scalars().all()
    ]

    return LeaguePool(
        roster=roster,
        entries=entries,
        challenges=challenges,
        submissions=submissions,
        sub_teams=sub_teams,
        bonus=bonus,
        matches=matches,
    )
