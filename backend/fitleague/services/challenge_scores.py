from __future__ import annotations
from datetime import date
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitleague.models.challenge import ChallengeTeamScore, LeagueChallenge
from fitleague.services.challenge_points import aggregate_challenge_points
from fitleague.services.dedupe import dedupe_submissions
from fitleague.services.loaders import load_league_pool

log = structlog.get_logger()


async def sync_computed_scores(session: AsyncSession, challenge: LeagueChallenge, today: date) -> dict[UUID, float]:
    """
    Rewrite this challenge's ``computed`` bonus rows from scratch.

    Every approved submission counts here (no visibility delay): the rows
    mirror what reviewers decided, not what the public board shows yet.
    Running it twice leaves the same rows behind.
    """
    pool = await load_league_pool(session, challenge.league_id, today, challenge_id=challenge.id, with_entries=False)
    if not pool.challenges:
        return {}
    ch = pool.challenges[0]

    approved = dedupe_submissions(s for s in pool.submissions if s.status == "approved")
    points = aggregate_challenge_points(
        [ch],
        approved,
        pool.roster,
        sub_teams=pool.sub_teams,
        manual_scores=[b for b in pool.bonus if b.source == "manual" and b.challenge_id == ch.id],
        matches=pool.matches,
    )

    await session.execute(
        delete(ChallengeTeamScore).where(
            ChallengeTeamScore.challenge_id == challenge.id,
            ChallengeTeamScore.source == "computed",
        )
    )
    for team_id, score in points.team.items():
        session.add(ChallengeTeamScore(
            league_id=challenge.league_id,
            challenge_id=challenge.id,
            team_id=team_id,
            source="computed",
            score=score,
            scored_on=challenge.end_date,
        ))
    await session.flush()

    log.info("challenge_scores_synced", challenge_id=str(challenge.id), teams=len(points.team))
    return points.team


async def list_team_scores(session: AsyncSession, challenge_id: UUID) -> list[ChallengeTeamScore]:
    return list((await session.execute(
        select(ChallengeTeamScore)
        .where(ChallengeTeamScore.challenge_id == challenge_id)
        .order_by(ChallengeTeamScore.source, ChallengeTeamScore.score.desc())
    )).scalars().all())
