from __future__ import annotations
from dataclasses import asdict
from datetime import date, tzinfo
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitleague.auth_deps import get_current_user
from fitleague.config import settings
from fitleague.db import get_session
from fitleague.errors import NotFound
from fitleague.models.challenge import ChallengeSubmission, LeagueChallenge
from fitleague.models.league import League
from fitleague.request_deps import request_today, request_zone
from fitleague.schemas.challenge import (
    ChallengeOut,
    ReviewIn,
    SubmissionOut,
    SubmissionStats,
    TeamScoreOut,
    TeamScoresIn,
)
from fitleague.schemas.leaderboard import ChallengeLeaderboardOut
from fitleague.services.challenge_actions import (
    assign_team_scores,
    close_challenge,
    publish_challenge,
    review_submission,
)
from fitleague.services.challenge_scores import list_team_scores
from fitleague.services.leaderboard import build_challenge_leaderboard
from fitleague.services.loaders import load_league_pool
from fitleague.services.roles import require_member
from fitleague.services.status import ChallengeStatus, UnknownStatus, derive_league_status, derive_status
from fitleague.services.visibility import VisibilityWindow

router = APIRouter(prefix="/leagues", tags=["challenges"])
log = structlog.get_logger()


async def _get_league(session: AsyncSession, league_id: UUID) -> League:
    league = await session.get(League, league_id)
    if league is None:
        raise NotFound("League not found")
    return league


def _challenge_out(ch: LeagueChallenge, effective: ChallengeStatus, stats=None, mine=None) -> ChallengeOut:
    return ChallengeOut(
        id=ch.id,
        league_id=ch.league_id,
        name=ch.name,
        description=ch.description,
        challenge_type=ch.challenge_type,
        total_points=float(ch.total_points or 0),
        status=effective.value,
        stored_status=ch.status,
        start_date=ch.start_date,
        end_date=ch.end_date,
        stats=stats,
        my_submission=SubmissionOut.model_validate(mine) if mine is not None else None,
    )


@router.get("/{league_id}/challenges", response_model=list[ChallengeOut])
async def list_challenges(
    league_id: UUID,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    today: date = Depends(request_today),
):
    await _get_league(session, league_id)
    me = await require_member(session, user.id, league_id)

    rows = (await session.execute(
        select(LeagueChallenge)
        .where(LeagueChallenge.league_id == league_id)
        .order_by(LeagueChallenge.start_date.asc().nulls_last(), LeagueChallenge.created_at.asc())
    )).scalars().all()

    stats_by_ch: dict[UUID, SubmissionStats] = {}
    ids = [c.id for c in rows]
    if me.is_privileged and ids:
        counts = (await session.execute(
            select(ChallengeSubmission.challenge_id, ChallengeSubmission.status, func.count())
            .where(ChallengeSubmission.challenge_id.in_(ids))
            .group_by(ChallengeSubmission.challenge_id, ChallengeSubmission.status)
        )).all()
        for cid, status, n in counts:
            st = stats_by_ch.setdefault(cid, SubmissionStats())
            if status in ("pending", "approved", "rejected"):
                setattr(st, status, int(n))

    mine_by_ch: dict[UUID, ChallengeSubmission] = {}
    if me.member is not None and ids:
        for s in (await session.execute(
            select(ChallengeSubmission)
            .where(ChallengeSubmission.challenge_id.in_(ids), ChallengeSubmission.league_member_id == me.member.id)
            .order_by(ChallengeSubmission.created_at.asc())
        )).scalars().all():
            mine_by_ch[s.challenge_id] = s  # latest wins

    out = []
    for ch in rows:
        try:
            effective = derive_status(ch.status, ch.start_date, ch.end_date, today)
        except UnknownStatus:
            log.warning("challenge_listing_skipped", challenge_id=str(ch.id), status=ch.status)
            continue
        if effective == ChallengeStatus.DRAFT and not me.is_privileged:
            continue
        stats = stats_by_ch.get(ch.id, SubmissionStats()) if me.is_privileged else None
        out.append(_challenge_out(ch, effective, stats, mine_by_ch.get(ch.id)))
    return out


@router.get("/{league_id}/challenges/{challenge_id}/leaderboard", response_model=ChallengeLeaderboardOut)
async def challenge_leaderboard(
    league_id: UUID,
    challenge_id: UUID,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    zone: tzinfo = Depends(request_zone),
    today: date = Depends(request_today),
):
    league = await _get_league(session, league_id)
    await require_member(session, user.id, league_id)

    pool = await load_league_pool(session, league_id, today, challenge_id=challenge_id, with_entries=False)
    if not pool.challenges:
        raise NotFound("Challenge not found")
    window = VisibilityWindow.for_league(
        today, derive_league_status(league.status, league.end_date, today), settings.leaderboard_delay_days
    )
    board = build_challenge_leaderboard(pool.challenges[0], pool, window=window, tz=zone)
    return ChallengeLeaderboardOut.model_validate(asdict(board))


@router.patch("/{league_id}/challenges/submissions/{submission_id}", response_model=SubmissionOut)
async def review(
    league_id: UUID,
    submission_id: UUID,
    payload: ReviewIn,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    today: date = Depends(request_today),
):
    s = await review_submission(session, league_id, submission_id, user.id, payload.status, payload.awarded_points, today)
    return SubmissionOut.model_validate(s)


@router.post("/{league_id}/challenges/{challenge_id}/publish", response_model=ChallengeOut)
async def publish(
    league_id: UUID,
    challenge_id: UUID,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    today: date = Depends(request_today),
):
    ch = await publish_challenge(session, league_id, challenge_id, user.id, today)
    return _challenge_out(ch, ChallengeStatus.PUBLISHED)


@router.post("/{league_id}/challenges/{challenge_id}/close", response_model=ChallengeOut)
async def close(
    league_id: UUID,
    challenge_id: UUID,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    today: date = Depends(request_today),
):
    ch = await close_challenge(session, league_id, challenge_id, user.id, today)
    return _challenge_out(ch, ChallengeStatus.CLOSED)


@router.put("/{league_id}/challenges/{challenge_id}/team-scores", response_model=list[TeamScoreOut])
async def put_team_scores(
    league_id: UUID,
    challenge_id: UUID,
    payload: TeamScoresIn,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    today: date = Depends(request_today),
):
    await assign_team_scores(
        session, league_id, challenge_id, user.id, [(i.team_id, i.score) for i in payload.scores], today
    )
    return [TeamScoreOut.model_validate(r) for r in await list_team_scores(session, challenge_id)]


@router.get("/{league_id}/challenges/{challenge_id}/team-scores", response_model=list[TeamScoreOut])
async def get_team_scores(
    league_id: UUID,
    challenge_id: UUID,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    await require_member(session, user.id, league_id)
    ch = await session.get(LeagueChallenge, challenge_id)
    if ch is None or ch.league_id != league_id:
        raise NotFound("Challenge not found")
    return [TeamScoreOut.model_validate(r) for r in await list_team_scores(session, challenge_id)]
