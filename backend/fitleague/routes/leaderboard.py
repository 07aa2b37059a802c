from __future__ import annotations
from dataclasses import asdict
from datetime import date, tzinfo
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fitleague.auth_deps import get_current_user
from fitleague.config import settings
from fitleague.db import get_session
from fitleague.errors import NotFound, ValidationError
from fitleague.jobs.complete_leagues import enqueue_completion
from fitleague.models.league import League
from fitleague.request_deps import request_today, request_zone
from fitleague.schemas.leaderboard import LeaderboardOut
from fitleague.services.leaderboard import build_league_leaderboard
from fitleague.services.loaders import load_league_pool
from fitleague.services.roles import require_member
from fitleague.services.status import LEAGUE_COMPLETED, derive_league_status
from fitleague.services.visibility import VisibilityWindow

router = APIRouter(prefix="/leagues", tags=["leaderboard"])


@router.get("/{league_id}/leaderboard", response_model=LeaderboardOut)
async def league_leaderboard(
    league_id: UUID,
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    zone: tzinfo = Depends(request_zone),
    today: date = Depends(request_today),
):
    """
    Settled team/individual/sub-team standings plus the provisional board for
    the last ``LEADERBOARD_DELAY_DAYS`` days. "Today" is the caller's local day.
    """
    league = await session.get(League, league_id)
    if league is None:
        raise NotFound("League not found")
    await require_member(session, user.id, league_id)

    league_status = derive_league_status(league.status, league.end_date, today)
    if league_status == LEAGUE_COMPLETED and league.status != LEAGUE_COMPLETED:
        enqueue_completion(league.id)

    start = start_date or league.start_date
    end = end_date or league.end_date
    if start is not None and end is not None and start > end:
        raise ValidationError("startDate must not be after endDate")

    window = VisibilityWindow.for_league(today, league_status, settings.leaderboard_delay_days)
    pool = await load_league_pool(session, league_id, today, start=start, end=end)
    board = build_league_leaderboard(pool, window=window, tz=zone, start=start, end=end)
    return LeaderboardOut.model_validate({**asdict(board), "league_status": league_status})
