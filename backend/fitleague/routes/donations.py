from __future__ import annotations
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fitleague.auth_deps import get_current_user
from fitleague.db import get_session
from fitleague.errors import Forbidden, NotFound
from fitleague.models.league import League, LeagueMember
from fitleague.schemas.donation import DonationAction, DonationCreate, DonationOut, RestDayBalanceOut
from fitleague.services.donations import (
    create_donation,
    list_donations,
    rest_day_balance,
    transition_donation,
)
from fitleague.services.roles import require_member

router = APIRouter(prefix="/leagues", tags=["rest-days"])


async def _get_league(session: AsyncSession, league_id: UUID) -> League:
    league = await session.get(League, league_id)
    if league is None:
        raise NotFound("League not found")
    return league


@router.get("/{league_id}/rest-day-donations", response_model=list[DonationOut])
async def donations_index(
    league_id: UUID,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    await _get_league(session, league_id)
    me = await require_member(session, user.id, league_id)
    return [DonationOut.model_validate(d) for d in await list_donations(session, league_id, me)]


@router.post("/{league_id}/rest-day-donations", response_model=DonationOut, status_code=201)
async def donations_create(
    league_id: UUID,
    payload: DonationCreate,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    league = await _get_league(session, league_id)
    d = await create_donation(
        session,
        league,
        user.id,
        payload.receiver_member_id,
        payload.days_transferred,
        notes=payload.notes,
        proof_url=payload.proof_url,
    )
    return DonationOut.model_validate(d)


@router.patch("/{league_id}/rest-day-donations/{donation_id}", response_model=DonationOut)
async def donations_transition(
    league_id: UUID,
    donation_id: UUID,
    payload: DonationAction,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    d = await transition_donation(session, league_id, donation_id, user.id, payload.action, proof_url=payload.proof_url)
    return DonationOut.model_validate(d)


@router.get("/{league_id}/rest-days/{member_id}", response_model=RestDayBalanceOut)
async def rest_days(
    league_id: UUID,
    member_id: UUID,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    league = await _get_league(session, league_id)
    await require_member(session, user.id, league_id)
    member = await session.get(LeagueMember, member_id)
    if member is None:
        raise NotFound("Member not found")
    if member.league_id != league_id:
        raise Forbidden("Member is not part of this league")
    return RestDayBalanceOut.model_validate(await rest_day_balance(session, league, member_id))
