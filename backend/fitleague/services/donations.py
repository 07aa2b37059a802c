"""
Rest-day donations: a two-stage approval chain.

    pending --captain--> captain_approved --host/governor--> approved
       |                        |
       +----------> rejected <--+

Host and governor may approve straight from pending. Rejection is terminal
at every stage and never moves any balance.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone as dt_tz
from enum import Enum
from typing import Literal
from uuid import UUID

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from fitleague.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from fitleague.models.donation import RestDayAdjustment, RestDayDonation
from fitleague.models.entry import EffortEntry
from fitleague.models.league import League, LeagueMember
from fitleague.services.roles import Membership, get_membership

log = structlog.get_logger()

Action = Literal["approve", "reject"]


class DonationStatus(str, Enum):
    PENDING = "pending"
    CAPTAIN_APPROVED = "captain_approved"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL = frozenset({DonationStatus.APPROVED, DonationStatus.REJECTED})


@dataclass(frozen=True)
class Actor:
    is_privileged: bool  # host or governor
    is_captain: bool
    team_id: UUID | None

    @classmethod
    def from_membership(cls, m: Membership) -> "Actor":
        return cls(is_privileged=m.is_privileged, is_captain=m.is_captain, team_id=m.team_id)


def next_status(
    current: str | DonationStatus,
    action: Action,
    actor: Actor,
    donor_team_id: UUID | None,
    has_proof: bool,
) -> DonationStatus:
    """Pure transition function; raises the domain error that explains a refusal."""
    current = DonationStatus(current)
    if current in TERMINAL:
        raise InvalidTransition(f"Donation is already {current.value}")

    if actor.is_privileged:
        return DonationStatus.APPROVED if action == "approve" else DonationStatus.REJECTED

    donor_captain = actor.is_captain and donor_team_id is not None and actor.team_id == donor_team_id
    if not donor_captain:
        raise Forbidden("Only the donor's team captain, a governor or the host can act on this donation")

    if current != DonationStatus.PENDING:
        raise Forbidden("Awaiting governor or host approval")
    if action == "reject":
        return DonationStatus.REJECTED
    if not has_proof:
        raise ValidationError("Attach proof before captain approval")
    return DonationStatus.CAPTAIN_APPROVED


def remaining_rest_days(allowed: int, used: int, adjustments: int) -> int:
    """Allowance left: allowed minus rest days taken, plus ledger adjustments; never negative."""
    return max(0, allowed - used + adjustments)


@dataclass(frozen=True)
class RestDayBalance:
    member_id: UUID
    allowed: int
    used: int
    adjustments: int
    remaining: int


async def rest_day_balance(session: AsyncSession, league: League, member_id: UUID) -> RestDayBalance:
    used = await session.scalar(
        select(func.count()).select_from(EffortEntry).where(
            EffortEntry.league_member_id == member_id,
            EffortEntry.type == "rest",
            EffortEntry.status == "approved",
        )
    ) or 0
    adjustments = await session.scalar(
        select(func.coalesce(func.sum(RestDayAdjustment.days), 0)).where(
            RestDayAdjustment.league_id == league.id,
            RestDayAdjustment.league_member_id == member_id,
        )
    ) or 0
    allowed = int(league.rest_days or 0)
    return RestDayBalance(
        member_id=member_id,
        allowed=allowed,
        used=int(used),
        adjustments=int(adjustments),
        remaining=remaining_rest_days(allowed, int(used), int(adjustments)),
    )


async def apply_transfer_once(session: AsyncSession, d: RestDayDonation) -> None:
    """Write the donor/receiver ledger pair; a repeat for the same donation is a no-op."""
    for member_id, days in ((d.donor_member_id, -d.days_transferred), (d.receiver_member_id, d.days_transferred)):
        await session.execute(text("""
            INSERT INTO rest_day_adjustments (id, league_id, league_member_id, donation_id, days, created_at)
            VALUES (:id, :league_id, :member_id, :donation_id, :days, NOW())
            ON CONFLICT (league_member_id, donation_id) DO NOTHING
        """), {
            "id": uuid.uuid4(),
            "league_id": d.league_id,
            "member_id": member_id,
            "donation_id": d.id,
            "days": days,
        })


async def create_donation(
    session: AsyncSession,
    league: League,
    user_id: UUID,
    receiver_member_id: UUID,
    days: int,
    notes: str | None = None,
    proof_url: str | None = None,
) -> RestDayDonation:
    donor = await session.scalar(
        select(LeagueMember).where(LeagueMember.league_id == league.id, LeagueMember.user_id == user_id)
    )
    if donor is None:
        raise Forbidden("Not a member of this league")
    receiver = await session.get(LeagueMember, receiver_member_id)
    if receiver is None or receiver.league_id != league.id:
        raise Forbidden("Receiver is not a member of this league")
    if receiver.id == donor.id:
        raise ValidationError("Cannot donate rest days to yourself")

    balance = await rest_day_balance(session, league, donor.id)
    if balance.remaining < days:
        raise ValidationError(f"Not enough rest days to donate ({balance.remaining} remaining)")

    d = RestDayDonation(
        league_id=league.id,
        donor_member_id=donor.id,
        receiver_member_id=receiver.id,
        days_transferred=days,
        status=DonationStatus.PENDING.value,
        notes=notes,
        proof_url=proof_url,
    )
    session.add(d)
    await session.commit()
    await session.refresh(d)
    log.info("donation_created", donation_id=str(d.id), days=days)
    return d


async def transition_donation(
    session: AsyncSession,
    league_id: UUID,
    donation_id: UUID,
    user_id: UUID,
    action: Action,
    proof_url: str | None = None,
) -> RestDayDonation:
    """
    Lock the donation row, re-check the chain and write the move in one
    transaction. The balance transfer lands exactly once on approval.
    """
    d = await session.get(RestDayDonation, donation_id, with_for_update=True)
    if d is None or d.league_id != league_id:
        raise NotFound("Donation not found")
    league = await session.get(League, league_id)

    membership = await get_membership(session, user_id, league_id)
    donor = await session.get(LeagueMember, d.donor_member_id)
    if proof_url:
        d.proof_url = proof_url

    prev = d.status
    new = next_status(
        d.status,
        action,
        Actor.from_membership(membership),
        donor.team_id if donor else None,
        has_proof=bool(d.proof_url),
    )

    now = datetime.now(dt_tz.utc)
    if new == DonationStatus.CAPTAIN_APPROVED:
        d.captain_approved_by = user_id
        d.captain_approved_at = now
    elif new == DonationStatus.APPROVED:
        balance = await rest_day_balance(session, league, d.donor_member_id)
        if balance.remaining < d.days_transferred:
            raise ValidationError(f"Donor has only {balance.remaining} rest days remaining")
        d.final_approved_by = user_id
        d.final_approved_at = now
        await apply_transfer_once(session, d)
    else:
        d.rejected_by = user_id

    d.status = new.value
    await session.commit()
    log.info("donation_transition", donation_id=str(d.id), from_status=prev, to_status=new.value)
    return d


async def list_donations(session: AsyncSession, league_id: UUID, membership: Membership) -> list[RestDayDonation]:
    """Host/governor see everything; others see donations they give or receive, captains their team's too."""
    q = select(RestDayDonation).where(RestDayDonation.league_id == league_id)
    if not membership.is_privileged:
        member_ids = [membership.member.id] if membership.member else []
        if membership.is_captain and membership.team_id is not None:
            team_ids = select(LeagueMember.id).where(LeagueMember.team_id == membership.team_id)
            q = q.where(RestDayDonation.donor_member_id.in_(team_ids) | RestDayDonation.receiver_member_id.in_(member_ids))
        else:
            q = q.where(
                RestDayDonation.donor_member_id.in_(member_ids) | RestDayDonation.receiver_member_id.in_(member_ids)
            )
    q = q.order_by(RestDayDonation.created_at.desc())
    return list((await session.execute(q)).scalars().all())
