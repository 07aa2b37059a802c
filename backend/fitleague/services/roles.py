from __future__ import annotations
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitleague.errors import Forbidden
from fitleague.models.league import LeagueMember, RoleAssignment

PRIVILEGED_ROLES = frozenset({"host", "governor"})


@dataclass(frozen=True)
class Membership:
    user_id: UUID
    league_id: UUID
    member: LeagueMember | None
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_privileged(self) -> bool:
        return bool(self.roles & PRIVILEGED_ROLES)

    @property
    def is_captain(self) -> bool:
        return "captain" in self.roles

    @property
    def team_id(self) -> UUID | None:
        return self.member.team_id if self.member else None


async def get_membership(session: AsyncSession, user_id: UUID, league_id: UUID) -> Membership:
    member = await session.scalar(
        select(LeagueMember).where(LeagueMember.league_id == league_id, LeagueMember.user_id == user_id)
    )
    roles = (await session.execute(
        select(RoleAssignment.role).where(RoleAssignment.league_id == league_id, RoleAssignment.user_id == user_id)
    )).scalars().all()
    return Membership(user_id=user_id, league_id=league_id, member=member, roles=frozenset(roles))


async def require_member(session: AsyncSession, user_id: UUID, league_id: UUID) -> Membership:
    m = await get_membership(session, user_id, league_id)
    if m.member is None and not m.is_privileged:
        raise Forbidden("Not a member of this league")
    return m


async def require_host_or_governor(session: AsyncSession, user_id: UUID, league_id: UUID) -> Membership:
    m = await get_membership(session, user_id, league_id)
    if not m.is_privileged:
        raise Forbidden("Only the host or a governor can do this")
    return m
