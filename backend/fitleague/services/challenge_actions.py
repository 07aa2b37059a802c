"""
Status-changing challenge writes.

Each action locks the challenge row (SELECT ... FOR UPDATE), re-derives the
effective status under that lock and only then writes, so a review racing a
publish (or the close boundary) sees one consistent answer.
"""
from __future__ import annotations
import uuid
from datetime import date, datetime, timezone as dt_tz
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from fitleague.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from fitleague.models.challenge import ChallengeSubmission, ChallengeTeamScore, LeagueChallenge
from fitleague.models.league import LeagueMember, Team
from fitleague.services.challenge_scores import sync_computed_scores
from fitleague.services.roles import require_host_or_governor
from fitleague.services.status import (
    ChallengeStatus,
    UnknownStatus,
    derive_status,
    ensure_closable,
    ensure_publishable,
    ensure_reviewable,
    ensure_team_scores_editable,
)

log = structlog.get_logger()


def resolve_awarded_points(decision: str, awarded: float | None, total_points: float) -> float | None:
    """
    Points stored with a review. Approving without a value awards the full
    ``total_points``; rejecting always clears them.
    """
    if decision == "rejected":
        return None
    pts = float(total_points) if awarded is None else float(awarded)
    if pts < 0:
        raise ValidationError("Awarded points cannot be negative")
    if pts > total_points:
        raise ValidationError(f"Awarded points cannot exceed {total_points:g}")
    return pts


async def _lock_challenge(session: AsyncSession, league_id: UUID, challenge_id: UUID) -> LeagueChallenge:
    ch = await session.get(LeagueChallenge, challenge_id, with_for_update=True)
    if ch is None or ch.league_id != league_id:
        raise NotFound("Challenge not found")
    return ch


def _effective(ch: LeagueChallenge, today: date) -> ChallengeStatus:
    try:
        return derive_status(ch.status, ch.start_date, ch.end_date, today)
    except UnknownStatus as exc:
        raise InvalidTransition(str(exc)) from exc


async def review_submission(
    session: AsyncSession,
    league_id: UUID,
    submission_id: UUID,
    user_id: UUID,
    decision: str,
    awarded: float | None,
    today: date,
) -> ChallengeSubmission:
    s = await session.get(ChallengeSubmission, submission_id)
    if s is None:
        raise NotFound("Submission not found")
    ch = await session.get(LeagueChallenge, s.challenge_id, with_for_update=True)
    if ch is None or ch.league_id != league_id:
        raise Forbidden("Submission does not belong to this league")
    await require_host_or_governor(session, user_id, league_id)

    ensure_reviewable(_effective(ch, today))
    pts = resolve_awarded_points(decision, awarded, float(ch.total_points or 0))

    if ch.challenge_type == "team" and decision == "approved":
        member = await session.get(LeagueMember, s.league_member_id)
        if member is not None and member.team_id is not None:
            s.team_id = member.team_id

    prev = s.status
    s.status = decision
    s.awarded_points = pts
    s.reviewed_by = user_id
    s.reviewed_at = datetime.now(dt_tz.utc)
    await session.flush()

    await sync_computed_scores(session, ch, today)
    await session.commit()
    log.info(
        "submission_reviewed",
        submission_id=str(s.id),
        challenge_id=str(ch.id),
        from_status=prev,
        to_status=decision,
        awarded_points=pts,
    )
    return s


async def publish_challenge(session: AsyncSession, league_id: UUID, challenge_id: UUID, user_id: UUID, today: date) -> LeagueChallenge:
    ch = await _lock_challenge(session, league_id, challenge_id)
    await require_host_or_governor(session, user_id, league_id)

    pending = await session.scalar(
        select(func.count()).select_from(ChallengeSubmission).where(
            ChallengeSubmission.challenge_id == ch.id,
            ChallengeSubmission.status == "pending",
        )
    ) or 0
    ensure_publishable(_effective(ch, today), int(pending))

    ch.status = ChallengeStatus.PUBLISHED.value
    await session.flush()
    await sync_computed_scores(session, ch, today)
    await session.commit()
    log.info("challenge_published", challenge_id=str(ch.id))
    return ch


async def close_challenge(session: AsyncSession, league_id: UUID, challenge_id: UUID, user_id: UUID, today: date) -> LeagueChallenge:
    ch = await _lock_challenge(session, league_id, challenge_id)
    await require_host_or_governor(session, user_id, league_id)
    ensure_closable(_effective(ch, today))

    ch.status = ChallengeStatus.CLOSED.value
    await session.commit()
    log.info("challenge_closed", challenge_id=str(ch.id))
    return ch


async def assign_team_scores(
    session: AsyncSession,
    league_id: UUID,
    challenge_id: UUID,
    user_id: UUID,
    scores: list[tuple[UUID, float]],
    today: date,
) -> dict[UUID, float]:
    """Upsert host-assigned ``manual`` rows, then re-sync the computed mirror."""
    ch = await _lock_challenge(session, league_id, challenge_id)
    await require_host_or_governor(session, user_id, league_id)
    ensure_team_scores_editable(_effective(ch, today), ch.challenge_type)

    team_ids = {t for t, _ in scores}
    known = set((await session.execute(
        select(Team.id).where(Team.league_id == league_id, Team.id.in_(team_ids))
    )).scalars().all())
    if known != team_ids:
        raise Forbidden("Team is not part of this league")

    total = float(ch.total_points or 0)
    for team_id, score in scores:
        if score < 0:
            raise ValidationError("Team score cannot be negative")
        if ch.challenge_type == "team" and score > total:
            raise ValidationError(f"Team score cannot exceed {total:g}")

    now = datetime.now(dt_tz.utc)
    for team_id, score in scores:
        stmt = pg_insert(ChallengeTeamScore).values(
            id=uuid.uuid4(),
            league_id=league_id,
            challenge_id=ch.id,
            team_id=team_id,
            source="manual",
            score=score,
            scored_on=ch.end_date,
            updated_by=user_id,
            updated_at=now,
        ).on_conflict_do_update(
            constraint="uq_challenge_team_score_source",
            set_={"score": score, "updated_by": user_id, "updated_at": now},
        )
        await session.execute(stmt)

    computed = await sync_computed_scores(session, ch, today)
    await session.commit()
    log.info("team_scores_assigned", challenge_id=str(ch.id), teams=len(scores))
    return computed
