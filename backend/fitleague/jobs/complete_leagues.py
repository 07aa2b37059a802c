from __future__ import annotations
import asyncio
import uuid
from datetime import datetime, timezone as dt_tz

import structlog
from redis import Redis
from redis.exceptions import RedisError
from rq import Queue

from fitleague.config import settings
from fitleague.db import SessionLocal
from fitleague.models.league import League
from fitleague.services.status import LEAGUE_COMPLETED, derive_league_status
from fitleague.services.time_windows import local_today

log = structlog.get_logger()

_queue: Queue | None = None


def _get_queue() -> Queue:
    global _queue
    if _queue is None:
        _queue = Queue("default", connection=Redis.from_url(settings.redis_url))
    return _queue


async def _run(league_id: str) -> bool:
    async with SessionLocal() as session:
        league = await session.get(League, uuid.UUID(league_id), with_for_update=True)
        if league is None:
            return False
        # never rewrites an already-completed league
        if league.status == LEAGUE_COMPLETED:
            return False
        today = local_today(datetime.now(dt_tz.utc))
        if derive_league_status(league.status, league.end_date, today) != LEAGUE_COMPLETED:
            return False
        prev = league.status
        league.status = LEAGUE_COMPLETED
        await session.commit()
        log.info("league_completed", league_id=league_id, from_status=prev)
        return True


def complete_league(league_id: str) -> bool:
    # RQ entry point (sync); run the async coroutine
    return asyncio.run(_run(league_id))


def enqueue_completion(league_id: uuid.UUID) -> None:
    """Best effort: the read that noticed completion must not fail on a Redis outage."""
    if not settings.enqueue_league_completion:
        return
    try:
        _get_queue().enqueue(complete_league, str(league_id), job_timeout=60)
    except RedisError as exc:
        log.warning("league_completion_enqueue_failed", league_id=str(league_id), error=str(exc))
