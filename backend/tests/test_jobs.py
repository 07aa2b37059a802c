from __future__ import annotations
import uuid

from redis.exceptions import ConnectionError as RedisConnectionError

from fitleague.config import settings
from fitleague.jobs import complete_leagues


class _BrokenQueue:
    def enqueue(self, *args, **kwargs):
        raise RedisConnectionError("redis down")


class _RecordingQueue:
    def __init__(self):
        self.calls = []

    def enqueue(self, fn, *args, **kwargs):
        self.calls.append((fn, args))


def test_enqueue_survives_redis_outage(monkeypatch):
    monkeypatch.setattr(settings, "enqueue_league_completion", True)
    monkeypatch.setattr(complete_leagues, "_get_queue", lambda: _BrokenQueue())
    complete_leagues.enqueue_completion(uuid.uuid4())


def test_enqueue_passes_league_id(monkeypatch):
    q = _RecordingQueue()
    league_id = uuid.uuid4()
    monkeypatch.setattr(settings, "enqueue_league_completion", True)
    monkeypatch.setattr(complete_leagues, "_get_queue", lambda: q)
    complete_leagues.enqueue_completion(league_id)
    assert q.calls == [(complete_leagues.complete_league, (str(league_id),))]


def test_enqueue_disabled(monkeypatch):
    q = _RecordingQueue()
    monkeypatch.setattr(settings, "enqueue_league_completion", False)
    monkeypatch.setattr(complete_leagues, "_get_queue", lambda: q)
    complete_leagues.enqueue_completion(uuid.uuid4())
    assert q.calls == []
