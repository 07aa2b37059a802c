from datetime import date, datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.dependencies.utils import get_flat_dependant
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from fitleague.main import app
from fitleague.request_deps import request_today
from fitleague.services.time_windows import utc_now

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)

zone_app = FastAPI()


@zone_app.get("/today")
def today_route(today: date = Depends(request_today)):
    return {"today": today.isoformat()}


zone_app.dependency_overrides[utc_now] = lambda: NOW
client = TestClient(zone_app)


def test_offset_only_moves_today():
    assert client.get("/today", params={"tzOffsetMinutes": -720}).json()["today"] == "2024-06-11"
    assert client.get("/today", params={"tzOffsetMinutes": 0}).json()["today"] == "2024-06-10"


def test_zone_name_wins_over_offset():
    r = client.get("/today", params={"tz": "Pacific/Honolulu", "tzOffsetMinutes": -720})
    assert r.json()["today"] == "2024-06-10"


def _query_aliases(route: APIRoute) -> set[str]:
    return {p.alias for p in get_flat_dependant(route.dependant).query_params}


def test_every_route_taking_a_zone_accepts_both_forms():
    zoned = [r for r in app.routes if isinstance(r, APIRoute) and "tz" in _query_aliases(r)]
    assert {r.name for r in zoned} >= {
        "league_leaderboard", "list_challenges", "challenge_leaderboard",
        "review", "publish", "close", "put_team_scores",
    }
    for r in zoned:
        assert "tzOffsetMinutes" in _query_aliases(r), r.path
