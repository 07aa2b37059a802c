import httpx, uuid
from httpx import AsyncClient
from datetime import date, datetime, timezone
import pytest

from conftest import requires_database
from fitleague.main import app
from fitleague.db import Base, SessionLocal, engine
from fitleague.security import make_access_token
from fitleague.services.time_windows import utc_now
from fitleague.models.user import User
from fitleague.models.league import League, Team, LeagueMember, RoleAssignment
from fitleague.models.entry import EffortEntry
from fitleague.models.challenge import LeagueChallenge, ChallengeSubmission
import fitleague.models.donation  # noqa: F401  registers tables

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


def _hdrs(user_id) -> dict:
    return {"Authorization": f"Bearer {make_access_token(str(user_id))}"}


async def _seed(challenge_end: date = date(2024, 6, 5)) -> dict:
    """One league, team Alpha (4 members) and team Bravo (2), a governor, one closed challenge."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as session:
        users = {}
        for key in ("gov", "cap_a", "donor", "p1", "p2", "cap_b", "receiver"):
            tag = uuid.uuid4().hex[:8]
            users[key] = User(email=f"{key}-{tag}@ex.com", username=f"{key}_{tag}")
            session.add(users[key])
        league = League(name="Summer League", start_date=date(2024, 6, 1), end_date=date(2024, 6, 30), status="active", rest_days=2)
        session.add(league)
        await session.flush()

        alpha = Team(league_id=league.id, name="Alpha")
        bravo = Team(league_id=league.id, name="Bravo")
        session.add_all([alpha, bravo])
        await session.flush()

        members = {}
        for key, team in (("cap_a", alpha), ("donor", alpha), ("p1", alpha), ("p2", alpha), ("cap_b", bravo), ("receiver", bravo)):
            members[key] = LeagueMember(league_id=league.id, user_id=users[key].id, team_id=team.id)
            session.add(members[key])
        session.add_all([
            RoleAssignment(league_id=league.id, user_id=users["gov"].id, role="governor"),
            RoleAssignment(league_id=league.id, user_id=users["cap_a"].id, role="captain"),
            RoleAssignment(league_id=league.id, user_id=users["cap_b"].id, role="captain"),
        ])
        await session.flush()

        challenge = LeagueChallenge(
            league_id=league.id, name="Plank", challenge_type="individual", total_points=100,
            status="active", start_date=date(2024, 6, 1), end_date=challenge_end,
        )
        session.add(challenge)
        await session.flush()

        submission = ChallengeSubmission(
            challenge_id=challenge.id, league_member_id=members["p1"].id, status="pending",
            created_at=datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc),
        )
        session.add(submission)
        session.add(EffortEntry(
            league_member_id=members["donor"].id, date=date(2024, 6, 4), type="workout", rr_value=1.5,
            status="approved", created_at=datetime(2024, 6, 4, 9, 0, tzinfo=timezone.utc),
        ))
        await session.commit()

        return {
            "league": league.id,
            "alpha": alpha.id,
            "challenge": challenge.id,
            "submission": submission.id,
            "users": {k: u.id for k, u in users.items()},
            "members": {k: m.id for k, m in members.items()},
        }


@requires_database
@pytest.mark.asyncio
async def test_review_publish_and_leaderboard():
    app.dependency_overrides[utc_now] = lambda: NOW
    try:
        ids = await _seed()
        lid, cid, sid = ids["league"], ids["challenge"], ids["submission"]
        gov = _hdrs(ids["users"]["gov"])
        async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
            r = await ac.post(f"/leagues/{lid}/challenges/{cid}/publish", headers=gov)
            assert r.status_code == 409, r.text
            assert "Review all pending submissions" in r.json()["detail"]

            r = await ac.patch(
                f"/leagues/{lid}/challenges/submissions/{sid}",
                headers=_hdrs(ids["users"]["cap_a"]),
                json={"status": "approved"},
            )
            assert r.status_code == 403

            r = await ac.patch(
                f"/leagues/{lid}/challenges/submissions/{sid}",
                headers=gov,
                json={"status": "approved", "awardedPoints": 150},
            )
            assert r.status_code == 422
            assert r.json()["error"] == "validation_error"

            r = await ac.patch(
                f"/leagues/{lid}/challenges/submissions/{sid}",
                headers=gov,
                json={"status": "approved", "awardedPoints": 100},
            )
            assert r.status_code == 200, r.text
            assert r.json()["awardedPoints"] == 100

            r = await ac.post(f"/leagues/{lid}/challenges/{cid}/publish", headers=gov)
            assert r.status_code == 200, r.text
            assert r.json()["status"] == "published"

            r = await ac.patch(
                f"/leagues/{lid}/challenges/submissions/{sid}",
                headers=gov,
                json={"status": "rejected"},
            )
            assert r.status_code == 409
            assert "Reviews are locked" in r.json()["detail"]

            r = await ac.get(f"/leagues/{lid}/challenges/{cid}/team-scores", headers=gov)
            assert r.status_code == 200
            computed = [s for s in r.json() if s["source"] == "computed"]
            assert computed == [{**computed[0], "teamId": str(ids["alpha"]), "score": 25.0}]

            r = await ac.get(f"/leagues/{lid}/leaderboard", headers=gov)
            assert r.status_code == 200, r.text
            board = r.json()
            alpha = next(t for t in board["teams"] if t["id"] == str(ids["alpha"]))
            assert alpha["points"] == 26
            assert alpha["rank"] == 1
            assert board["challengeTeams"][0]["points"] == 25
            assert board["pendingWindow"]["dates"] == ["2024-06-10", "2024-06-09"]
            assert board["dateRange"] == {"startDate": "2024-06-01", "endDate": "2024-06-30"}

            r = await ac.get(f"/leagues/{lid}/challenges/{cid}/leaderboard", headers=gov)
            assert r.status_code == 200, r.text
            cboard = r.json()
            assert cboard["challengeType"] == "individual"
            assert [(s["id"], s["points"], s["rank"]) for s in cboard["individuals"]] == [
                (str(ids["members"]["p1"]), 100, 1)
            ]
            assert cboard["teams"][0]["points"] == 25

            r = await ac.get(f"/leagues/{lid}/challenges", headers=_hdrs(ids["users"]["p1"]))
            assert r.status_code == 200
            ch = r.json()[0]
            assert ch["status"] == "published"
            assert ch["stats"] is None
            assert ch["mySubmission"]["status"] == "approved"
    finally:
        app.dependency_overrides.pop(utc_now, None)
        await engine.dispose()


@requires_database
@pytest.mark.asyncio
async def test_write_routes_use_the_callers_offset_for_today():
    # 12:00 UTC on 2024-06-10 is already 2024-06-11 at UTC+12
    app.dependency_overrides[utc_now] = lambda: NOW
    try:
        ids = await _seed(challenge_end=date(2024, 6, 10))
        lid, cid, sid = ids["league"], ids["challenge"], ids["submission"]
        gov = _hdrs(ids["users"]["gov"])
        ahead = {"tzOffsetMinutes": -720}
        async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
            r = await ac.get(f"/leagues/{lid}/challenges", headers=gov, params=ahead)
            assert r.json()[0]["status"] == "submission_closed"

            review_url = f"/leagues/{lid}/challenges/submissions/{sid}"
            r = await ac.patch(review_url, headers=gov, json={"status": "approved"})
            assert r.status_code == 409

            r = await ac.patch(review_url, headers=gov, params=ahead, json={"status": "approved"})
            assert r.status_code == 200, r.text

            r = await ac.post(f"/leagues/{lid}/challenges/{cid}/publish", headers=gov, params=ahead)
            assert r.status_code == 200, r.text
    finally:
        app.dependency_overrides.pop(utc_now, None)
        await engine.dispose()


@requires_database
@pytest.mark.asyncio
async def test_donation_chain_applies_transfer_once():
    try:
        ids = await _seed()
        lid = ids["league"]
        users, members = ids["users"], ids["members"]
        async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
            r = await ac.post(
                f"/leagues/{lid}/rest-day-donations",
                headers=_hdrs(users["donor"]),
                json={"receiverMemberId": str(members["receiver"]), "daysTransferred": 1, "proofUrl": "https://x/proof.png"},
            )
            assert r.status_code == 201, r.text
            did = r.json()["id"]
            assert r.json()["status"] == "pending"

            url = f"/leagues/{lid}/rest-day-donations/{did}"
            r = await ac.patch(url, headers=_hdrs(users["cap_b"]), json={"action": "approve"})
            assert r.status_code == 403

            r = await ac.patch(url, headers=_hdrs(users["cap_a"]), json={"action": "approve"})
            assert r.status_code == 200, r.text
            assert r.json()["status"] == "captain_approved"

            r = await ac.patch(url, headers=_hdrs(users["gov"]), json={"action": "approve"})
            assert r.status_code == 200, r.text
            assert r.json()["status"] == "approved"

            r = await ac.patch(url, headers=_hdrs(users["gov"]), json={"action": "approve"})
            assert r.status_code == 409

            r = await ac.get(f"/leagues/{lid}/rest-days/{members['donor']}", headers=_hdrs(users["donor"]))
            assert r.json()["remaining"] == 1
            r = await ac.get(f"/leagues/{lid}/rest-days/{members['receiver']}", headers=_hdrs(users["donor"]))
            assert r.json()["remaining"] == 3

            r = await ac.post(
                f"/leagues/{lid}/rest-day-donations",
                headers=_hdrs(users["donor"]),
                json={"receiverMemberId": str(members["donor"]), "daysTransferred": 1},
            )
            assert r.status_code == 422
    finally:
        await engine.dispose()
