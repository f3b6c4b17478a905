"""HTTP flow tests: login, create market, stake, resolve, leaderboard.

Runs the FastAPI app in-process against a temporary file-backed store.
"""

import pytest
from httpx import AsyncClient

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _login(client: AsyncClient, name: str) -> dict:
    resp = await client.post("/api/v1/users", json={"name": name})
    assert resp.status_code == 200
    return resp.json()["data"]


async def _create_market(client: AsyncClient, ends_at: str) -> dict:
    resp = await client.post("/api/v1/markets", json={
        "title": "Ship v2 by Friday?",
        "description": "Resolves YES if the release tag exists",
        "ends_at": ends_at,
        "created_by": "alice",
    })
    assert resp.status_code == 201
    return resp.json()["data"]


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


class TestUserEndpoints:
    async def test_login_twice_same_user(self, client: AsyncClient) -> None:
        first = await _login(client, "Alice")
        second = await _login(client, "ALICE")
        assert first["id"] == second["id"]
        assert first["balance"] == 100

    async def test_envelope_shape(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/users", json={"name": "Bob"})
        body = resp.json()
        assert body["code"] == 0
        assert body["message"] == "success"
        assert body["request_id"].startswith("req_")
        assert resp.headers["X-Request-ID"] == body["request_id"]

    async def test_inbound_request_id_is_echoed(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/users", headers={"X-Request-ID": "trace-42"})
        assert resp.headers["X-Request-ID"] == "trace-42"
        assert resp.json()["request_id"] == "trace-42"

    async def test_error_envelope_carries_request_id(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/users/nope")
        assert resp.json()["request_id"] == resp.headers["X-Request-ID"]

    async def test_blank_name(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/users", json={"name": "   "})
        assert resp.status_code == 400
        assert resp.json()["code"] == 1002
        assert resp.json()["data"] is None

    async def test_lookup_and_unknown(self, client: AsyncClient) -> None:
        user = await _login(client, "Carol")
        found = await client.get("/api/v1/users/lookup", params={"name": "carol"})
        assert found.json()["data"]["id"] == user["id"]

        missing = await client.get("/api/v1/users/nope")
        assert missing.status_code == 404
        assert missing.json()["code"] == 1001

    async def test_add_balance_and_delete(self, client: AsyncClient) -> None:
        user = await _login(client, "Dana")
        topped = await client.post(f"/api/v1/users/{user['id']}/balance", json={"amount": 25})
        assert topped.json()["data"]["balance"] == 125

        deleted = await client.delete(f"/api/v1/users/{user['id']}")
        assert deleted.json()["data"] == {"user_id": user["id"], "deleted": True}
        assert (await client.get(f"/api/v1/users/{user['id']}")).status_code == 404

    async def test_infinite_top_up_rejected(self, client: AsyncClient) -> None:
        user = await _login(client, "Eve")
        resp = await client.post(
            f"/api/v1/users/{user['id']}/balance",
            content=b'{"amount": Infinity}',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 422
        assert (await client.get(f"/api/v1/users/{user['id']}")).json()["data"]["balance"] == 100


class TestMarketFlow:
    async def test_stake_resolve_payout(self, client: AsyncClient, ends_at: str) -> None:
        alice = await _login(client, "A")
        bob = await _login(client, "B")
        market = await _create_market(client, ends_at)
        assert market["yes_pool"] == 5
        assert market["yes_probability"] == pytest.approx(0.5)

        resp = await client.post(f"/api/v1/markets/{market['id']}/bets", json={
            "user_id": alice["id"], "amount": 20, "position": "yes",
        })
        assert resp.status_code == 201
        placed = resp.json()["data"]
        assert placed["bet"]["odds_at_bet"] == pytest.approx(25 / 30)
        assert placed["user"]["balance"] == 80
        assert placed["market"]["yes_pool"] == 25

        await client.post(f"/api/v1/markets/{market['id']}/bets", json={
            "user_id": bob["id"], "amount": 10, "position": "no",
        })

        history = (await client.get(f"/api/v1/markets/{market['id']}/bets")).json()["data"]
        assert [h["user_name"] for h in history] == ["B", "A"]

        resolved = await client.post(f"/api/v1/markets/{market['id']}/resolve", json={"outcome": True})
        assert resolved.json()["data"]["outcome"] is True

        board = (await client.get("/api/v1/users")).json()["data"]
        assert [(row["rank"], row["name"], row["balance"]) for row in board] == [
            (1, "A", pytest.approx(112)),
            (2, "B", 90),
        ]

        again = await client.post(f"/api/v1/markets/{market['id']}/resolve", json={"outcome": False})
        assert again.status_code == 409
        assert again.json()["code"] == 3003

        late = await client.post(f"/api/v1/markets/{market['id']}/bets", json={
            "user_id": bob["id"], "amount": 5, "position": "yes",
        })
        assert late.status_code == 422
        assert late.json()["code"] == 3002

        audit = (await client.get("/api/v1/admin/invariants")).json()["data"]
        assert audit["ok"] is True

    async def test_insufficient_funds(self, client: AsyncClient, ends_at: str) -> None:
        alice = await _login(client, "A")
        market = await _create_market(client, ends_at)
        resp = await client.post(f"/api/v1/markets/{market['id']}/bets", json={
            "user_id": alice["id"], "amount": 500, "position": "no",
        })
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001

    async def test_non_positive_amount(self, client: AsyncClient, ends_at: str) -> None:
        alice = await _login(client, "A")
        market = await _create_market(client, ends_at)
        resp = await client.post(f"/api/v1/markets/{market['id']}/bets", json={
            "user_id": alice["id"], "amount": 0, "position": "no",
        })
        assert resp.status_code == 400
        assert resp.json()["code"] == 2002

    async def test_infinite_stake_rejected(self, client: AsyncClient, ends_at: str) -> None:
        alice = await _login(client, "A")
        market = await _create_market(client, ends_at)
        body = '{"user_id": "%s", "amount": Infinity, "position": "yes"}' % alice["id"]
        resp = await client.post(
            f"/api/v1/markets/{market['id']}/bets",
            content=body.encode(),
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 422
        detail = (await client.get(f"/api/v1/markets/{market['id']}")).json()["data"]
        assert detail["yes_pool"] == 5

    async def test_bad_position_rejected_by_schema(self, client: AsyncClient, ends_at: str) -> None:
        alice = await _login(client, "A")
        market = await _create_market(client, ends_at)
        resp = await client.post(f"/api/v1/markets/{market['id']}/bets", json={
            "user_id": alice["id"], "amount": 5, "position": "maybe",
        })
        assert resp.status_code == 422

    async def test_unknown_market(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets/missing")
        assert resp.status_code == 404
        assert resp.json()["code"] == 3001

    async def test_bad_end_time(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/markets", json={
            "title": "t", "description": "d", "ends_at": "soon", "created_by": "x",
        })
        assert resp.status_code == 400
        assert resp.json()["code"] == 4001

    async def test_user_bet_history(self, client: AsyncClient, ends_at: str) -> None:
        alice = await _login(client, "A")
        market = await _create_market(client, ends_at)
        await client.post(f"/api/v1/markets/{market['id']}/bets", json={
            "user_id": alice["id"], "amount": 3, "position": "yes",
        })
        bets = (await client.get(f"/api/v1/users/{alice['id']}/bets")).json()["data"]
        assert [(b["market_id"], b["position"]) for b in bets] == [(market["id"], "yes")]


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.json()["status"] == "ok"
