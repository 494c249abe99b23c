"""HTTP layer tests: auth, error mapping and event publication."""

import json
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from apps.api import deps
from apps.api.main import app
from core.auth import sign_body
from core.config import settings
from core.redis import MATCH_CREATED_STREAM, MATCH_FINALIZED_STREAM
from tests.conftest import OWNER_A, OWNER_B, intent_attributes


@pytest.fixture
def redis_mock():
    client = AsyncMock()
    client.xadd.return_value = "1-0"
    return client


@pytest.fixture
async def client(session_factory, redis_mock):
    async def override_db():
        async with session_factory() as session:
            yield session

    async def override_redis():
        return redis_mock

    app.dependency_overrides[deps.get_db] = override_db
    app.dependency_overrides[deps.get_redis_client] = override_redis
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def as_wallet(wallet: str, payload=None) -> dict:
    """Request kwargs signed the way the gateway signs them. Without a payload the empty body is signed."""
    headers = {"X-Wallet-Address": wallet}
    if payload is None:
        headers["X-Gateway-Signature"] = sign_body(b"", settings.gateway_secret)
        return {"headers": headers}
    body = json.dumps(payload).encode()
    headers["Content-Type"] = "application/json"
    headers["X-Gateway-Signature"] = sign_body(body, settings.gateway_secret)
    return {"content": body, "headers": headers}


def as_feed(payload: dict) -> dict:
    body = json.dumps(payload).encode()
    return {
        "content": body,
        "headers": {"Content-Type": "application/json", "X-Feed-Signature": sign_body(body, settings.feed_secret)},
    }


async def create_active(client: AsyncClient, wallet: str, **overrides) -> int:
    payload = {**intent_attributes(**overrides), "duration": 24}
    response = await client.post("/intents", **as_wallet(wallet, payload))
    assert response.status_code == 201, response.text
    intent_id = response.json()["id"]
    response = await client.post(
        "/confirmations/payment", **as_feed({"intent_id": intent_id, "tx_hash": f"0xpay{intent_id}"})
    )
    assert response.status_code == 200, response.text
    return intent_id


async def swipe(client: AsyncClient, wallet: str, target: int, action: str = "right"):
    return await client.post("/swipes", **as_wallet(wallet, {"target_intent_id": target, "action": action}))


class TestAuth:
    async def test_missing_headers(self, client):
        response = await client.post("/intents", json=intent_attributes())
        assert response.status_code == 401

    async def test_bad_gateway_signature(self, client):
        kwargs = as_wallet(OWNER_A, intent_attributes())
        kwargs["headers"]["X-Gateway-Signature"] = "forged"

        response = await client.post("/intents", **kwargs)

        assert response.status_code == 401

    async def test_bad_feed_signature(self, client):
        response = await client.post(
            "/confirmations/payment",
            content=b'{"intent_id": 1, "tx_hash": "0x1"}',
            headers={"Content-Type": "application/json", "X-Feed-Signature": "forged"},
        )
        assert response.status_code == 401

    async def test_wallet_is_lowercased(self, client):
        response = await client.post("/intents", **as_wallet(OWNER_A.upper().replace("0X", "0x"), intent_attributes()))

        assert response.status_code == 201
        assert response.json()["owner_id"] == OWNER_A


class TestIntents:
    async def test_create_returns_pending_intent(self, client):
        payload = {**intent_attributes(metadata={"role": "Animator"}), "duration": 12}

        response = await client.post("/intents", **as_wallet(OWNER_A, payload))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending_payment"
        assert body["duration_hours"] == 12
        assert body["metadata"] == {"role": "Animator"}

    async def test_validation_error_is_422(self, client):
        response = await client.post("/intents", **as_wallet(OWNER_A, intent_attributes(title="ab")))

        assert response.status_code == 422
        assert response.json() == {"detail": "validation_error"}

    async def test_second_current_intent_is_409(self, client):
        await client.post("/intents", **as_wallet(OWNER_A, intent_attributes()))

        response = await client.post("/intents", **as_wallet(OWNER_A, intent_attributes()))

        assert response.status_code == 409
        assert response.json() == {"detail": "invalid_state"}

    async def test_current_and_get(self, client):
        intent_id = await create_active(client, OWNER_A)

        current = await client.get("/intents/current", **as_wallet(OWNER_A))
        assert current.status_code == 200
        assert current.json()["id"] == intent_id
        assert current.json()["status"] == "active"

        assert (await client.get(f"/intents/{intent_id}", **as_wallet(OWNER_B))).status_code == 200
        assert (await client.get("/intents/current", **as_wallet(OWNER_B))).status_code == 404
        missing = await client.get("/intents/424242", **as_wallet(OWNER_B))
        assert missing.status_code == 404
        assert missing.json() == {"detail": "not_found"}

    async def test_payment_confirmed_twice_is_409(self, client):
        intent_id = await create_active(client, OWNER_A)

        response = await client.post("/confirmations/payment", **as_feed({"intent_id": intent_id, "tx_hash": "0x2"}))

        assert response.status_code == 409


class TestSwipes:
    async def test_swipe_without_active_intent_is_403(self, client):
        target = await create_active(client, OWNER_B)

        response = await swipe(client, OWNER_A, target)

        assert response.status_code == 403
        assert response.json() == {"detail": "no_active_intent"}

    async def test_reciprocal_swipes_match_and_publish(self, client, redis_mock):
        a = await create_active(client, OWNER_A)
        b = await create_active(client, OWNER_B)

        first = await swipe(client, OWNER_A, b)
        assert first.status_code == 200
        assert first.json()["is_match"] is False
        redis_mock.xadd.assert_not_called()

        second = await swipe(client, OWNER_B, a)
        assert second.status_code == 200
        body = second.json()
        assert body["is_match"] is True
        assert body["match"]["status"] == "pending"
        redis_mock.xadd.assert_awaited_once()
        stream, fields = redis_mock.xadd.await_args.args
        assert stream == MATCH_CREATED_STREAM
        assert fields["id"] == str(body["match"]["id"])

    async def test_duplicate_swipe_is_409(self, client):
        await create_active(client, OWNER_A)
        b = await create_active(client, OWNER_B)
        await swipe(client, OWNER_A, b)

        response = await swipe(client, OWNER_A, b, "left")

        assert response.status_code == 409
        assert response.json() == {"detail": "duplicate_swipe"}

    async def test_publish_failure_does_not_fail_swipe(self, client, redis_mock):
        redis_mock.xadd.side_effect = ConnectionError("redis down")
        a = await create_active(client, OWNER_A)
        b = await create_active(client, OWNER_B)
        await swipe(client, OWNER_A, b)

        response = await swipe(client, OWNER_B, a)

        assert response.status_code == 200
        assert response.json()["is_match"] is True


class TestFeed:
    async def test_feed_excludes_own_and_swiped_intents(self, client):
        await create_active(client, OWNER_A)
        b = await create_active(client, OWNER_B)

        before = await client.post("/feed", **as_wallet(OWNER_A, {"skills": ["3D"]}))
        assert before.status_code == 200
        assert [i["id"] for i in before.json()] == [b]

        await swipe(client, OWNER_A, b, "left")
        after = await client.post("/feed", **as_wallet(OWNER_A, {}))
        assert after.json() == []

    async def test_limit_bounds(self, client):
        await create_active(client, OWNER_A)
        response = await client.post("/feed", **as_wallet(OWNER_A, {"limit": 500}))
        assert response.status_code == 422


class TestMatches:
    async def test_finalize_flow(self, client, redis_mock):
        a = await create_active(client, OWNER_A)
        b = await create_active(client, OWNER_B)
        await swipe(client, OWNER_A, b)
        match_id = (await swipe(client, OWNER_B, a)).json()["match"]["id"]

        listed = await client.get("/matches", **as_wallet(OWNER_A))
        assert [m["id"] for m in listed.json()] == [match_id]

        requested = await client.post(f"/matches/{match_id}/finalize", **as_wallet(OWNER_B))
        assert requested.status_code == 200
        assert requested.json()["status"] == "finalizing"

        redis_mock.xadd.reset_mock()
        confirmed = await client.post(
            "/confirmations/finalize", **as_feed({"match_id": match_id, "tx_hash": "0xfinal"})
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "finalized"
        assert confirmed.json()["finalize_tx_hash"] == "0xfinal"
        stream, _ = redis_mock.xadd.await_args.args
        assert stream == MATCH_FINALIZED_STREAM

        again = await client.post("/confirmations/finalize", **as_feed({"match_id": match_id, "tx_hash": "0xfinal"}))
        assert again.status_code == 409
        assert again.json() == {"detail": "already_finalized"}

        intent = await client.get(f"/intents/{a}", **as_wallet(OWNER_A))
        assert intent.json()["status"] == "matched"

    async def test_match_hidden_from_non_participants(self, client):
        a = await create_active(client, OWNER_A)
        b = await create_active(client, OWNER_B)
        await swipe(client, OWNER_A, b)
        match_id = (await swipe(client, OWNER_B, a)).json()["match"]["id"]

        response = await client.get(f"/matches/{match_id}", **as_wallet("0xdddd000000000000000000000000000000000004"))

        assert response.status_code == 404

    async def test_unknown_status_filter(self, client):
        response = await client.get("/matches?status=bogus", **as_wallet(OWNER_A))
        assert response.status_code == 422


async def test_burn_confirmation(client):
    intent_id = await create_active(client, OWNER_A)

    response = await client.post("/confirmations/burn", **as_feed({"intent_id": intent_id, "tx_hash": "0xburn"}))

    assert response.status_code == 200
    assert response.json()["status"] == "burned"
    assert (await client.get("/intents/current", **as_wallet(OWNER_A))).status_code == 404


async def test_health_and_metrics(client):
    assert (await client.get("/health/")).json() == {"status": "healthy"}
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "swipes_recorded_total" in response.text
