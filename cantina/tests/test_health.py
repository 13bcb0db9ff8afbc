import pytest


pytestmark = pytest.mark.asyncio(loop_scope="session")


async def test_healthz(client):
    response = await client.get("/api/v1/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


async def test_readiness_without_redis(client):
    response = await client.get("/api/v1/readiness")

    assert response.status_code == 503
    assert response.json()["detail"] == "Redis unavailable"


async def test_readiness(client, redis_ready):
    response = await client.get("/api/v1/readiness")

    assert response.status_code == 200
    assert response.json() == {"ready": True}


async def test_request_id_header_is_echoed(client):
    response = await client.get("/api/v1/healthz", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
