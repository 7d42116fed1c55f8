import pytest

from conftest import auth_headers


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    res = await client.get("/api/metrics")
    assert res.status_code == 200

    data = res.json()

    # Check structure
    assert data["status"] == "Online"
    assert "cpu" in data
    assert "ram" in data
    assert data["database"] in ("Connected", "Error")
    assert data["webhook"] == "Not Configured"

    # Check data types
    assert isinstance(data["uptime"], int)


@pytest.mark.asyncio
async def test_redis_stats_reserved_to_international(client, people):
    res = await client.get("/api/metrics/redis-stats", headers=auth_headers(people.student))
    assert res.status_code == 403

    res = await client.get("/api/metrics/redis-stats", headers=auth_headers(people.international))
    assert res.status_code == 200
    assert res.json()["status"] == "Disabled"


@pytest.mark.asyncio
async def test_root_health_check(client):
    res = await client.get("/")
    assert res.status_code == 200
    assert res.json()["service"] == "Learning Agreement Portal Backend"
