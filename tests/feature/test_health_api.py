import pytest


@pytest.mark.asyncio
async def test_health_reports_database(async_client):
    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["services"]["database"]["status"] == "healthy"
    assert body["env"] == "test"


@pytest.mark.asyncio
async def test_health_degrades_when_database_is_down(async_client, mocker):
    mocker.patch(
        "lovedev.adapters.api.v1.health.check_database",
        return_value={"status": "unhealthy"},
    )

    response = await async_client.get("/api/v1/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
