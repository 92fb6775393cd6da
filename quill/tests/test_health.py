"""Tests for the health check endpoint."""


async def test_health_ok(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "quill-api"
    assert data["checks"] == {"config": "ok", "database": "ok"}


async def test_health_degraded_without_llm_key(client, mock_settings):
    mock_settings.anthropic_api_key = ""

    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["checks"]["config"] == "fail"


async def test_health_unhealthy_when_database_down(client, mocker):
    mocker.patch("quill.main.check_database_connectivity", return_value=False)

    response = await client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


async def test_health_result_cached(client, mocker):
    check = mocker.patch("quill.main.check_database_connectivity", return_value=True)

    await client.get("/api/health")
    await client.get("/api/health")

    assert check.call_count == 1
