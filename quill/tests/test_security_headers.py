"""Tests for security headers, request IDs, and CORS configuration."""

import logging

from quill.middleware import RequestIDLogFilter, request_id_var


async def test_security_headers_present(client):
    """JSON responses are never framed."""
    response = await client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


async def test_html_pages_frameable_by_same_origin(client):
    response = await client.get("/api/website/unknown")

    assert response.status_code == 404
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


async def test_request_id_echoed(client):
    response = await client.get("/api/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


async def test_request_id_generated(client):
    response = await client.get("/api/health")
    assert len(response.headers["X-Request-ID"]) == 36


async def test_cors_preflight_allows_configured_origin(client):
    response = await client.options(
        "/api/posts",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert "POST" in response.headers.get("Access-Control-Allow-Methods", "")


async def test_cors_preflight_rejects_unknown_origin(client):
    response = await client.options(
        "/api/posts",
        headers={
            "Origin": "https://evil.example",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 400
    assert "Access-Control-Allow-Origin" not in response.headers


def test_log_filter_stamps_request_id():
    record = logging.LogRecord("quill", logging.INFO, __file__, 1, "hello", None, None)
    token = request_id_var.set("req-abc")
    try:
        assert RequestIDLogFilter().filter(record) is True
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-abc"

    RequestIDLogFilter().filter(record)
    assert record.request_id == "-"
