"""Unit tests for core.middleware module.

Tests ASGI middleware:
- SecurityHeadersMiddleware adds security headers to HTTP responses
- SecurityHeadersMiddleware skips non-HTTP scopes
- RequestContextMiddleware adds request id/duration headers
- RequestContextMiddleware logs the wide event once per request
"""

from unittest.mock import patch

import pytest

from core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from core.wide_event import set_wide_event_fields


async def _noop_receive():
    return {"type": "http.request", "body": b""}


async def _make_app_that_sends_response(scope, receive, send):
    """Simulate an ASGI app that sends a response."""
    set_wide_event_fields(user_id="user_1")
    await send({"type": "http.response.start", "status": 201, "headers": []})
    await send({"type": "http.response.body", "body": b"OK"})


async def _run(middleware, scope) -> list[dict]:
    sent_messages: list[dict] = []

    async def send(message):
        sent_messages.append(message)

    await middleware(scope, _noop_receive, send)
    return sent_messages


def _headers(messages: list[dict]) -> dict[bytes, bytes]:
    return dict(messages[0]["headers"])


@pytest.mark.unit
class TestSecurityHeadersMiddleware:
    """Test SecurityHeadersMiddleware adds expected headers."""

    async def test_adds_security_headers(self):
        middleware = SecurityHeadersMiddleware(_make_app_that_sends_response)

        messages = await _run(middleware, {"type": "http", "path": "/health"})

        headers = _headers(messages)
        assert headers[b"x-content-type-options"] == b"nosniff"
        assert headers[b"x-frame-options"] == b"DENY"
        assert b"content-security-policy" in headers

    async def test_skips_non_http_scopes(self):
        calls = []

        async def app(scope, receive, send):
            calls.append(scope["type"])

        await SecurityHeadersMiddleware(app)({"type": "lifespan"}, _noop_receive, None)

        assert calls == ["lifespan"]


@pytest.mark.unit
class TestRequestContextMiddleware:
    async def test_adds_request_headers(self):
        middleware = RequestContextMiddleware(_make_app_that_sends_response)

        messages = await _run(
            middleware, {"type": "http", "method": "GET", "path": "/health"}
        )

        headers = _headers(messages)
        assert len(headers[b"x-request-id"]) == 16
        assert float(headers[b"x-request-duration-ms"]) >= 0

    async def test_logs_wide_event(self):
        middleware = RequestContextMiddleware(_make_app_that_sends_response)

        with patch("core.middleware.logger") as mock_logger:
            await _run(
                middleware,
                {"type": "http", "method": "POST", "path": "/api/users/user_1/progress"},
            )

        mock_logger.info.assert_called_once()
        event, = mock_logger.info.call_args.args
        fields = mock_logger.info.call_args.kwargs
        assert event == "request.completed"
        assert fields["user_id"] == "user_1"
        assert fields["status_code"] == 201
        assert fields["method"] == "POST"

    async def test_logs_500_when_app_raises(self):
        async def failing_app(scope, receive, send):
            raise RuntimeError("boom")

        middleware = RequestContextMiddleware(failing_app)

        with patch("core.middleware.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await _run(middleware, {"type": "http", "method": "GET", "path": "/"})

        assert mock_logger.info.call_args.kwargs["status_code"] == 500
