"""Tests for the reverse proxy to the Fortress API."""

import httpx
import pytest
from fastapi import status
from starlette.requests import Request

from fortress_gate.core.settings import settings


def test_get_is_forwarded_with_secret_and_query(authed_client, recording_upstream):
    r = authed_client.get("/proxy/fortress/status?x=1")

    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"ok": True}

    sent = recording_upstream.last
    assert sent.method == "GET"
    assert str(sent.url) == "http://fortress.test/api/fortress/fortress/status?x=1"
    assert sent.headers["X-Fortress-Key"] == "test-fortress-key"
    assert sent.headers["Content-Type"] == "application/json"
    assert sent.content == b""


def test_repeated_query_parameters_are_preserved(authed_client, recording_upstream):
    authed_client.get("/proxy/bans?ip=1.1.1.1&ip=2.2.2.2&limit=10")

    sent = recording_upstream.last
    assert sent.url.params.multi_items() == [
        ("ip", "1.1.1.1"),
        ("ip", "2.2.2.2"),
        ("limit", "10"),
    ]


@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
def test_body_is_relayed_for_write_methods(authed_client, recording_upstream, method):
    body = b'{"name": "block-scanners", "action": "block"}'
    r = authed_client.request(method, "/proxy/rules/7", content=body)

    assert r.status_code == status.HTTP_200_OK
    sent = recording_upstream.last
    assert sent.method == method
    assert sent.url.path == "/api/fortress/rules/7"
    assert sent.content == body


def test_empty_body_is_not_sent(authed_client, recording_upstream):
    authed_client.post("/proxy/services/reload")

    sent = recording_upstream.last
    assert sent.content == b""


def test_body_is_forwarded_without_interpretation(authed_client, recording_upstream):
    body = b"not even json"
    authed_client.put("/proxy/settings", content=body)
    assert recording_upstream.last.content == body


def test_browser_headers_do_not_override_secret(authed_client, recording_upstream):
    authed_client.get("/proxy/status", headers={"X-Fortress-Key": "forged"})
    assert recording_upstream.last.headers["X-Fortress-Key"] == "test-fortress-key"


def test_upstream_error_status_is_passed_through(authed_client, recording_upstream):
    recording_upstream.handler = lambda request: httpx.Response(
        404,
        content=b"no such rule",
        headers={"Content-Type": "text/plain"},
    )

    r = authed_client.get("/proxy/rules/999")

    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.content == b"no such rule"
    assert r.headers["content-type"] == "text/plain"


def test_upstream_server_error_is_passed_through(authed_client, recording_upstream):
    recording_upstream.handler = lambda request: httpx.Response(
        500,
        json={"error": "database locked"},
    )

    r = authed_client.post("/proxy/rules", content=b"{}")

    assert r.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert r.json() == {"error": "database locked"}


def test_missing_upstream_content_type_defaults_to_json(authed_client, recording_upstream):
    recording_upstream.handler = lambda request: httpx.Response(200, content=b'{"a": 1}')

    r = authed_client.get("/proxy/metrics")

    assert r.headers["content-type"] == "application/json"
    assert r.content == b'{"a": 1}'


@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
@pytest.mark.parametrize("path", ["/proxy/status", "/proxy/rules/1?x=2"])
def test_connection_refused_yields_bad_gateway(authed_client, recording_upstream, method, path):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    recording_upstream.handler = refuse

    r = authed_client.request(method, path)

    assert r.status_code == status.HTTP_502_BAD_GATEWAY
    assert r.json() == {"error": "Fortress API unavailable", "detail": "Connection refused"}


def test_timeout_yields_bad_gateway(authed_client, recording_upstream):
    def hang(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    recording_upstream.handler = hang

    r = authed_client.get("/proxy/status")

    assert r.status_code == status.HTTP_502_BAD_GATEWAY
    assert r.json()["error"] == "Fortress API unavailable"


def test_proxy_requires_session(client, recording_upstream):
    r = client.get("/proxy/status")

    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"error": "Unauthorized"}
    assert recording_upstream.requests == []


def test_proxy_rejects_expired_session(authed_client, clock, recording_upstream):
    clock.advance(settings.session_max_age_seconds + 1)

    r = authed_client.get("/proxy/status")

    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert recording_upstream.requests == []


def test_session_guard_can_be_disabled(client, recording_upstream, mocker):
    mocker.patch.object(settings, "proxy_require_session", False)
    r = client.get("/proxy/status")

    assert r.status_code == status.HTTP_200_OK
    assert len(recording_upstream.requests) == 1


def test_unsupported_method_is_rejected(authed_client, recording_upstream):
    r = authed_client.patch("/proxy/status", content=b"{}")

    assert r.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert recording_upstream.requests == []


def test_login_keeps_working_while_backend_is_down(client, recording_upstream):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    recording_upstream.handler = refuse

    r = client.post("/auth", json={"password": "correct-horse"})
    assert r.status_code == status.HTTP_200_OK
    assert client.get("/auth").status_code == status.HTTP_200_OK
    assert client.get("/proxy/status").status_code == status.HTTP_502_BAD_GATEWAY


def test_unreadable_body_is_forwarded_without_content(authed_client, recording_upstream, mocker):
    mocker.patch.object(Request, "body", side_effect=RuntimeError("stream consumed"))

    r = authed_client.post("/proxy/rules", content=b'{"name": "x"}')

    assert r.status_code == status.HTTP_200_OK
    sent = recording_upstream.last
    assert sent.method == "POST"
    assert sent.content == b""


def test_oversized_session_timestamp_is_rejected_by_guard(client, recording_upstream):
    client.cookies.set(settings.session_cookie_name, "9" * 5000 + ".deadbeef")

    r = client.get("/proxy/status")

    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert recording_upstream.requests == []
