"""REST client request construction, retry and error mapping tests."""

from __future__ import annotations

import httpx
import pytest
from vcs_tools_mcp.config import LimitsConfig
from vcs_tools_mcp.errors import ProviderError
from vcs_tools_mcp.rest_client import RestClient


def _client(handler, *, attempts: int = 1, scheme: str = "Bearer") -> RestClient:
    return RestClient(
        token="tok",
        limits=LimitsConfig(max_attempts=attempts, max_backoff_s=0.0),
        api_base_url="https://api.example.com/",
        auth_scheme=scheme,
        default_headers={"X-Extra": "1"},
        label="Test API",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_sends_auth_scheme_headers_and_drops_none_params() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["extra"] = request.headers.get("X-Extra")
        return httpx.Response(200, json={"ok": True})

    out = await _client(handler, scheme="token").request_json(
        method="GET",
        path="/repos/octo/demo",
        params={"ref": None, "page": 2},
    )

    assert out == {"ok": True}
    assert seen["url"] == "https://api.example.com/repos/octo/demo?page=2"
    assert seen["auth"] == "token tok"
    assert seen["extra"] == "1"


@pytest.mark.asyncio
async def test_empty_body_decodes_to_empty_dict() -> None:
    out = await _client(lambda request: httpx.Response(204)).request_json(method="DELETE", path="/x")
    assert out == {}


@pytest.mark.asyncio
async def test_error_status_maps_to_provider_error_with_api_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    with pytest.raises(ProviderError) as exc:
        await _client(handler).request_json(method="GET", path="/missing")

    assert exc.value.status_code == 404
    assert exc.value.message == "Test API request failed (404): Not Found"


@pytest.mark.asyncio
async def test_idempotent_requests_retry_on_server_errors() -> None:
    statuses = [502, 503, 200]

    def handler(request: httpx.Request) -> httpx.Response:
        status = statuses.pop(0)
        return httpx.Response(status, json={"attempt": 3} if status == 200 else {})

    out = await _client(handler, attempts=3).request_json(method="GET", path="/flaky")

    assert out == {"attempt": 3}
    assert statuses == []


@pytest.mark.asyncio
async def test_post_is_not_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(500, json={"message": "boom"})

    with pytest.raises(ProviderError):
        await _client(handler, attempts=3).request_json(method="POST", path="/create", json_body={"a": 1})

    assert calls == ["POST"]


@pytest.mark.asyncio
async def test_transport_errors_become_provider_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderError) as exc:
        await _client(handler, attempts=2).request_json(method="GET", path="/down")
    assert exc.value.message == "Test API network request failed"


@pytest.mark.asyncio
async def test_invalid_json_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>", headers={"Content-Type": "text/html"})

    with pytest.raises(ProviderError) as exc:
        await _client(handler).request_json(method="GET", path="/html")
    assert "invalid JSON" in exc.value.message


@pytest.mark.asyncio
async def test_redirect_target_is_returned_not_followed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": "https://signed.example.com/logs.zip"})

    url = await _client(handler).request_redirect(path="/actions/runs/1/logs")
    assert url == "https://signed.example.com/logs.zip"


@pytest.mark.asyncio
async def test_request_text_returns_plain_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Accept"] == "text/plain"
        return httpx.Response(200, text="line 1\nline 2")

    assert await _client(handler).request_text(path="/jobs/7/logs") == "line 1\nline 2"


@pytest.mark.asyncio
async def test_fetch_bytes_sends_no_credentials() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, content=b"PK\x03\x04")

    assert await _client(handler).fetch_bytes("https://signed.example.com/a.zip") == b"PK\x03\x04"
