"""REST client wrapper shared by the GitHub and Gitea providers.

Provides:
- token authentication with a provider-specific scheme
- no-redirect behavior (redirect targets are returned, never followed)
- bounded retries with backoff for idempotent requests
- finite timeouts
- safe error translation into ``ProviderError``
"""

from __future__ import annotations

import asyncio
import json

import httpx

from .config import LimitsConfig
from .errors import ProviderError

_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "PUT", "DELETE", "OPTIONS"})


class RestClient:
    """Minimal JSON REST client bound to one API base URL and token."""

    def __init__(
        self,
        *,
        token: str,
        limits: LimitsConfig,
        api_base_url: str,
        auth_scheme: str = "Bearer",
        default_headers: dict[str, str] | None = None,
        label: str = "API",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a REST client.

        Args:
            token: API token (never logged or echoed).
            limits: Timeouts/retry limits.
            api_base_url: Base URL every request path is appended to.
            auth_scheme: ``Bearer`` for GitHub, ``token`` for Gitea.
            default_headers: Extra headers sent with every request.
            label: Provider label used in error messages.
            transport: Optional httpx transport for tests.
        """
        self._token = token
        self._limits = limits
        self._api_base_url = api_base_url.rstrip("/")
        self._auth_scheme = auth_scheme
        self._default_headers = dict(default_headers or {})
        self._label = label
        self._transport = transport

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Authorization": f"{self._auth_scheme} {self._token}", "Accept": "application/json"}
        headers.update(self._default_headers)
        if extra:
            headers.update(extra)
        return headers

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            timeout=self._limits.total_timeout_s,
            connect=self._limits.connect_timeout_s,
            read=self._limits.read_timeout_s,
        )

    def _compute_backoff_s(self, attempt_index: int) -> float:
        # attempt_index: 1 for first retry, 2 for second retry...
        base = min(self._limits.max_backoff_s, 0.5 * (2 ** (attempt_index - 1)))
        jitter = min(0.05, 0.01 * attempt_index)
        return min(self._limits.max_backoff_s, base + jitter)

    def _is_retryable(self, status_code: int | None, exc: Exception | None) -> bool:
        if exc is not None:
            return isinstance(exc, (httpx.TimeoutException, httpx.TransportError))
        if status_code is None:
            return False
        if status_code == 429:
            return True
        return 500 <= status_code <= 599

    def _failure(self, resp: httpx.Response) -> ProviderError:
        detail = None
        try:
            payload = resp.json()
            if isinstance(payload, dict) and isinstance(payload.get("message"), str):
                detail = payload["message"]
        except Exception:  # pylint: disable=broad-exception-caught
            detail = None

        message = f"{self._label} request failed ({resp.status_code})"
        if detail:
            message = f"{message}: {detail}"
        return ProviderError(message=message, hint=detail, status_code=resp.status_code)

    async def _send(
        self,
        *,
        method: str,
        path: str,
        json_body: object | None = None,
        params: dict[str, object] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        method = method.upper()
        url = f"{self._api_base_url}{path}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        max_attempts = self._limits.max_attempts if method in _IDEMPOTENT_METHODS else 1

        last_exc: Exception | None = None

        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=self._timeout(),
            transport=self._transport,
        ) as client:
            for attempt in range(1, max_attempts + 1):
                try:
                    resp = await client.request(
                        method,
                        url,
                        headers=self._headers(headers),
                        json=json_body,
                        params=query or None,
                    )
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    last_exc = exc
                    if attempt < max_attempts and self._is_retryable(None, exc):
                        await asyncio.sleep(self._compute_backoff_s(attempt))
                        continue
                    raise ProviderError(message=f"{self._label} network request failed") from exc

                if resp.status_code >= 400:
                    if attempt < max_attempts and self._is_retryable(resp.status_code, None):
                        await asyncio.sleep(self._compute_backoff_s(attempt))
                        continue
                    raise self._failure(resp)

                return resp

        raise ProviderError(message=f"{self._label} network request failed") from last_exc

    async def request_json(
        self,
        *,
        method: str,
        path: str,
        json_body: object | None = None,
        params: dict[str, object] | None = None,
        headers: dict[str, str] | None = None,
    ) -> object:
        """Make a request and return decoded JSON.

        APIs may return either an object (dict) or an array (list). Empty bodies
        (204, 202 without content) decode to an empty dict.
        """
        resp = await self._send(
            method=method,
            path=path,
            json_body=json_body,
            params=params,
            headers=headers,
        )
        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except json.JSONDecodeError as exc:
            raise ProviderError(message=f"{self._label} returned invalid JSON") from exc

    async def request_text(
        self,
        *,
        path: str,
        params: dict[str, object] | None = None,
    ) -> str:
        """GET a plain-text resource (e.g. job logs)."""
        resp = await self._send(
            method="GET",
            path=path,
            params=params,
            headers={"Accept": "text/plain"},
        )
        return resp.text

    async def request_redirect(
        self,
        *,
        path: str,
        params: dict[str, object] | None = None,
    ) -> str:
        """GET a resource answered with a redirect and return its target URL.

        Used for archive and log downloads, which the APIs serve through
        short-lived signed URLs.
        """
        resp = await self._send(method="GET", path=path, params=params)
        location = resp.headers.get("location")
        if resp.is_redirect and location:
            return location
        return str(resp.url)

    async def fetch_bytes(self, url: str) -> bytes:
        """Download an absolute (signed) URL without sending credentials."""
        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=self._timeout(),
            transport=self._transport,
        ) as client:
            try:
                resp = await client.get(url)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                raise ProviderError(message=f"{self._label} download failed") from exc
        if resp.status_code >= 400:
            raise self._failure(resp)
        return resp.content
