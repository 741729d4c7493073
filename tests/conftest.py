"""Shared in-memory fakes for tool tests.

The fakes mirror the provider surface the tools rely on (``name``, ``kind``,
``capability``) and the git runner's ``run``. No network or subprocess calls
are ever made.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pytest
from vcs_tools_mcp import runtime as runtime_mod
from vcs_tools_mcp.config import AppConfig, LimitsConfig
from vcs_tools_mcp.git_runner import GitResult
from vcs_tools_mcp.providers.registry import ProviderRegistry
from vcs_tools_mcp.runtime import Runtime


class FakeProvider:
    """Provider stub answering operations from a response table.

    A response may be a value, an exception instance (raised) or a callable
    taking the call's kwargs.
    """

    def __init__(
        self,
        name: str = "github",
        *,
        kind: str | None = None,
        responses: dict[str, Any] | None = None,
        capabilities: Iterable[str] | None = None,
        login: str | None = "octo",
    ) -> None:
        self.name = name
        self.kind = kind or name
        self.responses = dict(responses or {})
        if login is not None:
            self.responses.setdefault("get_current_user", {"login": login})
        self.CAPABILITIES = frozenset(capabilities if capabilities is not None else self.responses)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def supports(self, name: str) -> bool:
        return name in self.CAPABILITIES

    def capabilities(self) -> list[str]:
        return sorted(self.CAPABILITIES)

    def capability(self, name: str) -> Any:
        if not self.supports(name):
            return None

        async def call(**kwargs: Any) -> Any:
            self.calls.append((name, dict(kwargs)))
            if name not in self.responses:
                raise AssertionError(f"Unexpected provider call: {name}")
            value = self.responses[name]
            if isinstance(value, Exception):
                raise value
            if callable(value):
                return value(**kwargs)
            return value

        return call

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def calls_to(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for called, kwargs in self.calls if called == name]


class FakeGit:
    def __init__(self, results: list[GitResult] | None = None) -> None:
        self._results = list(results or [])
        self.calls: list[dict[str, Any]] = []

    def available(self) -> bool:
        return True

    async def run(self, args: list[str], *, cwd: str | None = None) -> GitResult:
        self.calls.append({"args": list(args), "cwd": cwd})
        if not self._results:
            return GitResult(exit_code=0, output="", error="")
        return self._results.pop(0)


def make_runtime(
    *providers: Any,
    default: str | None = None,
    git: FakeGit | None = None,
) -> Runtime:
    return Runtime(
        config=AppConfig(providers=(), default_provider=default, limits=LimitsConfig(max_backoff_s=0.0)),
        registry=ProviderRegistry(providers, default),
        git=git or FakeGit(),  # type: ignore[arg-type]
    )


@pytest.fixture
def install_runtime(monkeypatch: pytest.MonkeyPatch):
    """Install a runtime as the process-wide one used by ``dispatch_tool``."""

    def _install(rt: Runtime) -> Runtime:
        monkeypatch.setattr(runtime_mod, "_RUNTIME", rt)
        return rt

    return _install
