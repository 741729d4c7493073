"""Process-wide runtime: configuration, provider registry and git runner."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from .config import AppConfig, load_config_from_env
from .git_runner import GitRunner
from .providers.registry import ProviderRegistry, build_registry


@dataclass(frozen=True, slots=True)
class Runtime:
    config: AppConfig
    registry: ProviderRegistry
    git: GitRunner


_RUNTIME: Runtime | None = None


def build_runtime(config: AppConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> Runtime:
    return Runtime(
        config=config,
        registry=build_registry(config, transport=transport),
        git=GitRunner(timeout_s=config.limits.git_timeout_s),
    )


def initialize_runtime_from_env() -> Runtime:
    """Load config and build the runtime once; later calls reuse it."""
    global _RUNTIME  # pylint: disable=global-statement
    if _RUNTIME is None:
        _RUNTIME = build_runtime(load_config_from_env())
    return _RUNTIME
