"""Immutable provider registry, built once from configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

import httpx

from ..config import AppConfig
from ..errors import ConfigError, ProviderNotFoundError
from .base import VcsProvider
from .gitea import GiteaProvider
from .github import GitHubProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: Mapping[str, type[VcsProvider]] = MappingProxyType(
    {"github": GitHubProvider, "gitea": GiteaProvider}
)


class ProviderRegistry:
    """Name -> provider lookup with a default.

    The registry is read-only after construction; tools borrow providers from
    it per call and never mutate them.
    """

    def __init__(self, providers: Iterable[Any], default_name: str | None = None) -> None:
        table: dict[str, Any] = {}
        for provider in providers:
            table[provider.name] = provider
        self._providers: Mapping[str, Any] = MappingProxyType(table)
        if default_name is None and table:
            default_name = next(iter(table))
        self._default_name = default_name

    @property
    def default_name(self) -> str | None:
        return self._default_name

    def names(self) -> list[str]:
        return list(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def resolve(self, name: str | None = None) -> Any:
        if not self._providers:
            raise ProviderNotFoundError(message="No providers configured")
        key = name or self._default_name
        provider = self._providers.get(key) if key else None
        if provider is None:
            raise ProviderNotFoundError(message=f"Provider '{key}' não encontrado")
        return provider

    def describe(self) -> list[dict[str, Any]]:
        return [
            {
                "name": name,
                "type": provider.kind,
                "default": name == self._default_name,
                "capabilities": provider.capabilities(),
            }
            for name, provider in self._providers.items()
        ]


def build_registry(config: AppConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> ProviderRegistry:
    providers: list[VcsProvider] = []
    for entry in config.providers:
        cls = PROVIDER_CLASSES.get(entry.type)
        if cls is None:
            raise ConfigError(message=f"Provider type '{entry.type}' not supported")
        providers.append(cls(entry, limits=config.limits, transport=transport))
        logger.debug("Registered provider %s (%s)", entry.name, entry.type)
    return ProviderRegistry(providers, config.default_provider)
