"""Configuration loading for vcs-tools-mcp.

Configuration is supplied by the host environment (MCP client config), never by
the agent. Provider tokens are secrets: they are excluded from ``repr`` and must
never be emitted to agents or logs.

Sources, in order of precedence:

1. ``PROVIDERS_JSON``: ``{"providers": [{"name", "type", "apiUrl", "token",
   "username"}], "defaultProvider": "..."}``
2. ``GITEA_URL``/``GITEA_TOKEN``/``GITEA_USERNAME`` and
   ``GITHUB_TOKEN``/``GITHUB_URL``/``GITHUB_USERNAME``
3. ``API_URL``/``API_TOKEN``/``PROVIDER``/``USERNAME``

``DEFAULT_PROVIDER`` overrides the default when it names a configured provider.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field

from .errors import ConfigError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDER_TYPES = ("gitea", "github")
GITHUB_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_S = 30.0


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Connection settings for one VCS provider."""

    name: str
    type: str
    api_url: str
    token: str = field(repr=False)
    username: str | None = None


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Network and subprocess limits."""

    # Network
    total_timeout_s: float = DEFAULT_TIMEOUT_S
    connect_timeout_s: float = 5.0
    read_timeout_s: float = 30.0

    # Retries (idempotent requests only)
    max_attempts: int = 3
    max_backoff_s: float = 5.0

    # Local git commands
    git_timeout_s: float = 300.0


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Process-wide configuration, read-only after startup."""

    providers: tuple[ProviderConfig, ...]
    default_provider: str | None
    limits: LimitsConfig
    debug: bool = False


def _parse_bool(value: str | None) -> bool:
    if value is None:
        return False
    normalized = value.strip().lower()
    return normalized in {"1", "true", "yes", "on"}


def _parse_timeout_s(value: str | None) -> float:
    # TIMEOUT is expressed in milliseconds.
    if not value:
        return DEFAULT_TIMEOUT_S
    try:
        timeout_ms = float(value)
    except ValueError as exc:
        raise ConfigError(message="TIMEOUT must be a number of milliseconds") from exc
    if timeout_ms <= 0:
        raise ConfigError(message="TIMEOUT must be positive")
    return timeout_ms / 1000.0


def _providers_from_json(raw: str) -> tuple[list[ProviderConfig], str | None]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(message="PROVIDERS_JSON is not valid JSON") from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("providers"), list):
        raise ConfigError(message="PROVIDERS_JSON must be an object with a 'providers' list")

    providers: list[ProviderConfig] = []
    for entry in payload["providers"]:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        ptype = entry.get("type")
        api_url = entry.get("apiUrl")
        token = entry.get("token")
        if not all(isinstance(v, str) and v for v in (name, ptype, api_url, token)):
            logger.warning("Skipping incomplete provider entry in PROVIDERS_JSON")
            continue
        username = entry.get("username")
        providers.append(
            ProviderConfig(
                name=name,
                type=ptype,
                api_url=api_url,
                token=token,
                username=username if isinstance(username, str) and username else None,
            )
        )

    default = payload.get("defaultProvider")
    if not isinstance(default, str) or not default:
        default = providers[0].name if providers else None
    return providers, default


def _providers_from_legacy_env() -> tuple[list[ProviderConfig], str | None]:
    providers: list[ProviderConfig] = []
    default: str | None = None

    gitea_url = os.getenv("GITEA_URL")
    gitea_token = os.getenv("GITEA_TOKEN")
    github_token = os.getenv("GITHUB_TOKEN")

    if gitea_url and gitea_token:
        providers.append(
            ProviderConfig(
                name="gitea",
                type="gitea",
                api_url=gitea_url,
                token=gitea_token,
                username=os.getenv("GITEA_USERNAME") or None,
            )
        )
        default = "gitea"

    if github_token:
        providers.append(
            ProviderConfig(
                name="github",
                type="github",
                api_url=os.getenv("GITHUB_URL") or GITHUB_API_URL,
                token=github_token,
                username=os.getenv("GITHUB_USERNAME") or None,
            )
        )
        if default is None:
            default = "github"

    if not providers:
        api_url = os.getenv("API_URL")
        api_token = os.getenv("API_TOKEN")
        if api_url and api_token:
            ptype = (os.getenv("PROVIDER") or "gitea").strip().lower()
            providers.append(
                ProviderConfig(
                    name=ptype,
                    type=ptype,
                    api_url=api_url,
                    token=api_token,
                    username=os.getenv("USERNAME") or None,
                )
            )
            default = ptype

    return providers, default


def load_config_from_env() -> AppConfig:
    """Load and validate configuration from environment variables.

    Raises:
        ConfigError: If no provider is configured or a value is invalid.
    """
    providers_json = os.getenv("PROVIDERS_JSON")
    if providers_json:
        providers, default = _providers_from_json(providers_json)
    else:
        providers, default = _providers_from_legacy_env()

    if not providers:
        raise ConfigError(
            message="No VCS provider configured",
            hint="Set GITEA_URL and GITEA_TOKEN, GITHUB_TOKEN, API_URL and API_TOKEN, or PROVIDERS_JSON",
        )

    names: set[str] = set()
    for provider in providers:
        if provider.type not in SUPPORTED_PROVIDER_TYPES:
            raise ConfigError(
                message=f"Provider type '{provider.type}' not supported. Supported types: gitea, github",
            )
        if provider.name in names:
            raise ConfigError(message=f"Duplicate provider name '{provider.name}'")
        names.add(provider.name)

    explicit_default = os.getenv("DEFAULT_PROVIDER")
    if explicit_default:
        if explicit_default in names:
            default = explicit_default
        else:
            logger.warning("DEFAULT_PROVIDER '%s' is not configured; ignoring", explicit_default)
    if default not in names:
        default = providers[0].name

    timeout_s = _parse_timeout_s(os.getenv("TIMEOUT"))
    limits = LimitsConfig(total_timeout_s=timeout_s, read_timeout_s=timeout_s)

    return AppConfig(
        providers=tuple(providers),
        default_provider=default,
        limits=limits,
        debug=_parse_bool(os.getenv("DEBUG")),
    )
