"""Typed error kinds raised by tools, providers and configuration loading.

Every failure a tool can hit is a ``ToolError`` subclass. The dispatcher catches
them exactly once and turns them into the failure envelope, so messages must be
safe to show to agents (no tokens, no raw stack traces).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

UNSUPPORTED_CAPABILITY_MESSAGE = "Funcionalidade não suportada por este provider"
MISSING_PARAMETERS_MESSAGE = "Parâmetros obrigatórios não fornecidos para a ação especificada"


@dataclass(frozen=True, slots=True)
class ToolError(Exception):
    """Base error safe to expose to agents.

    ``code`` is a stable machine-readable kind. ``summary`` overrides the tool's
    default failure message in the envelope when set.
    """

    message: str
    hint: str | None = None
    status_code: int | None = None

    code: ClassVar[str] = "Internal"
    summary: ClassVar[str | None] = None

    def __str__(self) -> str:
        return self.message


class ConfigError(ToolError):
    """Host configuration is missing or invalid."""

    code = "Config"


class ValidationError(ToolError):
    """Tool arguments failed schema or per-action validation."""

    code = "Validation"


class ProviderNotFoundError(ToolError):
    """Requested provider is not configured (or no provider exists at all)."""

    code = "ProviderNotFound"


class UnsupportedActionError(ToolError):
    code = "UnsupportedAction"


class UnsupportedCapabilityError(ToolError):
    """The resolved provider does not implement a mutating operation."""

    code = "UnsupportedCapability"
    summary = UNSUPPORTED_CAPABILITY_MESSAGE


class ProviderError(ToolError):
    """A provider API request failed (HTTP status, transport or payload)."""

    code = "Provider"


class UpstreamOperationError(ToolError):
    """A provider operation failed while executing an action."""

    code = "Upstream"


class GitCommandError(ToolError):
    """The git executable could not be run or exited with a failure."""

    code = "Git"


def missing_owner_error() -> ValidationError:
    """Error for actions that need an owner when auto-detection found none."""
    return ValidationError(
        message="Owner é obrigatório e não pôde ser detectado automaticamente",
        hint="Informe o parâmetro 'owner' ou verifique o token do provider",
    )
