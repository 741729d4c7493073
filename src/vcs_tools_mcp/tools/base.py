"""Generic tool dispatcher.

Every tool is a ``ToolSpec``: an input model, a table from action name to an
async action function, and the failure message used when an action raises.
``run_tool`` drives one invocation:

unsupported action -> guard -> validate -> resolve provider -> detect user ->
action function -> envelope

Action functions return a ``ToolResult`` or raise a ``ToolError``; anything
else that escapes is logged and still becomes a failure envelope.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from ..envelope import ToolResult
from ..errors import (
    ProviderError,
    ToolError,
    UnsupportedActionError,
    UnsupportedCapabilityError,
    UpstreamOperationError,
    missing_owner_error,
)
from ..schemas import ToolInput, parse_arguments
from ..user_detection import fill_user

if TYPE_CHECKING:
    from ..runtime import Runtime

logger = logging.getLogger(__name__)

T = TypeVar("T")

ActionFunc = Callable[["ToolContext", Any], Awaitable[ToolResult]]
# (action, raw provider name, registry) -> refusal envelope or None
GuardFunc = Callable[[str, "str | None", Any], "ToolResult | None"]


@dataclass(frozen=True, slots=True)
class ToolContext:
    """What an action function may use: the runtime and the resolved provider."""

    runtime: Runtime
    provider: Any = None

    @property
    def vcs(self) -> Any:
        if self.provider is None:
            raise ToolError(message="Nenhum provider resolvido para esta tool")
        return self.provider


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    description: str
    input_model: type[ToolInput]
    actions: Mapping[str, ActionFunc]
    failure_message: str
    uses_provider: bool = True
    detect_user: bool = True
    guard: GuardFunc | None = None

    def __post_init__(self) -> None:
        declared = set(self.input_model.action_names())
        if declared != set(self.actions):
            raise ValueError(
                f"Tool '{self.name}' action table does not match its input model: "
                f"{sorted(declared ^ set(self.actions))}"
            )

    def input_schema(self) -> dict[str, Any]:
        return self.input_model.model_json_schema()

    def metadata(self) -> dict[str, Any]:
        return {"description": self.description, "inputSchema": self.input_schema()}


def require_owner(params: Any) -> str:
    owner = getattr(params, "owner", None)
    if not owner:
        raise missing_owner_error()
    return owner


def require_capability(ctx: ToolContext, operation: str) -> Callable[..., Any]:
    """Return the provider operation or raise the hard unsupported error."""
    func = ctx.vcs.capability(operation)
    if func is None:
        raise UnsupportedCapabilityError(message=f"Provider não implementa {operation}")
    return func


async def upstream(failure_prefix: str, awaitable: Awaitable[T]) -> T:
    """Await a provider call, re-raising API failures as ``Falha ao ...`` errors."""
    try:
        return await awaitable
    except ProviderError as err:
        raise UpstreamOperationError(
            message=f"{failure_prefix}: {err.message}",
            hint=err.hint,
            status_code=err.status_code,
        ) from err


def _envelope_action(arguments: dict[str, Any]) -> str:
    raw = arguments.get("action")
    return raw if isinstance(raw, str) and raw else "unknown"


def _run_guard(spec: ToolSpec, runtime: Runtime, action: str, arguments: dict[str, Any]) -> ToolResult | None:
    raw_provider = arguments.get("provider")
    if spec.guard is None or not (raw_provider is None or isinstance(raw_provider, str)):
        return None
    return spec.guard(action, raw_provider or None, runtime.registry)


async def run_tool(spec: ToolSpec, runtime: Runtime, arguments: dict[str, Any] | None) -> ToolResult:
    """Run one tool invocation and always return an envelope."""
    arguments = dict(arguments or {})
    action = _envelope_action(arguments)

    try:
        raw_action = arguments.get("action")
        if raw_action is not None and (not isinstance(raw_action, str) or raw_action not in spec.actions):
            raise UnsupportedActionError(message=f"Ação não suportada: {raw_action}")

        if spec.uses_provider:
            blocked = _run_guard(spec, runtime, action, arguments)
            if blocked is not None:
                return blocked

        params = parse_arguments(spec.input_model, arguments)

        provider = None
        if spec.uses_provider:
            provider = runtime.registry.resolve(getattr(params, "provider", None))
            if spec.detect_user:
                params = await fill_user(params, provider)

        handler = spec.actions[params.action]
        return await handler(ToolContext(runtime=runtime, provider=provider), params)

    except ToolError as err:
        logger.info("Tool %s action %s failed: %s", spec.name, action, err.code)
        return ToolResult.failure(action, err.summary or spec.failure_message, err.message)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.exception("Unhandled error in tool %s action %s", spec.name, action)
        return ToolResult.failure(action, spec.failure_message, str(exc) or type(exc).__name__)
