"""Tool table and the single dispatch entry point used by the MCP server."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any

from .. import runtime
from ..envelope import ToolResult
from ..errors import ToolError
from . import (
    actions,
    analytics,
    code_review,
    deployments,
    files,
    git_bundle,
    issues,
    releases,
    repositories,
    security,
    webhooks,
    workflows,
)
from .base import ToolSpec, run_tool

logger = logging.getLogger(__name__)

SPECS: tuple[ToolSpec, ...] = (
    actions.SPEC,
    analytics.SPEC,
    code_review.SPEC,
    deployments.SPEC,
    files.SPEC,
    issues.SPEC,
    releases.SPEC,
    repositories.SPEC,
    security.SPEC,
    webhooks.SPEC,
    workflows.SPEC,
    git_bundle.SPEC,
)

TOOLS = MappingProxyType({spec.name: spec for spec in SPECS})

TOOL_METADATA: dict[str, dict[str, Any]] = {spec.name: spec.metadata() for spec in SPECS}


async def dispatch_tool(name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
    """Run tool ``name`` and return its envelope as a plain dict."""
    arguments = arguments if isinstance(arguments, dict) else {}
    raw_action = arguments.get("action")
    action = raw_action if isinstance(raw_action, str) and raw_action else "unknown"

    spec = TOOLS.get(name)
    if spec is None:
        return ToolResult.failure(
            action,
            f"Tool desconhecida: {name}",
            f"Tools disponíveis: {', '.join(sorted(TOOLS))}",
        ).to_dict()

    try:
        rt = runtime.initialize_runtime_from_env()
    except ToolError as err:
        logger.error("Runtime initialization failed: %s", err.message)
        return ToolResult.failure(action, spec.failure_message, err.message).to_dict()

    result = await run_tool(spec, rt, arguments)
    return result.to_dict()


__all__ = ["SPECS", "TOOLS", "TOOL_METADATA", "dispatch_tool", "run_tool"]
