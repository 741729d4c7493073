"""MCP server wiring for vcs-tools-mcp."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

try:
    from mcp.server import Server
    from mcp.types import Resource, TextContent, Tool
except ImportError as exc:  # pragma: no cover
    raise ImportError("MCP library not installed. Install with: pip install mcp") from exc

from . import __version__
from .envelope import ToolResult
from .errors import ToolError
from .runtime import initialize_runtime_from_env
from .tools import TOOL_METADATA, TOOLS, dispatch_tool

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

SERVER_NAME = "vcs-tools-mcp"
STATUS_URI = f"{SERVER_NAME}://server-status"
CAPABILITIES_URI = f"{SERVER_NAME}://capabilities"

server = Server(SERVER_NAME)


def _resources() -> list[Resource]:
    return [
        Resource(
            uri=STATUS_URI,
            name="Server Status",
            description="Configured providers (no tokens), default provider and limits",
        ),
        Resource(
            uri=CAPABILITIES_URI,
            name="Capabilities",
            description="Tools, their actions and each provider's capability set",
        ),
    ]


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    tools = [
        Tool(name=name, description=metadata["description"], inputSchema=metadata["inputSchema"])
        for name, metadata in TOOL_METADATA.items()
    ]
    logger.info("Listed %s tools", len(tools))
    return tools


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Execute a tool and return its envelope as JSON text."""
    if not isinstance(arguments, dict):
        arguments = {}

    logger.info("Tool called: %s (action=%s)", name, arguments.get("action"))

    try:
        result = await dispatch_tool(name, arguments)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Tool %s failed: %s", name, exc)
        action = arguments.get("action") if isinstance(arguments.get("action"), str) else "unknown"
        result = ToolResult.failure(action or "unknown", "Falha na execução da tool", str(exc)).to_dict()
    return [TextContent(type="text", text=json.dumps(result, indent=2, ensure_ascii=False, default=str))]


@server.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return _resources()


def _status() -> dict[str, Any]:
    status: dict[str, Any] = {
        "server": SERVER_NAME,
        "version": __version__,
        "tools_available": len(TOOL_METADATA),
        "tool_names": sorted(TOOL_METADATA),
        "configured": False,
    }
    try:
        runtime = initialize_runtime_from_env()
    except ToolError as err:
        status["error"] = err.message
        return status

    limits = runtime.config.limits
    status["configured"] = True
    status["default_provider"] = runtime.registry.default_name
    status["providers"] = [
        {"name": p["name"], "type": p["type"], "default": p["default"]} for p in runtime.registry.describe()
    ]
    status["limits"] = {
        "total_timeout_s": limits.total_timeout_s,
        "max_attempts": limits.max_attempts,
        "git_timeout_s": limits.git_timeout_s,
    }
    status["git_available"] = runtime.git.available()
    return status


def _capabilities() -> dict[str, Any]:
    caps: dict[str, Any] = {
        "server": SERVER_NAME,
        "version": __version__,
        "tools": {name: list(spec.actions) for name, spec in TOOLS.items()},
        "providers": [],
    }
    try:
        caps["providers"] = initialize_runtime_from_env().registry.describe()
    except ToolError as err:
        caps["error"] = err.message
    return caps


@server.read_resource()
async def read_resource(uri: Any) -> str:
    """Read resource content."""
    uri_s = uri if isinstance(uri, str) else str(uri)

    if uri_s == STATUS_URI:
        return json.dumps(_status(), indent=2)
    if uri_s == CAPABILITIES_URI:
        return json.dumps(_capabilities(), indent=2)
    return json.dumps({"success": False, "message": "Unknown resource", "error": uri_s}, indent=2)


async def run_server() -> None:
    """Run the server over stdio."""
    # Fail fast on invalid/missing host configuration.
    try:
        runtime = initialize_runtime_from_env()
    except ToolError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    if runtime.config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    logger.info(
        "Starting %s %s with providers %s (default: %s)",
        SERVER_NAME,
        __version__,
        ", ".join(runtime.registry.names()),
        runtime.registry.default_name,
    )

    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def test_server() -> None:
    """Lightweight self-test to ensure tool/resource listing works."""
    tools = [
        Tool(name=name, description=meta["description"], inputSchema=meta["inputSchema"])
        for name, meta in TOOL_METADATA.items()
    ]
    resources = _resources()
    logger.info("Self-test OK: %s tools, %s resources", len(tools), len(resources))
