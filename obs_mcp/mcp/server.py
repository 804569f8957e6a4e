"""FastMCP server configuration and lifecycle helpers."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from ..core.logging_config import get_logger
from ..core.types import MetricsBackend
from .handlers import Clock, MetricsToolHandlers, utc_now
from .tools import register_metrics_tools

logger = get_logger(__name__)

SERVER_NAME = "obs-mcp"
SERVER_VERSION = "1.0.0"

EMPTY_INPUT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


def build_mcp_server(backend: MetricsBackend, clock: Clock = utc_now) -> FastMCP:
    """Create the FastMCP server with every metrics tool registered."""

    mcp = FastMCP(name=SERVER_NAME, version=SERVER_VERSION)
    register_metrics_tools(mcp, MetricsToolHandlers(backend, clock=clock))
    return mcp


async def list_tool_descriptors(mcp: FastMCP) -> list[dict[str, Any]]:
    """Return name, description and input schema for every enabled tool."""

    tools = await mcp.get_tools()
    descriptors: list[dict[str, Any]] = []

    for tool in tools.values():
        if not tool.enabled:
            continue

        mcp_tool = tool.to_mcp_tool()
        descriptors.append(
            {
                "name": mcp_tool.name,
                "description": mcp_tool.description or "",
                "inputSchema": mcp_tool.inputSchema or dict(EMPTY_INPUT_SCHEMA),
            }
        )

    logger.debug("mcp_tools_listed", count=len(descriptors))
    return descriptors
