"""Shared helpers for MCP tool implementations."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastmcp.exceptions import ToolError

from ...core.exceptions import ObsMCPError
from ...core.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def tool_errors(tool_name: str) -> Iterator[None]:
    """Report domain failures to the MCP caller as tool errors."""

    try:
        yield
    except ObsMCPError as exc:
        logger.warning(
            "mcp_tool_failed",
            tool=tool_name,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise ToolError(str(exc)) from exc
