"""Prometheus metrics MCP tools."""

from typing import Annotated, Any

from fastmcp import FastMCP
from pydantic import Field

from ...core.logging_config import get_logger
from ..handlers import MetricsToolHandlers
from .utils import tool_errors

logger = get_logger(__name__)

LIST_METRICS_DESCRIPTION = "List all available metrics in Prometheus"

EXECUTE_RANGE_QUERY_DESCRIPTION = """Execute a PromQL range query with flexible time specification.

For current time data queries, use only the 'duration' parameter to specify how far back
to look from now (e.g., '1h' for last hour, '30m' for last 30 minutes). In that case
YOU MUST NOT provide neither 'start' NOR 'end' at all.

For historical data queries, use explicit 'start' and 'end' times.
"""


def register_metrics_tools(mcp: FastMCP, handlers: MetricsToolHandlers) -> None:
    """Register ``list_metrics`` and ``execute_range_query`` on ``mcp``."""

    @mcp.tool(name="list_metrics", description=LIST_METRICS_DESCRIPTION)
    async def list_metrics() -> list[str]:
        logger.debug("mcp_tool_call", name="list_metrics")
        with tool_errors("list_metrics"):
            return await handlers.list_metrics()

    @mcp.tool(name="execute_range_query", description=EXECUTE_RANGE_QUERY_DESCRIPTION)
    async def execute_range_query(
        query: Annotated[str, Field(description="PromQL query string")],
        step: Annotated[
            str, Field(description="Query resolution step width (e.g., '15s', '1m', '1h')")
        ],
        start: Annotated[
            str | None,
            Field(description="Start time as RFC3339 or Unix timestamp (optional)"),
        ] = None,
        end: Annotated[
            str | None,
            Field(description="End time as RFC3339 or Unix timestamp (optional)"),
        ] = None,
        duration: Annotated[
            str | None,
            Field(
                description="Duration to look back from now (e.g., '1h', '30m', '1d', '2w') (optional)"
            ),
        ] = None,
    ) -> dict[str, Any]:
        logger.debug(
            "mcp_tool_call",
            name="execute_range_query",
            query=query,
            step=step,
            start=start,
            end=end,
            duration=duration,
        )
        with tool_errors("execute_range_query"):
            result = await handlers.execute_range_query(
                query=query, step=step, start=start, end=end, duration=duration
            )
        return dict(result)
