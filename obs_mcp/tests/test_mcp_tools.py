import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from obs_mcp.core.exceptions import BackendUnavailable
from obs_mcp.mcp.server import build_mcp_server, list_tool_descriptors


@pytest.mark.asyncio
async def test_tool_descriptors(fake_backend):
    mcp = build_mcp_server(fake_backend)

    descriptors = {item["name"]: item for item in await list_tool_descriptors(mcp)}

    assert set(descriptors) == {"list_metrics", "execute_range_query"}

    list_schema = descriptors["list_metrics"]["inputSchema"]
    assert list_schema["type"] == "object"
    assert list_schema["properties"] == {}

    range_schema = descriptors["execute_range_query"]["inputSchema"]
    assert set(range_schema["properties"]) == {"query", "step", "start", "end", "duration"}
    assert set(range_schema["required"]) == {"query", "step"}
    assert "PromQL" in descriptors["execute_range_query"]["description"]


@pytest.mark.asyncio
async def test_list_metrics_over_protocol(fake_backend):
    mcp = build_mcp_server(fake_backend)

    async with Client(mcp) as client:
        result = await client.call_tool("list_metrics", {})

    assert set(result.data) == set(fake_backend.metrics)


@pytest.mark.asyncio
async def test_execute_range_query_over_protocol(fake_backend, fixed_clock):
    mcp = build_mcp_server(fake_backend, clock=fixed_clock)

    async with Client(mcp) as client:
        result = await client.call_tool(
            "execute_range_query", {"query": "up", "step": "15s", "duration": "30m"}
        )

    payload = result.structured_content
    assert payload["resultType"] == "matrix"
    assert payload["result"] == fake_backend.result
    assert "warnings" not in payload
    _, window = fake_backend.queries[0]
    assert window.end == fixed_clock()


@pytest.mark.asyncio
async def test_conflicting_window_arguments_are_tool_errors(fake_backend):
    mcp = build_mcp_server(fake_backend)

    async with Client(mcp) as client:
        with pytest.raises(ToolError, match="duration"):
            await client.call_tool(
                "execute_range_query",
                {"query": "up", "step": "15s", "duration": "1h", "start": "1714500000"},
            )

    assert fake_backend.queries == []


@pytest.mark.asyncio
async def test_backend_failure_is_tool_error(fake_backend):
    async def unavailable():
        raise BackendUnavailable("prometheus unreachable at http://localhost:9090")

    fake_backend.list_metrics = unavailable
    mcp = build_mcp_server(fake_backend)

    async with Client(mcp) as client:
        result = await client.call_tool("list_metrics", {}, raise_on_error=False)

    assert result.is_error
    assert "unreachable" in result.content[0].text
