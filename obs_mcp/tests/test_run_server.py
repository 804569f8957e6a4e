import asyncio
import json
import os
import signal
import socket
import time

import httpx
import pytest
from fastapi import FastAPI

from obs_mcp.core.config import get_settings
from obs_mcp.core.exceptions import ConfigurationError, TransportError
from obs_mcp.core.types import QueryResult, TimeWindow
from obs_mcp.mcp.server import build_mcp_server
from obs_mcp.scripts import run_server
from obs_mcp.scripts.run_server import (
    SHUTDOWN_GRACE_PERIOD_SECONDS,
    build_server_config,
    parse_listen_address,
    serve_http,
)
from obs_mcp.web.main import create_app


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.mark.parametrize(
    ("listen", "expected"),
    [
        (":9100", ("0.0.0.0", 9100)),
        ("127.0.0.1:8080", ("127.0.0.1", 8080)),
        ("[::1]:8080", ("::1", 8080)),
        ("localhost:80", ("localhost", 80)),
    ],
)
def test_parse_listen_address(listen, expected):
    assert parse_listen_address(listen) == expected


@pytest.mark.parametrize("listen", ["9100", "host:", "host:http", ":70000"])
def test_parse_listen_address_rejects_invalid(listen):
    with pytest.raises(ConfigurationError):
        parse_listen_address(listen)


def test_server_config_uses_ten_second_grace_period():
    config = build_server_config(FastAPI(), ":9100")

    assert SHUTDOWN_GRACE_PERIOD_SECONDS == 10
    assert config.timeout_graceful_shutdown == 10
    assert config.host == "0.0.0.0"
    assert config.port == 9100


@pytest.mark.asyncio
async def test_serve_http_reports_listener_failure(monkeypatch):
    class FailingServer:
        def __init__(self, config):
            self.config = config
            self.started = False

        def handle_exit(self, sig, frame):
            pass

        async def serve(self):
            raise SystemExit(1)

    monkeypatch.setattr(run_server, "GracefulServer", FailingServer)

    with pytest.raises(TransportError):
        await serve_http(FastAPI(), "127.0.0.1:1")


def test_list_tools_prints_descriptors(capsys, monkeypatch):
    monkeypatch.delenv("PROMETHEUS_URL", raising=False)

    run_server.main(["--list-tools"])

    descriptors = json.loads(capsys.readouterr().out)
    assert {item["name"] for item in descriptors} == {"list_metrics", "execute_range_query"}


def test_invalid_prometheus_url_exits_non_zero(monkeypatch):
    monkeypatch.setenv("PROMETHEUS_URL", "ftp://prometheus")

    with pytest.raises(SystemExit) as excinfo:
        run_server.main(["--list-tools"])

    assert excinfo.value.code == 1


class SlowBackend:
    """Backend whose range queries take ``delay`` seconds to answer."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.query_started = asyncio.Event()

    async def list_metrics(self) -> list[str]:
        return ["up"]

    async def execute_range_query(self, query: str, window: TimeWindow) -> QueryResult:
        self.query_started.set()
        await asyncio.sleep(self.delay)
        return {"resultType": "matrix", "result": []}


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def _wait_until_healthy(client: httpx.AsyncClient) -> None:
    for _ in range(100):
        try:
            if (await client.get("/health")).status_code == 200:
                return
        except httpx.TransportError:
            pass
        await asyncio.sleep(0.05)
    raise AssertionError("server did not come up")


@pytest.mark.asyncio
@pytest.mark.parametrize("signum", [signal.SIGTERM, signal.SIGHUP])
async def test_shutdown_drains_in_flight_tool_call(signum):
    backend = SlowBackend(delay=1.5)
    app = create_app(build_mcp_server(backend))
    port = _free_port()
    server_task = asyncio.create_task(serve_http(app, f"127.0.0.1:{port}"))

    call = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/call",
        "params": {
            "name": "execute_range_query",
            "arguments": {"query": "up", "step": "15s", "duration": "1h"},
        },
    }
    headers = {
        "Accept": "application/json, text/event-stream",
        "Content-Type": "application/json",
    }

    async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}", timeout=15) as client:
        await _wait_until_healthy(client)
        in_flight = asyncio.create_task(client.post("/mcp", json=call, headers=headers))
        await asyncio.wait_for(backend.query_started.wait(), timeout=5)

        signalled_at = time.monotonic()
        os.kill(os.getpid(), signum)
        response = await in_flight

    await asyncio.wait_for(server_task, timeout=SHUTDOWN_GRACE_PERIOD_SECONDS)
    elapsed = time.monotonic() - signalled_at

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    assert response.json()["result"]["structuredContent"]["resultType"] == "matrix"
    # Shutdown finishes with the request, well inside the grace period.
    assert 1.0 <= elapsed < SHUTDOWN_GRACE_PERIOD_SECONDS
