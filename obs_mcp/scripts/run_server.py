"""Run the obs-mcp server.

Without ``--listen`` the server speaks MCP over stdin/stdout. With
``--listen ADDR`` (``:9100``, ``127.0.0.1:8080``, ``[::1]:8080``) it serves
MCP over HTTP at ``/mcp`` and ``/`` with a ``/health`` probe.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import signal
import sys
import threading
from collections.abc import Iterator

import uvicorn
from fastapi import FastAPI

from obs_mcp.core.config import get_settings
from obs_mcp.core.exceptions import ConfigurationError, TransportError
from obs_mcp.core.logging_config import configure_logging, get_logger
from obs_mcp.core.prometheus_client import PrometheusClient
from obs_mcp.mcp.server import SERVER_VERSION, build_mcp_server, list_tool_descriptors
from obs_mcp.web.main import create_app

SHUTDOWN_GRACE_PERIOD_SECONDS = 10
DEFAULT_HOST = "0.0.0.0"
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


def parse_listen_address(listen: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host binds every interface."""

    host, sep, port_text = listen.strip().rpartition(":")
    if not sep or not port_text.isdigit():
        raise ConfigurationError(f"invalid listen address {listen!r}, expected HOST:PORT")

    port = int(port_text)
    if port > 65535:
        raise ConfigurationError(f"invalid port in listen address {listen!r}")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or DEFAULT_HOST, port


def build_server_config(app: FastAPI, listen: str) -> uvicorn.Config:
    host, port = parse_listen_address(listen)
    return uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config=None,
        timeout_graceful_shutdown=SHUTDOWN_GRACE_PERIOD_SECONDS,
    )


class GracefulServer(uvicorn.Server):
    """uvicorn server that stops on SIGINT, SIGTERM or SIGHUP and exits cleanly.

    Stock uvicorn re-raises the captured signal after draining; this server
    returns from ``serve()`` instead.
    """

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.handle_exit, sig, None)
        try:
            yield
        finally:
            for sig in SHUTDOWN_SIGNALS:
                loop.remove_signal_handler(sig)


async def serve_http(app: FastAPI, listen: str) -> None:
    """Serve ``app`` until SIGINT, SIGTERM or SIGHUP, then drain for up to 10s."""

    logger = get_logger(__name__)
    server = GracefulServer(build_server_config(app, listen))

    logger.info("http_server_starting", listen=listen, mcp_endpoint="/mcp")
    try:
        await server.serve()
    except SystemExit as exc:
        raise TransportError(f"HTTP server failed on {listen}") from exc

    if not server.started:
        raise TransportError(f"HTTP server failed to start on {listen}")
    logger.info("http_server_shutdown_complete")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="obs-mcp",
        description="MCP server exposing Prometheus metrics queries.",
    )
    parser.add_argument(
        "--listen",
        default="",
        help="Listen address for HTTP mode (e.g., :9100, 127.0.0.1:8080); stdio when empty",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
        help="Override LOG_LEVEL",
    )
    parser.add_argument(
        "--list-tools",
        action="store_true",
        help="Print the tool descriptors as JSON and exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {SERVER_VERSION}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    configure_logging(args.log_level)
    logger = get_logger(__name__)

    settings = get_settings()
    try:
        client = PrometheusClient(
            settings.prometheus_url, timeout=settings.prometheus_timeout
        )
        mcp = build_mcp_server(client)

        if args.list_tools:
            descriptors = asyncio.run(list_tool_descriptors(mcp))
            print(json.dumps(descriptors, indent=2))
            return

        logger.info(
            "obs_mcp_startup",
            version=SERVER_VERSION,
            mode="http" if args.listen else "stdio",
            prometheus_url=client.base_url,
        )
        if args.listen:
            asyncio.run(serve_http(create_app(mcp), args.listen))
        else:
            asyncio.run(mcp.run_async(transport="stdio", show_banner=False))
    except (ConfigurationError, TransportError) as exc:
        logger.error("obs_mcp_fatal", error_type=type(exc).__name__, error=str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("obs_mcp_interrupted")


if __name__ == "__main__":
    main()
