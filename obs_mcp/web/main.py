"""FastAPI application hosting the MCP endpoint over HTTP."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastmcp import FastMCP
from starlette.types import ASGIApp, Receive, Scope, Send

from ..core.logging_config import get_logger
from ..mcp.server import SERVER_VERSION
from .api.health import router as health_router

logger = get_logger(__name__)

MCP_ENDPOINT = "/mcp"


class RootPathForwarder:
    """ASGI shim that also serves the MCP endpoint on ``/``.

    Some MCP clients post to the server root instead of ``/mcp``.
    """

    def __init__(self, app: ASGIApp, target: str = MCP_ENDPOINT) -> None:
        self._app = app
        self._target = target

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"] in ("", "/"):
            scope = dict(scope, path=self._target, raw_path=self._target.encode())
        await self._app(scope, receive, send)


def create_app(mcp: FastMCP) -> FastAPI:
    """Build the HTTP application: MCP at ``/mcp`` and ``/``, plus ``/health``."""

    # Plain JSON replies: uvicorn drains those on shutdown, SSE streams get closed.
    mcp_app = mcp.http_app(path=MCP_ENDPOINT, stateless_http=True, json_response=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("http_server_startup", mcp_endpoint=MCP_ENDPOINT, server=mcp.name)
        async with mcp_app.lifespan(app):
            yield
        logger.info("http_server_shutdown")

    app = FastAPI(
        title="obs-mcp",
        version=SERVER_VERSION,
        description="MCP server exposing Prometheus metrics queries.",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.middleware("http")
    async def log_incoming_requests(request: Request, call_next):
        logger.info(
            "http_request_received",
            method=request.method,
            path=request.url.path,
            client=f"{request.client[0]}:{request.client[1]}" if request.client else "unknown",
            headers=dict(request.headers),
        )
        response = await call_next(request)
        logger.debug(
            "http_request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        return response

    app.include_router(health_router)
    app.mount("/", RootPathForwarder(mcp_app))
    return app
