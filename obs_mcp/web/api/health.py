"""Health check endpoints."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_class=PlainTextResponse)
async def health_check() -> str:
    """Liveness probe; never touches the metrics backend."""

    return "OK"
