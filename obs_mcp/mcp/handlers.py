"""Transport-independent tool handlers.

Both the stdio and HTTP transports reach the same ``MetricsToolHandlers``
instance through the FastMCP tool registry; only the pump differs.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from ..core.logging_config import get_logger
from ..core.timeutils import build_window, parse_duration, resolve_time_spec
from ..core.types import MetricsBackend, QueryResult

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class MetricsToolHandlers:
    """Validate tool arguments and forward them to the metrics backend."""

    def __init__(self, backend: MetricsBackend, clock: Clock = utc_now) -> None:
        self._backend = backend
        self._clock = clock

    async def list_metrics(self) -> list[str]:
        return await self._backend.list_metrics()

    async def execute_range_query(
        self,
        query: str,
        step: str,
        start: str | None = None,
        end: str | None = None,
        duration: str | None = None,
    ) -> QueryResult:
        spec = resolve_time_spec(start=start, end=end, duration=duration)
        window = build_window(spec, parse_duration(step), now=self._clock())
        logger.info(
            "range_query_resolved",
            query=query,
            spec=type(spec).__name__.lower(),
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            step=step,
        )
        return await self._backend.execute_range_query(query, window)
