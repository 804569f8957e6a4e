"""Shared type definitions."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, NotRequired, Protocol, TypedDict


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Concrete range-query window; always ``start < end`` and ``step > 0``."""

    start: datetime
    end: datetime
    step: timedelta


class QueryResult(TypedDict):
    """Range query payload handed back to the tool caller unmodified."""

    resultType: str
    result: Any
    warnings: NotRequired[list[str]]


class MetricsBackend(Protocol):
    """Operations the tool handlers need from a metrics backend."""

    async def list_metrics(self) -> list[str]: ...

    async def execute_range_query(self, query: str, window: TimeWindow) -> QueryResult: ...
