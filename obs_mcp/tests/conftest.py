from datetime import datetime, timezone

import pytest

from obs_mcp.core.types import QueryResult, TimeWindow

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeBackend:
    """In-memory metrics backend recording every range query."""

    def __init__(self, metrics=None, result=None, warnings=None):
        self.metrics = list(metrics or ["up", "node_cpu_seconds_total", "http_requests_total"])
        self.result = result if result is not None else [
            {"metric": {"__name__": "up", "job": "prometheus"}, "values": [[1714561200, "1"]]}
        ]
        self.warnings = warnings or []
        self.queries: list[tuple[str, TimeWindow]] = []

    async def list_metrics(self) -> list[str]:
        return list(self.metrics)

    async def execute_range_query(self, query: str, window: TimeWindow) -> QueryResult:
        self.queries.append((query, window))
        payload: QueryResult = {"resultType": "matrix", "result": self.result}
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        return payload


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW
