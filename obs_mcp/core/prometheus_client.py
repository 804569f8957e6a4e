"""Async Prometheus HTTP API client."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from .config import DEFAULT_PROMETHEUS_URL
from .exceptions import BackendQueryFailed, BackendUnavailable, ConfigurationError
from .http_client import async_http_client
from .logging_config import get_logger
from .types import QueryResult, TimeWindow

logger = get_logger(__name__)

METRIC_NAME_LABEL = "__name__"
LIST_METRICS_LOOKBACK = timedelta(hours=1)
QUERY_TIMEOUT_SECONDS = 30.0
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def _format_seconds(value: timedelta) -> str:
    """Render seconds exactly, the way the Prometheus API accepts them (``15``, ``0.0001``)."""

    micros = value // _MICROSECOND
    sign = "-" if micros < 0 else ""
    seconds, fraction = divmod(abs(micros), 1_000_000)
    if not fraction:
        return f"{sign}{seconds}"
    return f"{sign}{seconds}.{fraction:06d}".rstrip("0")


def _format_time(value: datetime) -> str:
    return _format_seconds(value - _EPOCH)


def _format_duration(value: timedelta) -> str:
    return _format_seconds(value)


class PrometheusClient:
    """Minimal async client for the Prometheus query API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        url = (base_url or "").strip() or DEFAULT_PROMETHEUS_URL
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise ConfigurationError(f"error creating prometheus client: {exc}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ConfigurationError(
                f"error creating prometheus client: invalid URL {url!r}"
            )

        self._base_url = url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        try:
            async with async_http_client(
                base_url=self._base_url,
                timeout=timeout or self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method=method.upper(),
                    url=path,
                    params=params,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as exc:
            raise BackendQueryFailed(f"prometheus request timed out: {path}") from exc
        except httpx.TransportError as exc:
            raise BackendUnavailable(
                f"prometheus unreachable at {self._base_url}: {exc}"
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise BackendQueryFailed(
                f"prometheus responded with {response.status_code}: {response.text[:200]}"
            ) from exc

        if not isinstance(payload, dict):
            raise BackendQueryFailed(f"unexpected prometheus response: {payload!r}")

        if response.is_error or payload.get("status") != "success":
            error_type = payload.get("errorType") or "unknown"
            error = payload.get("error") or response.reason_phrase
            raise BackendQueryFailed(
                f"prometheus responded with {response.status_code} ({error_type}): {error}"
            )

        return payload

    async def list_metrics(self) -> list[str]:
        """Return metric names that have samples within the last hour."""

        end = datetime.now(tz=timezone.utc)
        start = end - LIST_METRICS_LOOKBACK
        try:
            payload = await self._request(
                "GET",
                f"/api/v1/label/{METRIC_NAME_LABEL}/values",
                params={"start": _format_time(start), "end": _format_time(end)},
            )
        except BackendQueryFailed as exc:
            raise BackendQueryFailed(f"error fetching metric names: {exc}") from exc

        metrics = [str(value) for value in payload.get("data") or []]
        logger.debug("prometheus_metrics_listed", count=len(metrics))
        return metrics

    async def execute_range_query(self, query: str, window: TimeWindow) -> QueryResult:
        """Evaluate ``query`` over ``window``, bounded by a fixed 30s timeout."""

        form = {
            "query": query,
            "start": _format_time(window.start),
            "end": _format_time(window.end),
            "step": _format_duration(window.step),
            "timeout": f"{int(QUERY_TIMEOUT_SECONDS)}s",
        }
        logger.debug(
            "prometheus_range_query",
            query=query,
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            step=form["step"],
        )

        try:
            payload = await asyncio.wait_for(
                self._request(
                    "POST",
                    "/api/v1/query_range",
                    data=form,
                    timeout=QUERY_TIMEOUT_SECONDS,
                ),
                timeout=QUERY_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as exc:
            raise BackendQueryFailed(
                f"error executing range query: timed out after {QUERY_TIMEOUT_SECONDS:.0f}s"
            ) from exc
        except BackendQueryFailed as exc:
            raise BackendQueryFailed(f"error executing range query: {exc}") from exc

        data = payload.get("data") or {}
        result: QueryResult = {"resultType": "matrix", "result": data.get("result", [])}

        warnings = payload.get("warnings") or []
        if warnings:
            logger.info("prometheus_query_warnings", query=query, warnings=warnings)
            result["warnings"] = [str(warning) for warning in warnings]
        return result
