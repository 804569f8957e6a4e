"""Duration and timestamp parsing for range queries.

Durations follow the Prometheus/Go grammar (``1h30m``, ``250ms``, ``1.5h``)
with two extra suffixes, ``d`` and ``w``, meaning exactly 24 hours and 7 x 24
hours. Timestamps are RFC3339 strings or Unix epoch seconds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from .exceptions import InvalidFormatError, UsageError
from .types import TimeWindow

_UNIT_MICROSECONDS: dict[str, Decimal] = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),  # U+00B5 micro sign
    "μs": Decimal(1),  # U+03BC greek mu
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}

_NUMBER = r"(?:\d+(?:\.\d*)?|\.\d+)"
_UNIT = r"(?:ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"([-+]?)((?:{_NUMBER}{_UNIT})+)")
_DURATION_PART_RE = re.compile(rf"({_NUMBER})({_UNIT})")
_CALENDAR_RE = re.compile(r"([-+]?\d+)([dw])")

_CALENDAR_UNITS: dict[str, timedelta] = {
    "d": timedelta(hours=24),
    "w": timedelta(hours=7 * 24),
}

_RFC3339_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[Zz]|[+-]\d{2}:\d{2})"
)
_UNIX_RE = re.compile(r"[-+]?\d+")


def parse_duration(text: str) -> timedelta:
    """Parse a duration string such as ``30s``, ``1h30m``, ``2d`` or ``1w``."""

    if not text:
        raise InvalidFormatError("empty duration")

    calendar = _CALENDAR_RE.fullmatch(text)
    if calendar:
        count, unit = calendar.groups()
        try:
            return int(count) * _CALENDAR_UNITS[unit]
        except OverflowError as exc:
            raise InvalidFormatError(f"duration out of range: {text}") from exc
    if text[-1] in _CALENDAR_UNITS and len(text) > 1:
        label = "weeks" if text[-1] == "w" else "days"
        raise InvalidFormatError(f"invalid {label} format: {text}")

    if text in ("0", "+0", "-0"):
        return timedelta(0)

    match = _DURATION_RE.fullmatch(text)
    if not match:
        raise InvalidFormatError(f"invalid duration: {text!r}")

    sign, body = match.groups()
    total = Decimal(0)
    for number, unit in _DURATION_PART_RE.findall(body):
        total += Decimal(number) * _UNIT_MICROSECONDS[unit]
    try:
        duration = timedelta(microseconds=int(total.to_integral_value()))
    except OverflowError as exc:
        raise InvalidFormatError(f"duration out of range: {text}") from exc
    return -duration if sign == "-" else duration


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC3339 timestamp or Unix epoch seconds into an aware datetime.

    Unix timestamps come back in the local timezone of the process. The
    instant is the same either way, only the attached offset differs.
    """

    value = text or ""
    if _RFC3339_RE.fullmatch(value):
        normalised = value[:-1] + "+00:00" if value[-1] in "Zz" else value
        try:
            return datetime.fromisoformat(normalised)
        except ValueError:
            pass

    if _UNIX_RE.fullmatch(value):
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc).astimezone()
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidFormatError(f"timestamp out of range: {text}") from exc

    raise InvalidFormatError("timestamp must be RFC3339 format or Unix timestamp")


@dataclass(frozen=True, slots=True)
class Lookback:
    """Window ending now and reaching ``duration`` into the past."""

    duration: timedelta

    def bounds(self, now: datetime) -> tuple[datetime, datetime]:
        return now - self.duration, now


@dataclass(frozen=True, slots=True)
class Explicit:
    """Window with caller-provided bounds."""

    start: datetime
    end: datetime

    def bounds(self, now: datetime) -> tuple[datetime, datetime]:
        return self.start, self.end


TimeSpec = Lookback | Explicit


def resolve_time_spec(
    start: str | None = None,
    end: str | None = None,
    duration: str | None = None,
) -> TimeSpec:
    """Turn the loosely-typed window arguments into a ``TimeSpec``.

    ``duration`` must be used alone; otherwise both ``start`` and ``end`` are
    required. Empty strings count as absent.
    """

    if duration:
        if start or end:
            raise UsageError(
                "'duration' cannot be combined with 'start' or 'end'; "
                "use either 'duration' alone or both 'start' and 'end'"
            )
        return Lookback(parse_duration(duration))

    if start and end:
        return Explicit(parse_timestamp(start), parse_timestamp(end))

    if start or end:
        raise UsageError("both 'start' and 'end' must be provided together")
    raise UsageError("either 'duration' or both 'start' and 'end' must be provided")


def build_window(spec: TimeSpec, step: timedelta, now: datetime) -> TimeWindow:
    """Materialise ``spec`` at ``now`` and check the window invariants."""

    if step <= timedelta(0):
        raise UsageError("'step' must be a positive duration")

    try:
        start, end = spec.bounds(now)
    except OverflowError as exc:
        raise UsageError("time window is out of range") from exc
    if start >= end:
        raise UsageError(
            f"start must be before end (start={start.isoformat()}, end={end.isoformat()})"
        )
    return TimeWindow(start=start, end=end, step=step)
