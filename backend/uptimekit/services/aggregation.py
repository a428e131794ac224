"""Aggregates derived from check history and live monitor state.

Uptime and chart series are computed from Check Records; percentile
latency and the health score use only the latest live values of the
currently loaded monitors.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from ..constants import ISSUE_STATUSES, MonitorStatus

# Latency at which the latency component of the health score reaches zero
MAX_LATENCY_MS = 2000

HEALTH_WEIGHTS = {"uptime": 0.5, "issues": 0.3, "latency": 0.2}


@dataclass
class ChartPoint:
    """One time bucket of a chart series."""
    time: datetime
    value: float


@dataclass
class FleetSummary:
    """Dashboard view of all monitors' live state."""
    total: int
    up: int
    down: int
    slow: int
    unknown: int
    issues: int
    avg_response_time_ms: int
    p95_response_time_ms: int
    uptime_percent: float
    health_score: Optional[int]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round_percent(value: float) -> float:
    """One decimal, ties rounded up."""
    return math.floor(value * 10 + 0.5) / 10


def uptime_percentage(up_count: int, total_count: int) -> float:
    """Share of up checks in percent, one decimal. No data counts as 100."""
    if not total_count:
        return 100.0
    return _round_percent(up_count / total_count * 100)


def percentile(values: Sequence[float], p: float) -> int:
    """Percentile with linear interpolation between order statistics."""
    if not values:
        return 0
    ordered = sorted(values)
    rank = (p / 100) * (len(ordered) - 1)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return _round_half_up(ordered[lower])
    weight = rank - lower
    return _round_half_up(ordered[lower] * (1 - weight) + ordered[upper] * weight)


def latest_response_times(monitors: Iterable) -> List[float]:
    """Positive numeric live response times of the given monitors."""
    values = []
    for monitor in monitors:
        value = monitor.response_time_ms
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if value > 0:
            values.append(value)
    return values


def health_score(total: int, up: int, issues: int, p95_ms: float) -> Optional[int]:
    """Composite 0-100 score blending uptime, issue rate and P95 latency."""
    if total == 0:
        return None
    latency = max(0.0, min(1.0, 1 - p95_ms / MAX_LATENCY_MS))
    raw = (
        (up / total) * HEALTH_WEIGHTS["uptime"]
        + (1 - issues / total) * HEALTH_WEIGHTS["issues"]
        + latency * HEALTH_WEIGHTS["latency"]
    )
    return _round_half_up(raw * 100)


def summarize(monitors: Sequence) -> FleetSummary:
    """Count monitors by status and derive latency and health figures."""
    counts = {status.value: 0 for status in MonitorStatus}
    for monitor in monitors:
        status = monitor.status if monitor.status in counts else MonitorStatus.UNKNOWN.value
        counts[status] += 1

    total = len(monitors)
    issues = sum(counts[s] for s in ISSUE_STATUSES)
    p95 = percentile(latest_response_times(monitors), 95)
    avg = 0
    if total:
        avg = _round_half_up(sum(m.response_time_ms or 0 for m in monitors) / total)

    return FleetSummary(
        total=total,
        up=counts[MonitorStatus.UP.value],
        down=counts[MonitorStatus.DOWN.value],
        slow=counts[MonitorStatus.SLOW.value],
        unknown=counts[MonitorStatus.UNKNOWN.value],
        issues=issues,
        avg_response_time_ms=avg,
        p95_response_time_ms=p95,
        uptime_percent=_round_percent(counts[MonitorStatus.UP.value] / total * 100) if total else 0.0,
        health_score=health_score(total, counts[MonitorStatus.UP.value], issues, p95),
    )


def bucket_start(timestamp: datetime, bucket_minutes: int) -> datetime:
    """Floor a timestamp to the start of its bucket within the day."""
    minute_of_day = timestamp.hour * 60 + timestamp.minute
    floored = minute_of_day - minute_of_day % bucket_minutes
    midnight = timestamp.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(minutes=floored)


def bucketize(samples: Iterable[Tuple[datetime, float]], bucket_minutes: int) -> List[ChartPoint]:
    """Average (timestamp, value) samples into fixed-width time buckets.

    Bucket widths must divide a day evenly. Empty buckets are omitted and
    the series is ordered by time ascending.
    """
    if bucket_minutes <= 0 or 1440 % bucket_minutes:
        raise ValueError(f"Bucket width must divide a day, got {bucket_minutes} minutes")

    sums = {}
    for timestamp, value in samples:
        key = bucket_start(timestamp, bucket_minutes)
        total, count = sums.get(key, (0.0, 0))
        sums[key] = (total + value, count + 1)

    return [
        ChartPoint(time=key, value=total / count)
        for key, (total, count) in sorted(sums.items())
    ]


def uptime_value(status: str) -> float:
    """Uptime contribution of one check: 100 when up, else 0."""
    return 100.0 if status == MonitorStatus.UP.value else 0.0
