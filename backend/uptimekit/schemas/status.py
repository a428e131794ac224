"""Chart and dashboard schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class ChartPoint(BaseModel):
    """One bucket of a chart series."""
    time: str  # HH:MM of the bucket start (UTC)
    timestamp: datetime
    value: float


class StatusOverview(BaseModel):
    """Dashboard overview data."""
    total_monitors: int
    monitors_up: int
    monitors_down: int
    monitors_slow: int
    monitors_unknown: int
    issues: int
    avg_response_time_ms: int
    p95_response_time_ms: int
    uptime_percent: float
    health_score: Optional[int] = None


class TickResponse(BaseModel):
    """Result of running one scheduling tick on demand."""
    checked: List[int]
    failed: List[int]
    skipped: List[int]
