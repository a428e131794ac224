"""Pydantic schemas for API request/response models."""
from .monitor import (
    MonitorCreate,
    MonitorUpdate,
    MonitorPause,
    MonitorResponse,
    CheckRecordResponse,
    UptimeResponse,
)
from .status import (
    ChartPoint,
    StatusOverview,
    TickResponse,
)

__all__ = [
    "MonitorCreate",
    "MonitorUpdate",
    "MonitorPause",
    "MonitorResponse",
    "CheckRecordResponse",
    "UptimeResponse",
    "ChartPoint",
    "StatusOverview",
    "TickResponse",
]
