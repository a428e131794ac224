"""Monitor schemas for API."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from ..constants import MonitorType


class MonitorCreate(BaseModel):
    """Schema for creating a new monitor."""
    name: str = Field(..., min_length=1, max_length=255)
    target: str = Field(..., min_length=1)
    type: MonitorType = MonitorType.HTTP


class MonitorUpdate(MonitorCreate):
    """Schema for editing a monitor. All editable fields are replaced."""


class MonitorPause(BaseModel):
    """Pause or resume a monitor."""
    paused: bool


class MonitorResponse(BaseModel):
    """Schema for monitor in API responses."""
    id: int
    name: str
    target: str
    type: str
    status: str  # unknown, up, slow, down
    response_time_ms: int
    last_checked_at: Optional[datetime] = None
    paused: bool
    created_at: datetime
    
    class Config:
        from_attributes = True


class CheckRecordResponse(BaseModel):
    """A single historical check."""
    id: int
    status: str
    response_time_ms: int
    error_message: Optional[str] = None
    checked_at: datetime
    
    class Config:
        from_attributes = True


class UptimeResponse(BaseModel):
    """Trailing 24 hour uptime of a monitor."""
    uptime: float
