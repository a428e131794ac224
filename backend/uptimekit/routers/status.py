"""Status overview API for dashboard."""
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import Monitor
from ..schemas.status import StatusOverview, TickResponse
from ..services.aggregation import summarize
from ..services.scheduler import SchedulerService
from .deps import get_scheduler

router = APIRouter(prefix="/api/status", tags=["status"])


@router.get("/overview", response_model=StatusOverview)
async def get_status_overview(db: AsyncSession = Depends(get_db)):
    """Status counts, latency, and health score from live monitor state."""
    result = await db.execute(select(Monitor))
    summary = summarize(result.scalars().all())
    
    return StatusOverview(
        total_monitors=summary.total,
        monitors_up=summary.up,
        monitors_down=summary.down,
        monitors_slow=summary.slow,
        monitors_unknown=summary.unknown,
        issues=summary.issues,
        avg_response_time_ms=summary.avg_response_time_ms,
        p95_response_time_ms=summary.p95_response_time_ms,
        uptime_percent=summary.uptime_percent,
        health_score=summary.health_score,
    )


@router.post("/run", response_model=TickResponse)
async def run_checks_now(scheduler: SchedulerService = Depends(get_scheduler)):
    """Run one scheduling tick immediately and wait for it to settle."""
    report = await scheduler.run_tick()
    return TickResponse(checked=report.checked, failed=report.failed, skipped=report.skipped)
