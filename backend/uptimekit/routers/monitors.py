"""Monitor CRUD API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..models import Monitor
from ..schemas.monitor import (
    CheckRecordResponse,
    MonitorCreate,
    MonitorPause,
    MonitorResponse,
    MonitorUpdate,
    UptimeResponse,
)
from ..schemas.status import ChartPoint
from ..services.history import HistoryStore, RESPONSE_TIME, UPTIME
from ..utils.db_utils import retry_on_lock
from .charts import CHART_WINDOW_HOURS, MONITOR_BUCKET_MINUTES, to_chart_points
from .deps import get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/monitors", tags=["monitors"])

DUPLICATE_DETAIL = "A monitor with this URL and type already exists"


async def _get_monitor_or_404(db: AsyncSession, monitor_id: int) -> Monitor:
    monitor = await db.get(Monitor, monitor_id)
    if not monitor:
        raise HTTPException(status_code=404, detail="Monitor not found")
    return monitor


async def _commit_or_400(db: AsyncSession):
    """Commit, turning a (target, type) collision into a 400."""
    async def do_commit():
        await db.commit()

    try:
        await retry_on_lock(do_commit)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail=DUPLICATE_DETAIL)


@router.get("", response_model=List[MonitorResponse])
async def list_monitors(db: AsyncSession = Depends(get_db)):
    """List all monitors with their live status."""
    result = await db.execute(select(Monitor).order_by(Monitor.id))
    return result.scalars().all()


@router.post("", response_model=MonitorResponse, status_code=201)
async def create_monitor(monitor: MonitorCreate, db: AsyncSession = Depends(get_db)):
    """Create a new monitor. Its status stays unknown until first checked."""
    db_monitor = Monitor(
        name=monitor.name.strip(),
        target=monitor.target.strip(),
        type=monitor.type.value,
        status="unknown",
        response_time_ms=0,
        paused=False,
    )
    db.add(db_monitor)
    await _commit_or_400(db)
    await db.refresh(db_monitor)

    logger.info(f"Added {db_monitor.type} monitor {db_monitor.id} for {db_monitor.target}")
    return db_monitor


@router.get("/{monitor_id}", response_model=MonitorResponse)
async def get_monitor(monitor_id: int, db: AsyncSession = Depends(get_db)):
    """Get a specific monitor by ID."""
    return await _get_monitor_or_404(db, monitor_id)


@router.put("/{monitor_id}", response_model=MonitorResponse)
async def update_monitor(
    monitor_id: int,
    update: MonitorUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Edit a monitor's name, target and type."""
    monitor = await _get_monitor_or_404(db, monitor_id)

    monitor.name = update.name.strip()
    monitor.target = update.target.strip()
    monitor.type = update.type.value

    await _commit_or_400(db)
    await db.refresh(monitor)
    return monitor


@router.patch("/{monitor_id}/pause")
async def pause_monitor(
    monitor_id: int,
    pause: MonitorPause,
    db: AsyncSession = Depends(get_db),
):
    """Pause or resume checking of a monitor."""
    monitor = await _get_monitor_or_404(db, monitor_id)
    monitor.paused = pause.paused

    async def do_commit():
        await db.commit()

    await retry_on_lock(do_commit)
    return {
        "paused": pause.paused,
        "message": "Monitoring paused" if pause.paused else "Monitoring resumed",
    }


@router.delete("/{monitor_id}", status_code=204)
async def delete_monitor(monitor_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a monitor together with its whole check history."""
    monitor = await _get_monitor_or_404(db, monitor_id)
    await db.delete(monitor)

    async def do_commit():
        await db.commit()

    await retry_on_lock(do_commit)
    logger.info(f"Deleted monitor {monitor_id}")


@router.get("/{monitor_id}/uptime", response_model=UptimeResponse)
async def get_monitor_uptime(monitor_id: int, store: HistoryStore = Depends(get_store)):
    """Uptime percentage over the last 24 hours (100 when there is no data)."""
    uptime = await store.query_uptime_percentage(monitor_id, window_hours=24)
    return UptimeResponse(uptime=uptime)


@router.get("/{monitor_id}/history", response_model=List[CheckRecordResponse])
async def get_monitor_history(
    monitor_id: int,
    limit: int = Query(default=settings.history_limit, ge=1, le=1000),
    store: HistoryStore = Depends(get_store),
):
    """Most recent checks of a monitor, newest first."""
    return await store.query_history(monitor_id, limit=limit)


@router.get("/{monitor_id}/chart/uptime", response_model=List[ChartPoint])
async def get_monitor_uptime_chart(monitor_id: int, store: HistoryStore = Depends(get_store)):
    """Uptime in 10-minute buckets over the last 24 hours."""
    points = await store.query_chart_buckets(
        monitor_id,
        window_hours=CHART_WINDOW_HOURS,
        bucket_minutes=MONITOR_BUCKET_MINUTES,
        metric=UPTIME,
    )
    return to_chart_points(points)


@router.get("/{monitor_id}/chart/response-time", response_model=List[ChartPoint])
async def get_monitor_response_time_chart(monitor_id: int, store: HistoryStore = Depends(get_store)):
    """Average response time in 10-minute buckets over the last 24 hours."""
    points = await store.query_chart_buckets(
        monitor_id,
        window_hours=CHART_WINDOW_HOURS,
        bucket_minutes=MONITOR_BUCKET_MINUTES,
        metric=RESPONSE_TIME,
    )
    return to_chart_points(points)
