"""History store - persistence seam for the scheduler and aggregates.

The store owns Check Records. Each check result is written in a single
transaction that updates the monitor's live fields and appends the record,
so readers never see one without the other.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..constants import MonitorStatus
from ..database import async_session
from ..exceptions import StoreError
from ..models import CheckRecord, Monitor
from ..utils.db_utils import retry_on_lock
from ..utils.time import utcnow
from .aggregation import ChartPoint, bucketize, uptime_percentage, uptime_value

logger = logging.getLogger(__name__)

# Chart metrics
UPTIME = "uptime"
RESPONSE_TIME = "response_time"


class HistoryStore:
    """Reads and writes monitors' live state and check history."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory or async_session

    async def list_monitors(self) -> List[Monitor]:
        """All monitors ordered by id."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Monitor).order_by(Monitor.id))
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load monitors: {e}") from e

    async def write_check_result(
        self,
        monitor_id: int,
        status: str,
        response_time_ms: int,
        error_message: Optional[str] = None,
        checked_at: Optional[datetime] = None,
    ) -> CheckRecord:
        """Update a monitor's live fields and append a Check Record atomically.

        Raises:
            StoreError: the monitor no longer exists or the write failed
        """
        checked_at = checked_at or utcnow()
        status = MonitorStatus(status).value

        async def _write() -> CheckRecord:
            async with self._session_factory() as session:
                async with session.begin():
                    monitor = await session.get(Monitor, monitor_id)
                    if monitor is None:
                        raise StoreError(f"Monitor {monitor_id} no longer exists")

                    monitor.status = status
                    monitor.response_time_ms = response_time_ms
                    monitor.last_checked_at = checked_at

                    record = CheckRecord(
                        monitor_id=monitor_id,
                        status=status,
                        response_time_ms=response_time_ms,
                        error_message=error_message,
                        checked_at=checked_at,
                    )
                    session.add(record)
                return record

        try:
            return await retry_on_lock(_write)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not record check for monitor {monitor_id}: {e}") from e

    async def query_uptime_percentage(self, monitor_id: int, window_hours: int = 24) -> float:
        """Percentage of up checks in the trailing window, 100 with no data."""
        cutoff = utcnow() - timedelta(hours=window_hours)
        query = (
            select(
                func.count(CheckRecord.id),
                func.sum(case((CheckRecord.status == MonitorStatus.UP.value, 1), else_=0)),
            )
            .where(
                CheckRecord.monitor_id == monitor_id,
                CheckRecord.checked_at > cutoff,
            )
        )
        try:
            async with self._session_factory() as session:
                total, up_count = (await session.execute(query)).one()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not compute uptime for monitor {monitor_id}: {e}") from e
        return uptime_percentage(up_count or 0, total or 0)

    async def query_chart_buckets(
        self,
        monitor_id: Optional[int] = None,
        window_hours: int = 24,
        bucket_minutes: int = 60,
        metric: str = UPTIME,
    ) -> List[ChartPoint]:
        """Time-bucketed uptime or response time series.

        Without a monitor id the series covers every monitor's records.
        """
        if metric not in (UPTIME, RESPONSE_TIME):
            raise ValueError(f"Unknown chart metric: {metric}")

        cutoff = utcnow() - timedelta(hours=window_hours)
        query = (
            select(CheckRecord.checked_at, CheckRecord.status, CheckRecord.response_time_ms)
            .where(CheckRecord.checked_at > cutoff)
            .order_by(CheckRecord.checked_at)
        )
        if monitor_id is not None:
            query = query.where(CheckRecord.monitor_id == monitor_id)

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(query)).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load chart data: {e}") from e

        if metric == UPTIME:
            samples = ((checked_at, uptime_value(status)) for checked_at, status, _ in rows)
        else:
            samples = ((checked_at, float(rt or 0)) for checked_at, _, rt in rows)
        return bucketize(samples, bucket_minutes)

    async def query_history(self, monitor_id: int, limit: int = 30) -> List[CheckRecord]:
        """Most recent Check Records for a monitor, newest first."""
        query = (
            select(CheckRecord)
            .where(CheckRecord.monitor_id == monitor_id)
            .order_by(CheckRecord.checked_at.desc(), CheckRecord.id.desc())
            .limit(limit)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load history for monitor {monitor_id}: {e}") from e
