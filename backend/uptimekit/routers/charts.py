"""Fleet-wide chart API."""
from typing import List

from fastapi import APIRouter, Depends

from ..schemas.status import ChartPoint
from ..services import aggregation
from ..services.history import HistoryStore, RESPONSE_TIME, UPTIME
from .deps import get_store

router = APIRouter(prefix="/api/charts", tags=["charts"])

# Fleet charts use hourly buckets, single-monitor charts 10-minute buckets
FLEET_BUCKET_MINUTES = 60
MONITOR_BUCKET_MINUTES = 10
CHART_WINDOW_HOURS = 24


def to_chart_points(points: List[aggregation.ChartPoint]) -> List[ChartPoint]:
    """Serialize buckets with an HH:MM label of the bucket start."""
    return [
        ChartPoint(
            time=point.time.strftime("%H:%M"),
            timestamp=point.time,
            value=round(point.value, 2),
        )
        for point in points
    ]


@router.get("/uptime", response_model=List[ChartPoint])
async def get_uptime_chart(store: HistoryStore = Depends(get_store)):
    """Hourly uptime across all monitors over the last 24 hours."""
    points = await store.query_chart_buckets(
        window_hours=CHART_WINDOW_HOURS,
        bucket_minutes=FLEET_BUCKET_MINUTES,
        metric=UPTIME,
    )
    return to_chart_points(points)


@router.get("/response-time", response_model=List[ChartPoint])
async def get_response_time_chart(store: HistoryStore = Depends(get_store)):
    """Hourly average response time across all monitors over the last 24 hours."""
    points = await store.query_chart_buckets(
        window_hours=CHART_WINDOW_HOURS,
        bucket_minutes=FLEET_BUCKET_MINUTES,
        metric=RESPONSE_TIME,
    )
    return to_chart_points(points)
