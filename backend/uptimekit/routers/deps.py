"""Shared router dependencies."""
from fastapi import Request

from ..services.history import HistoryStore
from ..services.scheduler import SchedulerService


def get_store(request: Request) -> HistoryStore:
    """History store attached to the application."""
    return request.app.state.store


def get_scheduler(request: Request) -> SchedulerService:
    """Scheduler attached to the application."""
    return request.app.state.scheduler
