"""Services for probing, scheduling, and aggregating monitor checks."""
from .checker import CheckerService, Outcome
from .history import HistoryStore
from .scheduler import SchedulerService, TickReport

__all__ = ["CheckerService", "Outcome", "HistoryStore", "SchedulerService", "TickReport"]
