"""Database models."""
from .monitor import Monitor
from .check_record import CheckRecord

__all__ = ["Monitor", "CheckRecord"]
