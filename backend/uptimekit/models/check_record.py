"""CheckRecord model - append-only probe history."""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.time import utcnow


class CheckRecord(Base):
    """One probe result. Never updated; removed only with its monitor."""
    
    __tablename__ = "monitor_history"
    __table_args__ = (
        Index("ix_monitor_history_monitor_checked", "monitor_id", "checked_at"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(
        Integer,
        ForeignKey("monitors.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = Column(String, nullable=False)  # up, slow, down
    response_time_ms = Column(Integer, nullable=False, default=0)
    error_message = Column(String, nullable=True)
    checked_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    
    # Relationship
    monitor = relationship("Monitor", back_populates="records")
