"""Monitor model - targets under periodic observation."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.time import utcnow


class Monitor(Base):
    """A monitored endpoint - HTTP URL, DNS name, or ICMP host."""
    
    __tablename__ = "monitors"
    __table_args__ = (
        # The same endpoint is never monitored twice under one protocol
        UniqueConstraint("target", "type", name="uq_monitors_target_type"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    target = Column(String, nullable=False)  # URL, domain, or host
    type = Column(String, nullable=False, default="http")  # http, dns, icmp
    
    # Live fields, written only by the scheduler
    status = Column(String, nullable=False, default="unknown")  # unknown, up, slow, down
    response_time_ms = Column(Integer, nullable=False, default=0)
    last_checked_at = Column(DateTime, nullable=True)
    
    paused = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    
    # Relationships
    records = relationship(
        "CheckRecord",
        back_populates="monitor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
