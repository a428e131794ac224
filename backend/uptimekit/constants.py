"""Monitor types and the status taxonomy."""
from enum import Enum


class MonitorType(str, Enum):
    HTTP = "http"
    DNS = "dns"
    ICMP = "icmp"


class MonitorStatus(str, Enum):
    UNKNOWN = "unknown"
    UP = "up"
    SLOW = "slow"
    DOWN = "down"


# Statuses that count as an issue on the dashboard
ISSUE_STATUSES = (MonitorStatus.DOWN.value, MonitorStatus.SLOW.value)
