"""Status classification for probe outcomes."""
from ..constants import MonitorStatus

# A successful probe faster than this is up
UP_THRESHOLD_MS = 1000

# A successful probe at or beyond this is treated as down
DOWN_THRESHOLD_MS = 5000


def classify(success: bool, elapsed_ms: int) -> MonitorStatus:
    """Map a probe outcome onto the status taxonomy.
    
    Failures are down regardless of timing. Successful probes are up under
    one second, slow under five seconds, and down beyond that.
    """
    if not success:
        return MonitorStatus.DOWN
    if elapsed_ms < UP_THRESHOLD_MS:
        return MonitorStatus.UP
    if elapsed_ms < DOWN_THRESHOLD_MS:
        return MonitorStatus.SLOW
    return MonitorStatus.DOWN
