"""Exception hierarchy for the check engine."""


class UptimeKitError(Exception):
    """Base class for all UptimeKit errors."""


class ProbeError(UptimeKitError):
    """Transport or protocol failure while probing a target.

    Raised inside the probe drivers and always converted into a failed
    outcome before it reaches the scheduler.
    """


class ConfigurationError(UptimeKitError):
    """A monitor target cannot be interpreted for its type."""


class StoreError(UptimeKitError):
    """Reading from or writing to the history store failed."""
