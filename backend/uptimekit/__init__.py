"""UptimeKit - scheduled HTTP, DNS, and ICMP uptime checks."""

__version__ = "1.0.0"
