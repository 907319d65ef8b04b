"""Logging and metrics for textforensics.

Only the logging helpers are re-exported here; the detection core imports
them, and ``observability.metrics`` depends on the core in turn.
"""

from .logger import EventType, JSONFormatter, configure_logging, payload_scrubber

__all__ = [
    "EventType",
    "JSONFormatter",
    "configure_logging",
    "payload_scrubber",
]
