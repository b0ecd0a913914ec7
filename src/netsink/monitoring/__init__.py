from netsink.monitoring.logging import configure_logging
from netsink.monitoring.metrics import MetricsSnapshot, SinkMetrics
from netsink.monitoring.stats import PeriodicStatsLogger

__all__ = [
    "configure_logging",
    "MetricsSnapshot",
    "SinkMetrics",
    "PeriodicStatsLogger",
]
