"""
Prometheus metrics for database comparison runs

Usage:
    from diffdb.utils.metrics import DiffMetrics, MetricsPublisher

    MetricsPublisher(port=9091).start()

    metrics = DiffMetrics()
    metrics.record_table_outcome("rowcount", outcome, duration=0.42)
    metrics.record_run(result, duration=12.5)
"""

from .comparison import DiffMetrics
from .publisher import MetricsPublisher

__all__ = [
    "DiffMetrics",
    "MetricsPublisher",
]
