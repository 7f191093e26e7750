"""Observability layer - logging and metrics."""

from smaraa.observability.logging import setup_logging
from smaraa.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
