"""Observability – metrics ports."""
from mp_permissions.observability.metrics.noop import NoopMetrics
from mp_permissions.observability.metrics.ports import Counter, Histogram, Metrics

__all__ = ["Counter", "Histogram", "Metrics", "NoopMetrics"]
