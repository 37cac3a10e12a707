"""Dashboard aggregation."""

from .metrics import DashboardMetrics, compute_metrics, load_metrics

__all__ = ["DashboardMetrics", "compute_metrics", "load_metrics"]
