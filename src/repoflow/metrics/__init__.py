"""Flow metrics: rolling-window series and summary formulas."""

from repoflow.metrics.engine import calculate_metrics
from repoflow.metrics.formulas import is_widening, merge_rate, summarize

__all__ = [
    "calculate_metrics",
    "is_widening",
    "merge_rate",
    "summarize",
]
