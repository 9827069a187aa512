"""Evaluation of experiment TSCs over segments."""

from .metrics import ValidInstancesMetric
from .progress import EvaluationProgress
from .runner import EvaluationRun, run_evaluation
from .writer import file_slug, write_plot_data_csv, write_serialized_results

__all__ = [
    "EvaluationProgress",
    "EvaluationRun",
    "ValidInstancesMetric",
    "file_slug",
    "run_evaluation",
    "write_plot_data_csv",
    "write_serialized_results",
]
