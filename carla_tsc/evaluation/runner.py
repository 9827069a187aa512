"""Parallel evaluation of many TSCs over many segments.

Each segment is evaluated against every TSC in a worker thread. Built TSCs
are immutable, so workers share them without locking. Completed segments
are merged into the metrics strictly in segment order, which makes the
result independent of scheduling and worker count.
"""

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from ..core.models import EvaluationReport, TSCEvaluationSummary
from ..tsc import TSC, ExclusivePolicy, InstantiationResult, evaluate_tsc
from .metrics import ValidInstancesMetric
from .progress import EvaluationProgress

logger = logging.getLogger(__name__)


@dataclass
class EvaluationRun:
    """Outcome of run_evaluation."""

    metrics: list[ValidInstancesMetric]
    segment_count: int
    policy: ExclusivePolicy
    duration_seconds: float = 0.0
    settings: dict[str, Any] = field(default_factory=dict)

    def summaries(self) -> list[TSCEvaluationSummary]:
        return [m.summary() for m in self.metrics]

    def report(self) -> EvaluationReport:
        return EvaluationReport(
            segment_count=self.segment_count,
            exclusive_policy=self.policy.value,
            settings=dict(self.settings),
            summaries=self.summaries(),
        )


def _evaluate_segment(
    tscs: Sequence[TSC], segment: Any, policy: ExclusivePolicy
) -> list[InstantiationResult]:
    return [evaluate_tsc(tree, segment, policy) for tree in tscs]


def run_evaluation(
    tscs: Sequence[TSC],
    segments: Sequence[Any],
    *,
    max_workers: int = 4,
    policy: ExclusivePolicy | str = ExclusivePolicy.REPORT_ALL,
    progress: EvaluationProgress | None = None,
    on_segment_done: Callable[[int, int], None] | None = None,
    settings: dict[str, Any] | None = None,
) -> EvaluationRun:
    """Evaluate every TSC against every segment.

    Args:
        tscs: Built TSCs, in reporting order
        segments: Evaluation contexts
        max_workers: Worker threads; 1 evaluates inline
        policy: Exclusive conflict policy
        progress: Optional shared progress state for a live display
        on_segment_done: Optional callback(done, total) after each merge
        settings: Free-form settings echoed into the report

    Returns:
        EvaluationRun with one metric per TSC, in ``tscs`` order.
    """
    policy = ExclusivePolicy(policy)
    max_workers = max(1, max_workers)
    metrics = [ValidInstancesMetric(tree) for tree in tscs]
    total = len(segments)
    if progress is not None:
        progress.begin(total, len(tscs))

    start = time.time()
    logger.info(
        "Evaluating %d TSCs on %d segments (workers=%d, policy=%s)",
        len(tscs),
        total,
        max_workers,
        policy.value,
    )

    done = 0

    def commit(results: list[InstantiationResult]) -> None:
        nonlocal done
        for metric, result in zip(metrics, results):
            metric.add(result)
        done += 1
        if progress is not None:
            progress.record_segment_done(
                valid_instances=sum(len(r.instances) for r in results),
                issues=sum(len(r.issues) for r in results),
            )
        if on_segment_done is not None:
            on_segment_done(done, total)

    if max_workers == 1 or total <= 1:
        for segment in segments:
            commit(_evaluate_segment(tscs, segment, policy))
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(_evaluate_segment, tscs, segment, policy): idx
                for idx, segment in enumerate(segments)
            }
            pending: dict[int, list[InstantiationResult]] = {}
            next_idx = 0
            for fut in as_completed(futures):
                pending[futures[fut]] = fut.result()
                # Deterministic merge: commit completed segments in segment order.
                while next_idx in pending:
                    commit(pending.pop(next_idx))
                    next_idx += 1

    elapsed = time.time() - start
    logger.info("Evaluation finished in %.2fs", elapsed)
    return EvaluationRun(
        metrics=metrics,
        segment_count=total,
        policy=policy,
        duration_seconds=elapsed,
        settings=dict(settings or {}),
    )
