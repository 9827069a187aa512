"""Per-TSC valid instance statistics."""

from collections import Counter

from ..core.models import InstanceOccurrence, MonitorFailureCount, TSCEvaluationSummary
from ..tsc import TSC, InstantiationResult, IssueKind, possible_instance_count


class ValidInstancesMetric:
    """Accumulates evaluation results of one TSC over many segments.

    Not thread-safe; the runner feeds it from a single thread, in segment
    order.
    """

    def __init__(self, tree: TSC):
        self.tree = tree
        self.possible_instance_count = possible_instance_count(tree)
        self.segments_evaluated = 0
        self.segments_with_valid_instance = 0
        self.exclusive_conflicts = 0
        self.predicate_errors = 0
        self._occurrences: Counter[str] = Counter()
        self._paths: dict[str, list[str]] = {}
        self._monitor_failures: Counter[tuple[str, str]] = Counter()

    def add(self, result: InstantiationResult) -> None:
        self.segments_evaluated += 1
        if result.instances:
            self.segments_with_valid_instance += 1

        conflicts = set()
        for instance in result.instances:
            key = instance.key
            self._occurrences[key] += 1
            self._paths.setdefault(key, instance.paths)
            for failure in instance.monitor_failures:
                self._monitor_failures[failure] += 1
            conflicts.update(
                w.node_path for w in instance.warnings if w.kind == IssueKind.EXCLUSIVE_CONFLICT
            )

        for issue in result.issues:
            if issue.kind == IssueKind.EXCLUSIVE_CONFLICT:
                conflicts.add(issue.node_path)
            else:
                self.predicate_errors += 1
        self.exclusive_conflicts += len(conflicts)

    @property
    def valid_instance_count(self) -> int:
        return sum(self._occurrences.values())

    @property
    def distinct_instance_count(self) -> int:
        return len(self._occurrences)

    def summary(self) -> TSCEvaluationSummary:
        """Snapshot as a serializable summary; instances sorted by count, then key."""
        occurrences = sorted(self._occurrences.items(), key=lambda kv: (-kv[1], kv[0]))
        return TSCEvaluationSummary(
            tsc_identifier=self.tree.identifier,
            possible_instance_count=self.possible_instance_count,
            segments_evaluated=self.segments_evaluated,
            segments_with_valid_instance=self.segments_with_valid_instance,
            valid_instance_count=self.valid_instance_count,
            distinct_instance_count=self.distinct_instance_count,
            exclusive_conflicts=self.exclusive_conflicts,
            predicate_errors=self.predicate_errors,
            instances=[
                InstanceOccurrence(key=key, paths=self._paths[key], count=count)
                for key, count in occurrences
            ],
            monitor_failures=[
                MonitorFailureCount(node_path=path, monitor=name, count=count)
                for (path, name), count in sorted(self._monitor_failures.items())
            ],
        )
