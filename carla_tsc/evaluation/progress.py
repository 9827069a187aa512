"""Thread-safe evaluation progress tracking.

Worker threads update the shared state per segment, and the CLI display
thread reads it via snapshot().
"""

import threading
from dataclasses import dataclass, field


@dataclass
class EvaluationProgress:
    """Thread-safe progress state shared between evaluation and display threads.

    Workers call record_segment_done() per segment.
    The CLI display thread calls snapshot() to get a safe copy for rendering.
    """

    segments_total: int = 0
    segments_done: int = 0
    tsc_count: int = 0
    valid_instances: int = 0
    issues: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def begin(self, segments_total: int, tsc_count: int) -> None:
        """Reset counters for a new run.

        Args:
            segments_total: Number of segments to evaluate
            tsc_count: Number of TSCs each segment is evaluated against
        """
        with self._lock:
            self.segments_total = segments_total
            self.segments_done = 0
            self.tsc_count = tsc_count
            self.valid_instances = 0
            self.issues = 0

    def record_segment_done(self, valid_instances: int, issues: int) -> None:
        """Record that one segment has been evaluated against every TSC.

        Args:
            valid_instances: Instances produced across all TSCs
            issues: Evaluation issues recorded across all TSCs
        """
        with self._lock:
            self.segments_done += 1
            self.valid_instances += valid_instances
            self.issues += issues

    def snapshot(self) -> dict:
        """Return a thread-safe copy of all display-relevant fields."""
        with self._lock:
            return {
                "segments_total": self.segments_total,
                "segments_done": self.segments_done,
                "tsc_count": self.tsc_count,
                "valid_instances": self.valid_instances,
                "issues": self.issues,
                "fraction_done": (
                    self.segments_done / self.segments_total
                    if self.segments_total > 0
                    else 0.0
                ),
            }
