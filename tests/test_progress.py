"""Tests for EvaluationProgress thread-safe progress tracking."""

import threading

import pytest

from carla_tsc.evaluation.progress import EvaluationProgress


class TestEvaluationProgress:
    """Test EvaluationProgress dataclass."""

    def test_initial_state(self):
        """Fresh instance has zeros."""
        snap = EvaluationProgress().snapshot()
        assert snap["segments_total"] == 0
        assert snap["segments_done"] == 0
        assert snap["tsc_count"] == 0
        assert snap["valid_instances"] == 0
        assert snap["issues"] == 0
        assert snap["fraction_done"] == 0.0

    def test_begin_resets(self):
        """begin sets totals and resets the counters of a previous run."""
        p = EvaluationProgress()
        p.begin(segments_total=10, tsc_count=3)
        p.record_segment_done(valid_instances=4, issues=1)
        p.begin(segments_total=5, tsc_count=2)
        assert p.segments_total == 5
        assert p.tsc_count == 2
        assert p.segments_done == 0
        assert p.valid_instances == 0
        assert p.issues == 0

    def test_record_segment_done_accumulates(self):
        """Each call adds one segment and its instance and issue counts."""
        p = EvaluationProgress()
        p.begin(segments_total=4, tsc_count=12)
        p.record_segment_done(valid_instances=12, issues=0)
        p.record_segment_done(valid_instances=10, issues=2)
        snap = p.snapshot()
        assert snap["segments_done"] == 2
        assert snap["valid_instances"] == 22
        assert snap["issues"] == 2
        assert snap["fraction_done"] == pytest.approx(0.5)

    def test_snapshot_returns_copy(self):
        """Modifying snapshot dict doesn't affect original state."""
        p = EvaluationProgress()
        p.record_segment_done(valid_instances=1, issues=0)
        snap = p.snapshot()
        snap["segments_done"] = 999
        assert p.segments_done == 1

    def test_concurrent_updates(self):
        """Updates from many threads are not lost."""
        p = EvaluationProgress()
        p.begin(segments_total=800, tsc_count=1)

        def work():
            for _ in range(100):
                p.record_segment_done(valid_instances=1, issues=0)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert p.snapshot()["segments_done"] == 800
        assert p.snapshot()["fraction_done"] == 1.0


class TestBuildProgressDisplay:
    """Tests for the CLI _build_progress_display function."""

    def test_empty_snapshot(self):
        """Empty snapshot shows an empty bar and zero counts."""
        from carla_tsc.cli.commands.evaluate import _build_progress_display

        display = _build_progress_display(EvaluationProgress().snapshot(), elapsed=0.0)
        text = display.plain
        assert "░" * 30 in text
        assert "0/0 segments (0%)" in text

    def test_active_snapshot(self):
        """Active snapshot shows segment progress, instances, issues and time."""
        from carla_tsc.cli.commands.evaluate import _build_progress_display

        p = EvaluationProgress()
        p.begin(segments_total=10, tsc_count=12)
        for _ in range(3):
            p.record_segment_done(valid_instances=500, issues=1)
        text = _build_progress_display(p.snapshot(), elapsed=123.0).plain
        assert "3/10 segments (30%)" in text
        assert "1,500 instances" in text
        assert "3 issues" in text
        assert "2m 3s" in text
        assert text.count("█") == 9
