"""Serialized evaluation results.

These models are what the evaluation layer hands to writers and to the CLI.
They carry no references back to the runtime tree.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class InstanceOccurrence(BaseModel):
    """How often one distinct valid instance was observed."""

    key: str
    paths: list[str]
    count: int = Field(ge=0)


class MonitorFailureCount(BaseModel):
    """How often a monitor evaluated false on a valid instance."""

    node_path: str
    monitor: str
    count: int = Field(ge=0)


class TSCEvaluationSummary(BaseModel):
    """Aggregated valid-instance statistics for one TSC."""

    tsc_identifier: str
    possible_instance_count: int = Field(ge=0)
    segments_evaluated: int = 0
    segments_with_valid_instance: int = 0
    valid_instance_count: int = Field(
        default=0, description="Total instance occurrences across all segments"
    )
    distinct_instance_count: int = 0
    exclusive_conflicts: int = 0
    predicate_errors: int = 0
    instances: list[InstanceOccurrence] = Field(default_factory=list)
    monitor_failures: list[MonitorFailureCount] = Field(default_factory=list)

    @property
    def coverage(self) -> float:
        """Share of possible instances observed at least once."""
        if self.possible_instance_count == 0:
            return 0.0
        return self.distinct_instance_count / self.possible_instance_count


class EvaluationReport(BaseModel):
    """Top-level serialized result of an evaluation run."""

    created_at: datetime = Field(default_factory=datetime.now)
    segment_count: int = 0
    exclusive_policy: str = "report_all"
    settings: dict[str, Any] = Field(default_factory=dict)
    summaries: list[TSCEvaluationSummary] = Field(default_factory=list)

    def to_json(self, path: Path | str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))

    @classmethod
    def from_json(cls, path: Path | str) -> "EvaluationReport":
        return cls.model_validate_json(Path(path).read_text())
