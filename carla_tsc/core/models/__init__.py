"""Pydantic models for carla-tsc, organized by domain.

- declaration.py: TSC declarations (node kinds, projections, YAML I/O)
- validation.py: validation issues and results
- results.py: serialized evaluation results
"""

from .declaration import (
    ConditionSpec,
    NodeKind,
    ProjectionDeclaration,
    NodeDeclaration,
    TSCDeclaration,
)

from .validation import (
    Severity,
    ValidationIssue,
    ValidationResult,
)

from .results import (
    InstanceOccurrence,
    MonitorFailureCount,
    TSCEvaluationSummary,
    EvaluationReport,
)


__all__ = [
    # Declarations
    "ConditionSpec",
    "NodeKind",
    "ProjectionDeclaration",
    "NodeDeclaration",
    "TSCDeclaration",
    # Validation
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    # Results
    "InstanceOccurrence",
    "MonitorFailureCount",
    "TSCEvaluationSummary",
    "EvaluationReport",
]
