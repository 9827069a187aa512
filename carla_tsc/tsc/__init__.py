"""Scenario classification tree (TSC) engine.

Pipeline:
    build_tsc()               declaration -> validated, immutable TSC
    build_projections()       TSC -> one named view per projection tag
    instantiate()             (TSC, context) -> valid instances
    possible_instance_count() TSC -> static number of distinct instances

Usage:
    >>> from carla_tsc.tsc import build_tsc, all_of, exclusive, leaf, tsc
    >>> tree = build_tsc(tsc("Example", all_of(
    ...     "TSCRoot",
    ...     exclusive("Weather", leaf("Clear", condition=is_clear),
    ...                          leaf("Rain", condition=is_rain)),
    ...     leaf("Junction", condition=in_junction),
    ... )))
    >>> possible_instance_count(tree)
    2
"""

from .builder import (
    TSCConstructionError,
    all_of,
    bounded,
    build_tsc,
    exclusive,
    leaf,
    optional,
    projection,
    projection_recursive,
    tsc,
)
from .conditions import ConditionCompileError, compile_condition
from .counting import possible_instance_count, possible_instances
from .instantiation import (
    EvaluationIssue,
    ExclusivePolicy,
    InstantiationResult,
    IssueKind,
    TSCInstance,
    TSCInstanceNode,
    evaluate_tsc,
    instantiate,
)
from .nodes import TSC, Projection, TSCNode
from .predicates import (
    PredicateRegistry,
    all_other_entities,
    any_other_entity,
    negate,
)
from .projector import build_projections, project, projection_tags
from .validator import validate_declaration

__all__ = [
    # Node model
    "TSC",
    "TSCNode",
    "Projection",
    # Builder
    "TSCConstructionError",
    "build_tsc",
    "validate_declaration",
    "leaf",
    "all_of",
    "optional",
    "exclusive",
    "bounded",
    "projection",
    "projection_recursive",
    "tsc",
    # Predicates
    "PredicateRegistry",
    "any_other_entity",
    "all_other_entities",
    "negate",
    "ConditionCompileError",
    "compile_condition",
    # Projection
    "project",
    "build_projections",
    "projection_tags",
    # Instantiation
    "ExclusivePolicy",
    "IssueKind",
    "EvaluationIssue",
    "TSCInstance",
    "TSCInstanceNode",
    "InstantiationResult",
    "evaluate_tsc",
    "instantiate",
    # Counting
    "possible_instance_count",
    "possible_instances",
]
