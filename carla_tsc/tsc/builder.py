"""Declarative TSC construction.

Trees are declared with nested helper calls that produce pydantic
declarations, then compiled into an immutable TSC by build_tsc:

    declaration = tsc(
        "Weather",
        all_of(
            "TSCRoot",
            exclusive(
                "Weather",
                leaf("Clear", condition="weather_clear"),
                leaf("Rain", condition="weather_rain"),
            ),
            leaf("Junction", condition="is_in_junction"),
        ),
    )
    tree = build_tsc(declaration, registry)

build_tsc validates first and raises TSCConstructionError on any error; a
tree is never returned with silently corrected structure.
"""

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from types import MappingProxyType

from ..core.models import (
    ConditionSpec,
    NodeDeclaration,
    NodeKind,
    ProjectionDeclaration,
    TSCDeclaration,
    ValidationResult,
)
from .conditions import compile_condition
from .nodes import TSC, Condition, Projection, TSCNode
from .predicates import PredicateRegistry
from .validator import validate_declaration

logger = logging.getLogger(__name__)


class TSCConstructionError(ValueError):
    """Raised when a TSC declaration fails validation."""

    def __init__(self, identifier: str, result: ValidationResult):
        self.identifier = identifier
        self.result = result
        errors = result.errors
        summary = "; ".join(str(e) for e in errors[:3])
        if len(errors) > 3:
            summary += f"; ... and {len(errors) - 3} more"
        super().__init__(f"Invalid TSC '{identifier}': {summary}")


# =============================================================================
# Declaration helpers
# =============================================================================

ProjectionArg = ProjectionDeclaration | str | Enum


def _tag_name(tag: str | Enum) -> str:
    return tag.value if isinstance(tag, Enum) else str(tag)


def projection(name: str | Enum) -> ProjectionDeclaration:
    """Membership of this node only."""
    return ProjectionDeclaration(name=_tag_name(name), recursive=False)


def projection_recursive(name: str | Enum) -> ProjectionDeclaration:
    """Membership of this node and all of its descendants."""
    return ProjectionDeclaration(name=_tag_name(name), recursive=True)


def _projections(items: Sequence[ProjectionArg] | None) -> list[ProjectionDeclaration]:
    if not items:
        return []
    return [p if isinstance(p, ProjectionDeclaration) else projection(p) for p in items]


def _node(
    kind: NodeKind,
    label: str,
    children: Sequence[NodeDeclaration],
    condition: ConditionSpec | None,
    monitors: Mapping[str, ConditionSpec] | None,
    projections: Sequence[ProjectionArg] | None,
    bounds: tuple[int, int] | None = None,
) -> NodeDeclaration:
    return NodeDeclaration(
        kind=kind,
        label=label,
        condition=condition,
        monitors=dict(monitors or {}),
        projections=_projections(projections),
        bounds=bounds,
        children=list(children),
    )


def leaf(
    label: str,
    *,
    condition: ConditionSpec | None = None,
    monitors: Mapping[str, ConditionSpec] | None = None,
    projections: Sequence[ProjectionArg] | None = None,
) -> NodeDeclaration:
    return _node(NodeKind.LEAF, label, (), condition, monitors, projections)


def all_of(
    label: str,
    *children: NodeDeclaration,
    condition: ConditionSpec | None = None,
    monitors: Mapping[str, ConditionSpec] | None = None,
    projections: Sequence[ProjectionArg] | None = None,
) -> NodeDeclaration:
    """All children must hold simultaneously."""
    return _node(NodeKind.ALL, label, children, condition, monitors, projections)


def optional(
    label: str,
    *children: NodeDeclaration,
    condition: ConditionSpec | None = None,
    monitors: Mapping[str, ConditionSpec] | None = None,
    projections: Sequence[ProjectionArg] | None = None,
) -> NodeDeclaration:
    """Any subset of children may hold, including none."""
    return _node(NodeKind.OPTIONAL, label, children, condition, monitors, projections)


def exclusive(
    label: str,
    *children: NodeDeclaration,
    condition: ConditionSpec | None = None,
    monitors: Mapping[str, ConditionSpec] | None = None,
    projections: Sequence[ProjectionArg] | None = None,
) -> NodeDeclaration:
    """Exactly one child holds."""
    return _node(NodeKind.EXCLUSIVE, label, children, condition, monitors, projections)


def bounded(
    label: str,
    bounds: tuple[int, int],
    *children: NodeDeclaration,
    condition: ConditionSpec | None = None,
    monitors: Mapping[str, ConditionSpec] | None = None,
    projections: Sequence[ProjectionArg] | None = None,
) -> NodeDeclaration:
    """Between bounds[0] and bounds[1] children hold (inclusive)."""
    return _node(
        NodeKind.BOUNDED, label, children, condition, monitors, projections, bounds
    )


def tsc(
    identifier: str,
    root: NodeDeclaration,
    *,
    projections: Sequence[str | Enum] | None = None,
) -> TSCDeclaration:
    """Wrap a root node into a TSC declaration.

    If ``projections`` is omitted, the tags the root itself carries are the
    declared tag set.
    """
    if projections is None:
        tags = [p.name for p in root.projections]
    else:
        tags = [_tag_name(p) for p in projections]
    return TSCDeclaration(identifier=identifier, projections=tags, root=root)


# =============================================================================
# Building
# =============================================================================


def _compile(spec: ConditionSpec | None, registry: PredicateRegistry | None) -> Condition | None:
    if spec is None or callable(spec):
        return spec
    # validate_declaration guarantees a registry exists for expressions
    return compile_condition(spec, registry)


def _build_node(decl: NodeDeclaration, registry: PredicateRegistry | None) -> TSCNode:
    return TSCNode(
        label=decl.label,
        kind=decl.kind,
        condition=_compile(decl.condition, registry),
        children=tuple(_build_node(c, registry) for c in decl.children),
        monitors=MappingProxyType(
            {name: _compile(m, registry) for name, m in decl.monitors.items()}
        ),
        projections=tuple(Projection(p.name, p.recursive) for p in decl.projections),
        bounds=tuple(decl.bounds) if decl.bounds is not None else None,
    )


def build_tsc(
    declaration: TSCDeclaration,
    registry: PredicateRegistry | None = None,
) -> TSC:
    """Validate a declaration and compile it into an immutable TSC.

    Raises:
        TSCConstructionError: If the declaration has any validation error.
    """
    result = validate_declaration(declaration, registry)
    for warning in result.warnings:
        logger.warning("TSC '%s': %s", declaration.identifier, warning)
    if not result.valid:
        raise TSCConstructionError(declaration.identifier, result)

    root = _build_node(declaration.root, registry)
    logger.debug(
        "Built TSC '%s' with %d nodes",
        declaration.identifier,
        sum(1 for _ in root.walk()),
    )
    return TSC(
        identifier=declaration.identifier,
        root=root,
        projection_tags=tuple(dict.fromkeys(declaration.projections)),
    )
