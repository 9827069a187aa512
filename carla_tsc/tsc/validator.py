"""Structural validation of TSC declarations.

Every rule that would make a built tree ambiguous or unusable is an ERROR;
the builder refuses to return a tree while any error exists. WARNINGs flag
declarations that are legal but probably not what was meant.
"""

from ..core.models import (
    NodeDeclaration,
    NodeKind,
    TSCDeclaration,
    ValidationResult,
)
from .conditions import ConditionCompileError, compile_condition
from .predicates import PredicateRegistry


def _validate_condition(
    spec,
    registry: PredicateRegistry | None,
    location: str,
    what: str,
    result: ValidationResult,
) -> None:
    if spec is None or callable(spec):
        return
    if registry is None:
        result.add_error(
            category="condition",
            location=location,
            message=f"{what} '{spec}' is an expression but no predicate registry was given",
            suggestion="Pass a PredicateRegistry to build_tsc or use a callable",
        )
        return
    try:
        compile_condition(spec, registry)
    except ConditionCompileError as e:
        result.add_error(
            category="condition",
            location=location,
            message=f"{what} '{spec}': {e}",
        )


def _validate_shape(node: NodeDeclaration, location: str, result: ValidationResult) -> None:
    n = len(node.children)

    labels = [c.label for c in node.children]
    for label in sorted({lbl for lbl in labels if labels.count(lbl) > 1}):
        result.add_error(
            category="duplicate_label",
            location=location,
            message=f"Duplicate child label '{label}'",
            suggestion="Sibling labels must be unique",
        )

    if node.kind == NodeKind.LEAF and n:
        result.add_error(
            category="leaf_children",
            location=location,
            message=f"Leaf node has {n} children",
            suggestion="Use all/optional/exclusive/bounded for container nodes",
        )

    if node.kind == NodeKind.EXCLUSIVE and n == 0:
        result.add_error(
            category="exclusive_empty",
            location=location,
            message="Exclusive node has no children",
        )

    if node.kind in (NodeKind.ALL, NodeKind.OPTIONAL) and n == 0:
        result.add_warning(
            category="empty_container",
            location=location,
            message=f"{node.kind.value} node has no children and acts as a leaf",
        )

    if node.kind == NodeKind.BOUNDED:
        if node.bounds is None:
            result.add_error(
                category="bounds",
                location=location,
                message="Bounded node requires bounds (min, max)",
            )
        else:
            lo, hi = node.bounds
            if not 0 <= lo <= hi <= n:
                result.add_error(
                    category="bounds",
                    location=location,
                    message=f"Invalid bounds ({lo}, {hi}) for {n} children",
                    suggestion="Bounds must satisfy 0 <= min <= max <= number of children",
                )
            elif lo == 0 and hi == n and n > 0:
                result.add_warning(
                    category="bounds",
                    location=location,
                    message=f"Bounds (0, {n}) admit any subset; this is an optional node",
                )
    elif node.bounds is not None:
        result.add_error(
            category="bounds",
            location=location,
            message=f"Bounds are only allowed on bounded nodes, not {node.kind.value}",
        )


def _validate_projections(
    node: NodeDeclaration,
    location: str,
    ancestor_tags: frozenset[str],
    parent_view: frozenset[str] | None,
    result: ValidationResult,
) -> None:
    seen: set[str] = set()
    for proj in node.projections:
        if proj.name in seen:
            result.add_error(
                category="projection",
                location=location,
                message=f"Projection '{proj.name}' is listed twice",
            )
        seen.add(proj.name)

        if proj.name not in ancestor_tags:
            result.add_error(
                category="projection_dangling",
                location=location,
                message=(
                    f"Projection '{proj.name}' is declared neither by the TSC "
                    "nor by any ancestor"
                ),
                suggestion=f"Declared projections: {', '.join(sorted(ancestor_tags)) or '(none)'}",
            )
        elif parent_view is not None and proj.name not in parent_view:
            result.add_warning(
                category="projection_unreachable",
                location=location,
                message=(
                    f"Parent node is not part of view '{proj.name}', "
                    "so the projection drops this node"
                ),
                suggestion=f"Add '{proj.name}' to the parent node's projections",
            )


def validate_declaration(
    declaration: TSCDeclaration,
    registry: PredicateRegistry | None = None,
) -> ValidationResult:
    """Validate a TSC declaration.

    Args:
        declaration: Declaration to check
        registry: Registry used to resolve condition expressions. Declarations
            built only from callables do not need one.

    Returns:
        ValidationResult with all errors and warnings found
    """
    result = ValidationResult()
    declared = set(declaration.projections)
    root = declaration.root

    if root.condition is not None:
        result.add_error(
            category="root_condition",
            location=root.label,
            message="The root node must not carry a condition",
        )

    if len(declared) != len(declaration.projections):
        result.add_warning(
            category="projection",
            location=declaration.identifier,
            message="Duplicate entries in declared projections",
        )

    used_below_root: set[str] = set()

    def visit(
        node: NodeDeclaration,
        location: str,
        ancestor_tags: frozenset[str],
        parent_view: frozenset[str] | None,
        view: frozenset[str],
        recursive: frozenset[str],
    ) -> None:
        # view: tags whose projection keeps this node
        # recursive: tags whose projection keeps this node's whole subtree
        is_root = node is root
        if not is_root:
            used_below_root.update(p.name for p in node.projections)

        _validate_shape(node, location, result)
        _validate_projections(node, location, ancestor_tags, parent_view, result)
        if not is_root:
            _validate_condition(node.condition, registry, location, "Condition", result)
        for name, monitor in node.monitors.items():
            if not name.strip():
                result.add_error(
                    category="monitor",
                    location=location,
                    message="Monitor names must not be empty",
                )
            _validate_condition(monitor, registry, location, f"Monitor '{name}'", result)

        tags = ancestor_tags | {p.name for p in node.projections}
        for child in node.children:
            own = {p.name for p in child.projections}
            child_view = frozenset(t for t in view if t in own or t in recursive)
            child_recursive = recursive | {
                p.name for p in child.projections if p.recursive and p.name in child_view
            }
            visit(child, f"{location}/{child.label}", tags, view, child_view, child_recursive)

    # The root is part of every view and carries every declared tag
    every_tag = declared | {p.name for _, node in root.walk() for p in node.projections}
    visit(
        root,
        root.label,
        frozenset(declared),
        None,
        frozenset(every_tag),
        frozenset(p.name for p in root.projections if p.recursive),
    )

    recursive_at_root = {p.name for p in root.projections if p.recursive}
    for tag in declaration.projections:
        if tag not in used_below_root and tag not in recursive_at_root:
            result.add_warning(
                category="projection_unused",
                location=declaration.identifier,
                message=f"Projection '{tag}' is not used below the root; its view is root-only",
            )

    return result
