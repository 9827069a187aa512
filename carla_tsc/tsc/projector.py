"""Projections: named, filtered views of a TSC.

A node belongs to the view for tag T iff it carries T itself, or an
ancestor carries T recursively. The root is always part of every view, and
nodes whose parent is not in the view are unreachable and dropped. Node
kinds and bounds are kept verbatim; a container whose children are all
pruned instantiates as a leaf.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from enum import Enum

from .nodes import TSC, TSCNode

logger = logging.getLogger(__name__)


def projection_tags(tree: TSC) -> list[str]:
    """Distinct projection tags in pre-order first-discovery order."""
    tags: dict[str, None] = {}
    for _, node in tree.nodes():
        for proj in node.projections:
            tags.setdefault(proj.name, None)
    return list(tags)


def _project_node(node: TSCNode, tag: str, inherited: bool) -> TSCNode | None:
    own = [p for p in node.projections if p.name == tag]
    if not inherited and not own:
        return None
    recursive = inherited or any(p.recursive for p in own)
    children = tuple(
        projected
        for child in node.children
        if (projected := _project_node(child, tag, recursive)) is not None
    )
    return replace(node, children=children)


def project(tree: TSC, tag: str | Enum) -> TSC:
    """Return the view of ``tree`` for ``tag``.

    A tag that no node carries yields a root-only tree.
    """
    name = tag.value if isinstance(tag, Enum) else tag
    root = tree.root
    recursive = any(p.recursive for p in root.projections if p.name == name)
    children = tuple(
        projected
        for child in root.children
        if (projected := _project_node(child, name, recursive)) is not None
    )
    if not children and root.children:
        logger.debug("Projection '%s' of '%s' is root-only", name, tree.identifier)
    return TSC(
        identifier=name,
        root=replace(root, children=children),
        projection_tags=(name,),
    )


def build_projections(tree: TSC, ignore: Iterable[str | Enum] = ()) -> list[TSC]:
    """One projected TSC per distinct tag, in first-discovery order.

    Args:
        tree: Source tree
        ignore: Tags for which no view is built
    """
    skipped = {t.value if isinstance(t, Enum) else t for t in ignore}
    return [project(tree, tag) for tag in projection_tags(tree) if tag not in skipped]
