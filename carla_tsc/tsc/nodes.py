"""Runtime node model of a built TSC.

Built trees are immutable (frozen dataclasses, tuples, read-only mappings)
and are shared read-only across concurrent evaluations.
"""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from ..core.models.declaration import NodeKind

Condition = Callable[[Any], bool]


@dataclass(frozen=True)
class Projection:
    """A node's membership in a named projection."""

    name: str
    recursive: bool = False


@dataclass(frozen=True)
class TSCNode:
    """One node of a built TSC.

    ``condition`` is None for structural containers that always hold.
    ``bounds`` is only set for BOUNDED nodes.
    """

    label: str
    kind: NodeKind
    condition: Condition | None = None
    children: tuple["TSCNode", ...] = ()
    monitors: Mapping[str, Condition] = field(
        default_factory=lambda: MappingProxyType({})
    )
    projections: tuple[Projection, ...] = ()
    bounds: tuple[int, int] | None = None

    @property
    def is_leaf(self) -> bool:
        """Nodes without children instantiate as leaves whatever their kind."""
        return not self.children

    def child(self, label: str) -> "TSCNode":
        for c in self.children:
            if c.label == label:
                return c
        raise KeyError(f"'{self.label}' has no child '{label}'")

    def walk(self, path: str = "") -> Iterator[tuple[str, "TSCNode"]]:
        """Yield (path, node) pairs in pre-order."""
        here = f"{path}/{self.label}" if path else self.label
        yield here, self
        for c in self.children:
            yield from c.walk(here)

    def has_projection(self, name: str) -> bool:
        return any(p.name == name for p in self.projections)

    def __repr__(self) -> str:
        return f"TSCNode({self.kind.value} {self.label!r}, children={len(self.children)})"


@dataclass(frozen=True)
class TSC:
    """A built scenario classification tree."""

    identifier: str
    root: TSCNode
    projection_tags: tuple[str, ...] = ()

    def find(self, path: str) -> TSCNode:
        """Resolve a '/'-separated label path starting at the root label."""
        labels = path.split("/")
        if labels[0] != self.root.label:
            raise KeyError(f"Path '{path}' does not start at root '{self.root.label}'")
        node = self.root
        for label in labels[1:]:
            node = node.child(label)
        return node

    def nodes(self) -> Iterator[tuple[str, TSCNode]]:
        return self.root.walk()

    def __repr__(self) -> str:
        return f"TSC({self.identifier!r}, root={self.root.label!r})"
