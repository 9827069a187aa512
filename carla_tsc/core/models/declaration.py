"""Declaration models for scenario classification trees (TSCs).

A TSCDeclaration is the nested, serializable description of a tree: node
kinds, labels, condition references, monitors and projection tags. It is
consumed by carla_tsc.tsc.builder.build_tsc, which validates it and compiles
it into the immutable runtime tree.

Conditions and monitors are either condition expressions over a predicate
registry (e.g. "is_in_junction and any_entity(follows)") or plain callables.
Only expression-based declarations can be written to YAML.
"""

from collections.abc import Callable, Iterator
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


ConditionSpec = str | Callable[..., bool]


class NodeKind(str, Enum):
    """Structural kind of a TSC node."""

    LEAF = "leaf"
    ALL = "all"
    OPTIONAL = "optional"
    EXCLUSIVE = "exclusive"
    BOUNDED = "bounded"


class ProjectionDeclaration(BaseModel):
    """Membership of a node in a named projection.

    A recursive projection also covers every descendant of the node.
    """

    name: str = Field(min_length=1)
    recursive: bool = False


class NodeDeclaration(BaseModel):
    """One node of a TSC declaration, including its children."""

    kind: NodeKind
    label: str = Field(min_length=1)
    condition: ConditionSpec | None = Field(
        default=None,
        description="Condition expression or callable; None means always holds",
    )
    monitors: dict[str, ConditionSpec] = Field(default_factory=dict)
    projections: list[ProjectionDeclaration] = Field(default_factory=list)
    bounds: tuple[int, int] | None = Field(
        default=None, description="Inclusive (min, max) holding children, BOUNDED only"
    )
    children: list["NodeDeclaration"] = Field(default_factory=list)

    @field_validator("condition")
    @classmethod
    def _strip_condition(cls, value: ConditionSpec | None) -> ConditionSpec | None:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def walk(self, path: str = "") -> Iterator[tuple[str, "NodeDeclaration"]]:
        """Yield (path, node) pairs in pre-order."""
        here = f"{path}/{self.label}" if path else self.label
        yield here, self
        for child in self.children:
            yield from child.walk(here)

    def has_callables(self) -> bool:
        for _, node in self.walk():
            if callable(node.condition):
                return True
            if any(callable(m) for m in node.monitors.values()):
                return True
        return False


class TSCDeclaration(BaseModel):
    """Top-level TSC declaration.

    ``projections`` is the explicitly declared set of projection tags the
    tree may use; any other tag is rejected at build time.
    """

    identifier: str = Field(min_length=1)
    projections: list[str] = Field(default_factory=list)
    root: NodeDeclaration

    def to_yaml(self, path: Path | str) -> None:
        """Save the declaration to a YAML file."""
        if self.root.has_callables():
            raise ValueError(
                f"TSC '{self.identifier}' uses callable conditions and cannot be "
                "serialized; use condition expressions instead"
            )
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode="json", exclude_defaults=True)

        with open(path, "w") as f:
            yaml.dump(
                data, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    @classmethod
    def from_yaml(cls, path: Path | str) -> "TSCDeclaration":
        """Load a declaration from a YAML file."""
        path = Path(path)

        with open(path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError("TSC YAML must parse to an object")

        return cls.model_validate(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TSCDeclaration":
        return cls.model_validate(data)


NodeDeclaration.model_rebuild()
