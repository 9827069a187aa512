"""TSC definitions of the CARLA scenario-classification experiments."""

from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from ..core.models import TSCDeclaration
from ..tsc import TSC, PredicateRegistry, build_projections, build_tsc
from .flat import (
    FLAT_DECLARATIONS,
    flat_tscs,
    full_flat_declaration,
    layer_1_2_4_flat_declaration,
    layer_1_2_flat_declaration,
    layer_4_5_flat_declaration,
    layer_4_flat_declaration,
    pedestrian_flat_declaration,
)
from .predicates import RELATIONAL_PREDICATES, UNARY_PREDICATES, PredicateName
from .tsc import EXPERIMENT_TSC_IDENTIFIER, Layer, full_tsc, full_tsc_declaration


def experiment_tscs(
    registry: PredicateRegistry,
    ignore: Iterable[str | Enum] = (),
) -> list[TSC]:
    """Every TSC evaluated in the experiment.

    The projections of the layered TSC come first, in tag discovery order,
    followed by the flat TSCs.
    """
    return build_projections(full_tsc(registry), ignore=ignore) + flat_tscs(registry)


def load_tsc_file(path: Path | str, registry: PredicateRegistry) -> list[TSC]:
    """Build a TSC from a YAML declaration.

    A tree that declares projection tags is returned as its projections,
    otherwise as the single tree.

    Raises:
        TSCConstructionError: If the declaration is invalid.
    """
    tree = build_tsc(TSCDeclaration.from_yaml(path), registry)
    if tree.projection_tags:
        return build_projections(tree)
    return [tree]


__all__ = [
    "EXPERIMENT_TSC_IDENTIFIER",
    "FLAT_DECLARATIONS",
    "Layer",
    "PredicateName",
    "RELATIONAL_PREDICATES",
    "UNARY_PREDICATES",
    "experiment_tscs",
    "flat_tscs",
    "full_flat_declaration",
    "full_tsc",
    "full_tsc_declaration",
    "load_tsc_file",
    "layer_1_2_4_flat_declaration",
    "layer_1_2_flat_declaration",
    "layer_4_5_flat_declaration",
    "layer_4_flat_declaration",
    "pedestrian_flat_declaration",
]
