"""Annotated segments: the contexts the experiment TSCs are evaluated on.

Segments are read from JSON Lines files, one record per line:

    {"segment_id": "Town01_seed2_0", "simulation_run": "Town01_seed2",
     "primary_entity_id": 7, "entity_ids": [7, 12, 15], "tick_count": 40,
     "ego": true,
     "facts": {"weather_clear": true, "is_in_junction": false, ...},
     "relations": {"follows": [12], "must_yield": []}}

``facts`` hold the truth value of every unary predicate for the segment and
``relations`` the other entities each relational predicate holds for.
Computing these from raw simulation ticks happens upstream.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, Field, ValidationError

from ..experiments.predicates import RELATIONAL_PREDICATES, UNARY_PREDICATES
from ..tsc import PredicateRegistry

logger = logging.getLogger(__name__)


class MissingFactError(KeyError):
    """Raised by a fact predicate when the segment lacks the fact."""

    def __init__(self, segment_id: str, name: str):
        self.segment_id = segment_id
        self.name = name
        super().__init__(f"Segment '{segment_id}' has no fact '{name}'")

    def __str__(self) -> str:
        return self.args[0]


class SegmentRecord(BaseModel):
    """One line of a segments file."""

    segment_id: str
    simulation_run: str = ""
    primary_entity_id: int
    entity_ids: list[int] = Field(default_factory=list)
    tick_count: int = Field(ge=0)
    ego: bool = True
    facts: dict[str, bool] = Field(default_factory=dict)
    relations: dict[str, list[int]] = Field(default_factory=dict)


@dataclass(frozen=True)
class Segment:
    """Evaluation context handed to predicates.

    ``entity_ids`` excludes the primary entity; quantified relational
    predicates range over it.
    """

    segment_id: str
    primary_entity_id: int
    simulation_run: str = ""
    entity_ids: tuple[int, ...] = ()
    tick_count: int = 0
    ego: bool = True
    facts: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))
    relations: Mapping[str, frozenset[int]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_record(cls, record: SegmentRecord) -> "Segment":
        return cls(
            segment_id=record.segment_id,
            primary_entity_id=record.primary_entity_id,
            simulation_run=record.simulation_run,
            entity_ids=tuple(
                e for e in dict.fromkeys(record.entity_ids) if e != record.primary_entity_id
            ),
            tick_count=record.tick_count,
            ego=record.ego,
            facts=MappingProxyType(dict(record.facts)),
            relations=MappingProxyType(
                {name: frozenset(ids) for name, ids in record.relations.items()}
            ),
        )


def _read_records(path: Path) -> Iterable[SegmentRecord]:
    with open(path) as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield SegmentRecord.model_validate_json(line)
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed segment at %s:%d: %s",
                    path,
                    line_no,
                    e.errors()[0]["msg"] if e.errors() else e,
                )


def load_segments(
    paths: Iterable[Path | str],
    use_every_vehicle_as_ego: bool = False,
    min_segment_tick_count: int = 11,
) -> list[Segment]:
    """Load segments from JSON Lines files, in file and line order.

    Args:
        paths: Segment files
        use_every_vehicle_as_ego: Keep segments whose primary entity is not the ego
        min_segment_tick_count: Drop segments with fewer ticks

    Raises:
        FileNotFoundError: If a path does not exist.
    """
    segments = []
    skipped = 0
    for path in paths:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Segments file not found: {path}")
        for record in _read_records(path):
            if record.tick_count < min_segment_tick_count:
                skipped += 1
                continue
            if not record.ego and not use_every_vehicle_as_ego:
                skipped += 1
                continue
            segments.append(Segment.from_record(record))
    logger.info("Loaded %d segments (%d filtered out)", len(segments), skipped)
    return segments


def _fact(name: str):
    def holds(ctx: Segment) -> bool:
        try:
            return ctx.facts[name]
        except KeyError:
            raise MissingFactError(ctx.segment_id, name) from None

    return holds


def _relation(name: str):
    def holds(ctx: Segment, other: int) -> bool:
        return other in ctx.relations.get(name, ())

    return holds


def fact_registry(
    unary: Iterable[str] = UNARY_PREDICATES,
    relational: Iterable[str] = RELATIONAL_PREDICATES,
) -> PredicateRegistry:
    """Registry whose predicates read precomputed segment annotations.

    A unary predicate raises MissingFactError if the segment lacks its fact.
    A relation missing from a segment holds for no entity.
    """
    registry = PredicateRegistry()
    for name in unary:
        name = getattr(name, "value", name)
        registry.register(name, _fact(name))
    for name in relational:
        name = getattr(name, "value", name)
        registry.register_relational(name, _relation(name))
    return registry
