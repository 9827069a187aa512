"""Shared fixtures for carla-tsc tests."""

import pytest

from carla_tsc.data.segments import Segment, fact_registry
from carla_tsc.experiments import PredicateName


def _make_segment(
    segment_id: str = "seg",
    *,
    facts: dict[str, bool] | None = None,
    relations: dict[str, list[int]] | None = None,
    entity_ids: tuple[int, ...] = (),
    tick_count: int = 20,
) -> Segment:
    return Segment(
        segment_id=segment_id,
        primary_entity_id=0,
        entity_ids=entity_ids,
        tick_count=tick_count,
        facts=facts or {},
        relations={k: frozenset(v) for k, v in (relations or {}).items()},
    )


def _experiment_facts(**overrides: bool) -> dict[str, bool]:
    """Every experiment unary fact set to False, then ``overrides`` applied."""
    facts = {
        name.value: False
        for name in PredicateName
        if name.value not in {"must_yield", "has_yielded", "follows", "oncoming"}
    }
    facts.update(overrides)
    return facts


@pytest.fixture
def registry():
    """Small registry: unary facts a..e plus relational 'follows' and 'yields'."""
    return fact_registry(
        unary=["a", "b", "c", "d", "e", "rain", "clear", "junction"],
        relational=["follows", "yields"],
    )


@pytest.fixture
def make_segment():
    """Factory for Segment contexts."""
    return _make_segment


@pytest.fixture
def experiment_facts():
    """Factory for a complete set of experiment facts."""
    return _experiment_facts
