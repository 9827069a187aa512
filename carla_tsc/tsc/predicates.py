"""Predicate registry and quantifier helpers.

Predicates are opaque, side-effect-free callables supplied by the caller:

- unary:      (context) -> bool
- relational: (context, other_entity_id) -> bool

Relational predicates are only usable as node conditions after being
quantified over ``context.entity_ids`` (see any_other_entity).
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

UnaryPredicate = Callable[[Any], bool]
RelationalPredicate = Callable[[Any, Any], bool]


class PredicateArity(str, Enum):
    UNARY = "unary"
    RELATIONAL = "relational"


@dataclass(frozen=True)
class RegisteredPredicate:
    name: str
    func: Callable[..., bool]
    arity: PredicateArity


class PredicateRegistry:
    """Name -> predicate mapping injected into the TSC builder.

    Example:
        registry = PredicateRegistry()
        registry.register("is_in_junction", lambda ctx: ctx.facts["is_in_junction"])

        @registry.predicate("follows", relational=True)
        def follows(ctx, other):
            return other in ctx.relations["follows"]
    """

    def __init__(self) -> None:
        self._predicates: dict[str, RegisteredPredicate] = {}

    def register(self, name: str, func: UnaryPredicate) -> None:
        """Register a unary predicate."""
        self._add(name, func, PredicateArity.UNARY)

    def register_relational(self, name: str, func: RelationalPredicate) -> None:
        """Register a relational predicate taking a second entity id."""
        self._add(name, func, PredicateArity.RELATIONAL)

    def predicate(self, name: str, *, relational: bool = False):
        """Decorator form of register / register_relational."""

        def decorator(func):
            if relational:
                self.register_relational(name, func)
            else:
                self.register(name, func)
            return func

        return decorator

    def _add(self, name: str, func: Callable[..., bool], arity: PredicateArity) -> None:
        if not name.isidentifier():
            raise ValueError(f"Predicate name must be an identifier: {name!r}")
        if not callable(func):
            raise TypeError(f"Predicate '{name}' is not callable")
        if name in self._predicates:
            logger.debug("Replacing registered predicate '%s'", name)
        self._predicates[name] = RegisteredPredicate(name=name, func=func, arity=arity)

    def get(self, name: str) -> RegisteredPredicate:
        try:
            return self._predicates[name]
        except KeyError:
            raise KeyError(f"Unknown predicate '{name}'") from None

    def names(self) -> list[str]:
        return sorted(self._predicates)

    def __contains__(self, name: object) -> bool:
        return name in self._predicates

    def __iter__(self) -> Iterator[RegisteredPredicate]:
        return iter(self._predicates.values())

    def __len__(self) -> int:
        return len(self._predicates)


def any_other_entity(relational: RelationalPredicate) -> UnaryPredicate:
    """Holds if the relation holds for at least one entity in ctx.entity_ids."""

    def holds(ctx) -> bool:
        return any(relational(ctx, other) for other in ctx.entity_ids)

    return holds


def all_other_entities(relational: RelationalPredicate) -> UnaryPredicate:
    """Holds if the relation holds for every entity in ctx.entity_ids."""

    def holds(ctx) -> bool:
        return all(relational(ctx, other) for other in ctx.entity_ids)

    return holds


def negate(predicate: UnaryPredicate) -> UnaryPredicate:
    def holds(ctx) -> bool:
        return not predicate(ctx)

    return holds
