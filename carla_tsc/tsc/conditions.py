"""Condition expressions over a predicate registry.

Declarations reference predicates by name instead of holding closures, e.g.

    "is_in_junction and any_entity(must_yield)"
    "not changed_lane"
    "(is_on_multi_lane or is_on_single_lane) and any_entity(oncoming)"

Expressions are compiled once, at build time, by a restricted AST walker into
a closure ``(context) -> bool``. Only registry names, and/or/not, True/False
and the quantifiers any_entity()/all_entities() over relational predicates
are allowed.
"""

import ast
from collections.abc import Callable
from typing import Any

from .predicates import (
    PredicateArity,
    PredicateRegistry,
    all_other_entities,
    any_other_entity,
)


class ConditionCompileError(ValueError):
    """Raised when a condition expression cannot be compiled."""


QUANTIFIERS: dict[str, Callable] = {
    "any_entity": any_other_entity,
    "all_entities": all_other_entities,
}


class CompiledCondition:
    """A compiled condition expression; call it with a context."""

    __slots__ = ("source", "_func")

    def __init__(self, source: str, func: Callable[[Any], bool]):
        self.source = source
        self._func = func

    def __call__(self, ctx: Any) -> bool:
        return bool(self._func(ctx))

    def __repr__(self) -> str:
        return f"CompiledCondition({self.source!r})"


def _compile(node: ast.AST, registry: PredicateRegistry) -> Callable[[Any], bool]:
    if isinstance(node, ast.Expression):
        return _compile(node.body, registry)

    if isinstance(node, ast.Constant):
        if not isinstance(node.value, bool):
            raise ConditionCompileError(
                f"Only True/False constants are allowed, got {node.value!r}"
            )
        value = node.value
        return lambda ctx: value

    if isinstance(node, ast.Name):
        if node.id not in registry:
            raise ConditionCompileError(f"Unknown predicate '{node.id}'")
        registered = registry.get(node.id)
        if registered.arity == PredicateArity.RELATIONAL:
            raise ConditionCompileError(
                f"Relational predicate '{node.id}' must be quantified, "
                f"e.g. any_entity({node.id})"
            )
        return registered.func

    if isinstance(node, ast.UnaryOp):
        if not isinstance(node.op, ast.Not):
            raise ConditionCompileError(
                f"Unary operator not allowed: {type(node.op).__name__}"
            )
        operand = _compile(node.operand, registry)
        return lambda ctx: not operand(ctx)

    if isinstance(node, ast.BoolOp):
        parts = [_compile(value, registry) for value in node.values]
        if isinstance(node.op, ast.And):
            return lambda ctx: all(part(ctx) for part in parts)
        return lambda ctx: any(part(ctx) for part in parts)

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in QUANTIFIERS:
            raise ConditionCompileError(
                f"Only {', '.join(sorted(QUANTIFIERS))} calls are allowed"
            )
        quantifier = node.func.id
        if node.keywords or len(node.args) != 1 or not isinstance(node.args[0], ast.Name):
            raise ConditionCompileError(
                f"{quantifier}() takes exactly one relational predicate name"
            )
        name = node.args[0].id
        if name not in registry:
            raise ConditionCompileError(f"Unknown predicate '{name}'")
        registered = registry.get(name)
        if registered.arity != PredicateArity.RELATIONAL:
            raise ConditionCompileError(
                f"{quantifier}() expects a relational predicate, '{name}' is unary"
            )
        return QUANTIFIERS[quantifier](registered.func)

    raise ConditionCompileError(
        f"Unsupported expression element: {type(node).__name__}"
    )


def compile_condition(expression: str, registry: PredicateRegistry) -> CompiledCondition:
    """Compile a condition expression against a registry.

    Raises:
        ConditionCompileError: On syntax errors, unknown names or disallowed syntax.
    """
    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError as e:
        raise ConditionCompileError(f"Invalid syntax in '{expression}': {e.msg}") from e
    return CompiledCondition(expression, _compile(tree, registry))


def extract_predicate_names(expression: str) -> set[str]:
    """Return all predicate names referenced by an expression.

    Returns an empty set if the expression does not parse.
    """
    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError:
        return set()
    names = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name) and node.id not in QUANTIFIERS:
            names.add(node.id)
    return names
