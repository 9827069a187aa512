"""Evaluation of a TSC against one context.

Evaluation runs in two passes:

1. Validity: the tree is walked bottom-up and every node yields the list of
   alternative sub-instances it can produce for the context (an empty list
   means the node does not hold).
2. Materialization: every root alternative becomes a TSCInstance, and the
   monitors of each node on it are evaluated (once per node per call).
   Monitor results never affect which instances are produced.

A predicate that raises makes its node not hold; the failure is logged and
recorded as an EvaluationIssue, and never escapes to the caller.

Node semantics:
    leaf       holds iff its condition holds
    all        own condition and every child hold; cross product of children
    optional   own condition holds; holding children contribute, others do not
    exclusive  own condition holds and exactly one child holds (see ExclusivePolicy)
    bounded    own condition holds and #holding children is within bounds
A node whose children were all pruned by a projection behaves as a leaf.
"""

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

from ..core.models import NodeKind
from .nodes import TSC, TSCNode

logger = logging.getLogger(__name__)


class ExclusivePolicy(str, Enum):
    """What to do when more than one child of an exclusive node holds."""

    REPORT_ALL = "report_all"  # one flagged instance per holding child
    FIRST = "first"  # first holding child in declaration order, flagged
    REJECT = "reject"  # the exclusive node does not hold


class IssueKind(str, Enum):
    PREDICATE_ERROR = "predicate_error"
    MONITOR_ERROR = "monitor_error"
    EXCLUSIVE_CONFLICT = "exclusive_conflict"


@dataclass(frozen=True)
class EvaluationIssue:
    """A non-fatal anomaly found while evaluating one context."""

    kind: IssueKind
    node_path: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value} at {self.node_path}: {self.message}"


@dataclass
class TSCInstanceNode:
    """One node of a produced instance."""

    label: str
    children: list["TSCInstanceNode"] = field(default_factory=list)
    monitor_results: dict[str, bool] = field(default_factory=dict)

    def leaf_paths(self, prefix: str = "") -> list[str]:
        """'/'-joined label paths from this node to every leaf below it."""
        here = f"{prefix}/{self.label}" if prefix else self.label
        if not self.children:
            return [here]
        return [p for c in self.children for p in c.leaf_paths(here)]

    def walk(self, path: str = ""):
        here = f"{path}/{self.label}" if path else self.label
        yield here, self
        for c in self.children:
            yield from c.walk(here)

    def to_key(self) -> str:
        if not self.children:
            return self.label
        return f"{self.label}({', '.join(c.to_key() for c in self.children)})"


@dataclass
class TSCInstance:
    """A valid classification of one context by one TSC."""

    tsc_identifier: str
    root: TSCInstanceNode
    warnings: list[EvaluationIssue] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        """Root label followed by every root-to-leaf path relative to the root.

        E.g. ["TSCRoot", "Weather/Clear", "Junction"].
        """
        if not self.root.children:
            return [self.root.label]
        return [self.root.label] + [
            p for c in self.root.children for p in c.leaf_paths()
        ]

    @property
    def key(self) -> str:
        """Canonical string identifying this instance's structure."""
        return self.root.to_key()

    @property
    def monitor_failures(self) -> list[tuple[str, str]]:
        """(node path, monitor name) of every monitor that evaluated false."""
        return [
            (path, name)
            for path, node in self.root.walk()
            for name, passed in node.monitor_results.items()
            if not passed
        ]

    @property
    def flagged(self) -> bool:
        return bool(self.warnings)


@dataclass
class InstantiationResult:
    """All instances of one (tree, context) evaluation plus unattached issues."""

    tsc_identifier: str
    instances: list[TSCInstance] = field(default_factory=list)
    issues: list[EvaluationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return bool(self.instances)


class _Alternative(NamedTuple):
    node: TSCNode
    children: tuple["_Alternative", ...]
    warnings: tuple[EvaluationIssue, ...]


def _describe(ctx: Any) -> str:
    return str(getattr(ctx, "segment_id", None) or type(ctx).__name__)


class _Instantiator:
    def __init__(self, tree: TSC, ctx: Any, policy: ExclusivePolicy):
        self.tree = tree
        self.ctx = ctx
        self.policy = policy
        self.issues: list[EvaluationIssue] = []
        self._monitor_cache: dict[int, dict[str, bool]] = {}

    # ── pass 1 ──

    def _holds(self, node: TSCNode, path: str) -> bool:
        if node.condition is None:
            return True
        try:
            return bool(node.condition(self.ctx))
        except Exception as e:
            logger.warning(
                "Condition of '%s' in TSC '%s' failed for %s: %s",
                path,
                self.tree.identifier,
                _describe(self.ctx),
                e,
            )
            self.issues.append(
                EvaluationIssue(
                    kind=IssueKind.PREDICATE_ERROR,
                    node_path=path,
                    message=f"{type(e).__name__}: {e}",
                )
            )
            return False

    def alternatives(self, node: TSCNode, path: str) -> list[_Alternative]:
        if not self._holds(node, path):
            return []
        if node.is_leaf:
            return [_Alternative(node, (), ())]

        child_alts = [
            (child, self.alternatives(child, f"{path}/{child.label}"))
            for child in node.children
        ]
        holding = [(child, alts) for child, alts in child_alts if alts]

        if node.kind == NodeKind.OPTIONAL:
            return self._combine(node, [alts for _, alts in holding])

        if node.kind == NodeKind.BOUNDED:
            lo, hi = node.bounds
            if not lo <= len(holding) <= hi:
                return []
            return self._combine(node, [alts for _, alts in holding])

        if node.kind == NodeKind.EXCLUSIVE:
            return self._exclusive(node, path, holding)

        # ALL
        if len(holding) != len(child_alts):
            return []
        return self._combine(node, [alts for _, alts in holding])

    @staticmethod
    def _combine(
        node: TSCNode, child_alternatives: list[list[_Alternative]]
    ) -> list[_Alternative]:
        return [
            _Alternative(node, combo, ())
            for combo in itertools.product(*child_alternatives)
        ]

    def _exclusive(
        self,
        node: TSCNode,
        path: str,
        holding: list[tuple[TSCNode, list[_Alternative]]],
    ) -> list[_Alternative]:
        if not holding:
            return []
        if len(holding) == 1:
            return [_Alternative(node, (alt,), ()) for alt in holding[0][1]]

        labels = ", ".join(child.label for child, _ in holding)
        issue = EvaluationIssue(
            kind=IssueKind.EXCLUSIVE_CONFLICT,
            node_path=path,
            message=f"{len(holding)} exclusive children hold: {labels}",
        )
        logger.info(
            "TSC '%s', %s: %s (policy=%s)",
            self.tree.identifier,
            _describe(self.ctx),
            issue,
            self.policy.value,
        )
        if self.policy == ExclusivePolicy.REJECT:
            self.issues.append(issue)
            return []
        if self.policy == ExclusivePolicy.FIRST:
            holding = holding[:1]
        return [
            _Alternative(node, (alt,), (issue,)) for _, alts in holding for alt in alts
        ]

    # ── pass 2 ──

    def _monitors(self, node: TSCNode, path: str) -> dict[str, bool]:
        cached = self._monitor_cache.get(id(node))
        if cached is not None:
            return cached
        results: dict[str, bool] = {}
        for name, monitor in node.monitors.items():
            try:
                results[name] = bool(monitor(self.ctx))
            except Exception as e:
                logger.warning(
                    "Monitor '%s' of '%s' in TSC '%s' failed for %s: %s",
                    name,
                    path,
                    self.tree.identifier,
                    _describe(self.ctx),
                    e,
                )
                self.issues.append(
                    EvaluationIssue(
                        kind=IssueKind.MONITOR_ERROR,
                        node_path=path,
                        message=f"monitor '{name}': {type(e).__name__}: {e}",
                    )
                )
        self._monitor_cache[id(node)] = results
        return results

    def materialize(
        self, alt: _Alternative, path: str, warnings: list[EvaluationIssue]
    ) -> TSCInstanceNode:
        here = f"{path}/{alt.node.label}" if path else alt.node.label
        warnings.extend(alt.warnings)
        return TSCInstanceNode(
            label=alt.node.label,
            children=[self.materialize(c, here, warnings) for c in alt.children],
            monitor_results=dict(self._monitors(alt.node, here)),
        )

    def run(self) -> InstantiationResult:
        root = self.tree.root
        result = InstantiationResult(tsc_identifier=self.tree.identifier)
        for alt in self.alternatives(root, root.label):
            warnings: list[EvaluationIssue] = []
            instance_root = self.materialize(alt, "", warnings)
            result.instances.append(
                TSCInstance(
                    tsc_identifier=self.tree.identifier,
                    root=instance_root,
                    warnings=list(dict.fromkeys(warnings)),
                )
            )
        result.issues = self.issues
        return result


def evaluate_tsc(
    tree: TSC,
    ctx: Any,
    policy: ExclusivePolicy = ExclusivePolicy.REPORT_ALL,
) -> InstantiationResult:
    """Evaluate ``tree`` against one context.

    Returns:
        InstantiationResult with the valid instances (flagged where an
        exclusive conflict occurred) and the issues not attached to any
        instance (predicate and monitor failures, rejected conflicts).
    """
    return _Instantiator(tree, ctx, ExclusivePolicy(policy)).run()


def instantiate(
    tree: TSC,
    ctx: Any,
    policy: ExclusivePolicy = ExclusivePolicy.REPORT_ALL,
) -> list[TSCInstance]:
    """Valid instances of ``tree`` for one context."""
    return evaluate_tsc(tree, ctx, policy).instances
