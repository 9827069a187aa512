"""Static size of a TSC: how many distinct instances it can express.

The count is purely structural (no context):

    leaf / childless    1
    all                 product of child counts
    optional            product of (child count + 1)
    exclusive           sum of child counts
    bounded(lo, hi)     sum over k in [lo, hi] of the weighted k-subset sums,
                        i.e. the elementary symmetric polynomials e_k of the
                        child counts

possible_instances enumerates the same set explicitly; its length always
equals possible_instance_count.
"""

import itertools
import math

from ..core.models import NodeKind
from .instantiation import TSCInstanceNode
from .nodes import TSC, TSCNode


def _elementary_symmetric(values: list[int]) -> list[int]:
    """e_0..e_n of ``values``; e_k sums the products of all k-subsets."""
    e = [1] + [0] * len(values)
    for v in values:
        for k in range(len(values), 0, -1):
            e[k] += e[k - 1] * v
    return e


def node_instance_count(node: TSCNode) -> int:
    if node.is_leaf:
        return 1

    counts = [node_instance_count(c) for c in node.children]

    if node.kind == NodeKind.OPTIONAL:
        return math.prod(c + 1 for c in counts)
    if node.kind == NodeKind.EXCLUSIVE:
        return sum(counts)
    if node.kind == NodeKind.BOUNDED:
        lo, hi = node.bounds
        e = _elementary_symmetric(counts)
        return sum(e[k] for k in range(lo, min(hi, len(counts)) + 1))
    return math.prod(counts)


def possible_instance_count(tree: TSC) -> int:
    """Number of distinct instances ``tree`` can produce."""
    return node_instance_count(tree.root)


def _enumerate(node: TSCNode) -> list[TSCInstanceNode]:
    if node.is_leaf:
        return [TSCInstanceNode(node.label)]

    per_child = [_enumerate(c) for c in node.children]

    if node.kind == NodeKind.EXCLUSIVE:
        return [TSCInstanceNode(node.label, [alt]) for alts in per_child for alt in alts]

    if node.kind in (NodeKind.OPTIONAL, NodeKind.BOUNDED):
        if node.kind == NodeKind.OPTIONAL:
            sizes = range(0, len(per_child) + 1)
        else:
            lo, hi = node.bounds
            sizes = range(lo, min(hi, len(per_child)) + 1)
        result = []
        for k in sizes:
            for subset in itertools.combinations(per_child, k):
                for combo in itertools.product(*subset):
                    result.append(TSCInstanceNode(node.label, list(combo)))
        return result

    return [
        TSCInstanceNode(node.label, list(combo))
        for combo in itertools.product(*per_child)
    ]


def possible_instances(tree: TSC) -> list[TSCInstanceNode]:
    """Enumerate every structurally possible instance of ``tree``.

    Exponential in the tree size; intended for small trees and for checking
    the closed-form count.
    """
    return _enumerate(tree.root)
