"""Visibility projection over the flat node sequence.

A node is displayed when it is a root, or when every ancestor on its way
to the root sentinel is in the expanded set.  A dangling parent reference
hides the node.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from pipview.tree_types import ROOT_ID, SpecNode


def build_children_index(nodes: Iterable[SpecNode]) -> dict[int, list[SpecNode]]:
    """Map parent id -> children in document order."""
    children: dict[int, list[SpecNode]] = {}
    for node in nodes:
        children.setdefault(node.parent_id, []).append(node)
    return children


def expandable_ids(nodes: Sequence[SpecNode]) -> frozenset[int]:
    """Ids of nodes with at least one child."""
    parent_ids = {n.parent_id for n in nodes}
    return frozenset(n.node_id for n in nodes if n.node_id in parent_ids)


def ancestor_ids(node: SpecNode, index: Mapping[int, SpecNode]) -> list[int]:
    """Parent chain of *node*, nearest first, excluding the sentinel.

    A dangling parent id is included and ends the walk.
    """
    chain: list[int] = []
    current = node.parent_id
    seen: set[int] = set()
    while current != ROOT_ID and current not in seen:
        chain.append(current)
        seen.add(current)
        parent = index.get(current)
        if parent is None:
            break
        current = parent.parent_id
    return chain


def is_visible(
    node: SpecNode,
    expanded: frozenset[int] | set[int],
    index: Mapping[int, SpecNode],
) -> bool:
    if node.is_root:
        return True
    current = node.parent_id
    steps = 0
    while current != ROOT_ID:
        if current not in expanded:
            return False
        parent = index.get(current)
        if parent is None:
            return False
        current = parent.parent_id
        steps += 1
        if steps > len(index):
            # duplicated ids can link a chain back onto itself
            return False
    return True


def project_visible(
    nodes: Sequence[SpecNode],
    expanded: frozenset[int] | set[int],
) -> list[SpecNode]:
    """Ordered subsequence of *nodes* currently displayed."""
    if not nodes:
        return []
    index = {n.node_id: n for n in nodes}
    return [n for n in nodes if is_visible(n, expanded, index)]
