"""Keyword and hierarchical-path search over the catalog tree.

Mode is picked from the query shape: a query containing ``/`` or starting
with ``Pip`` is a path; anything else is a keyword.

Keyword mode:
    Case-insensitive substring match on the node name, or substring match
    of the lowered query on the field number.  Every ancestor of every hit
    is added to the expanded set.

Path mode:
    ``/Pip3A4PurchaseOrderRequest/ServiceHeader/ProcessControl[0]/`` is
    normalized to the segments ``["ServiceHeader", "ProcessControl"]``.
    Each position is resolved against the children of the current node by
    three rules, in order:

    1. compound: ``seg[i] + "." + seg[i+1]`` (consumes two segments)
    2. single:   ``seg[i]``
    3. choice:   ``seg[i]`` among the children of a ``Choice`` /
       ``(Choice)`` child

    A name matches when it equals the wanted text case-insensitively or
    contains it case-sensitively.  Resolution stops at the first segment
    none of the rules can place.

    The stripped ``/PipXXX/`` prefix anchors a second walk: when a root
    node's name equals or contains it, descent also runs from that root.
    The walk resolving more segments is kept, the anchored one on ties.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from pipview.tree_types import ROOT_ID, SpecNode
from pipview.visibility import ancestor_ids, build_children_index

log = logging.getLogger(__name__)

PATH_PREFIX = "Pip"
CHOICE_NAMES: tuple[str, ...] = ("Choice", "(Choice)")

_ROOT_PREFIX_RE = re.compile(r"^/?(Pip[^/]+)/")
_ARRAY_INDEX_RE = re.compile(r"\[\d*\]")


class SearchMode(StrEnum):
    KEYWORD = "keyword"
    PATH = "path"


@dataclass(frozen=True, slots=True)
class PathQuery:
    """A normalized path query."""

    root_token: str | None      # "Pip3A4PurchaseOrderRequest", if stripped
    segments: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Result of one search.

    ``expanded`` is the complete expanded set to adopt afterwards (it equals
    the input set when nothing matched).
    """

    mode: SearchMode
    highlighted: frozenset[int]
    expanded: frozenset[int]
    resolved_segments: int = 0
    stopped_at: str | None = None
    path: tuple[int, ...] = field(default_factory=tuple)

    @property
    def matched(self) -> bool:
        return bool(self.highlighted)


# ---------------------------------------------------------------------------
# Mode detection / normalization
# ---------------------------------------------------------------------------


def detect_search_mode(query: str) -> SearchMode:
    trimmed = query.strip()
    if "/" in trimmed or trimmed.startswith(PATH_PREFIX):
        return SearchMode.PATH
    return SearchMode.KEYWORD


def normalize_path_query(query: str) -> PathQuery:
    """Strip the ``/PipXXX/`` prefix, array indexes and edge slashes, then split."""
    path = query.strip()
    root_token: str | None = None
    m = _ROOT_PREFIX_RE.match(path)
    if m:
        root_token = m.group(1)
        path = path[m.end():]
    path = _ARRAY_INDEX_RE.sub("", path)
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    segments = tuple(s for s in path.split("/") if s)
    return PathQuery(root_token=root_token, segments=segments)


# ---------------------------------------------------------------------------
# Keyword mode
# ---------------------------------------------------------------------------


def keyword_search(
    nodes: Sequence[SpecNode],
    query: str,
    expanded: frozenset[int],
    index: Mapping[int, SpecNode] | None = None,
) -> SearchOutcome:
    """Highlight every name/field-number hit and reveal its ancestors."""
    if index is None:
        index = {n.node_id: n for n in nodes}
    term = query.strip().lower()
    matches = [
        n for n in nodes
        if term in n.name.lower() or term in n.field_no
    ]
    new_expanded = set(expanded)
    for match in matches:
        new_expanded.update(ancestor_ids(match, index))
    return SearchOutcome(
        mode=SearchMode.KEYWORD,
        highlighted=frozenset(n.node_id for n in matches),
        expanded=frozenset(new_expanded),
    )


# ---------------------------------------------------------------------------
# Path mode
# ---------------------------------------------------------------------------


def name_matches(name: str, wanted: str) -> bool:
    """Case-insensitive equality, or case-sensitive containment."""
    return name.lower() == wanted.lower() or wanted in name


def _find_child(children: Sequence[SpecNode], wanted: str) -> SpecNode | None:
    for child in children:
        if name_matches(child.name, wanted):
            return child
    return None


def _find_choice(children: Sequence[SpecNode]) -> SpecNode | None:
    for child in children:
        if child.name in CHOICE_NAMES:
            return child
    return None


def _anchor_root(
    root_token: str | None,
    children_index: Mapping[int, list[SpecNode]],
) -> SpecNode | None:
    if not root_token:
        return None
    return _find_child(children_index.get(ROOT_ID, []), root_token)


@dataclass(slots=True)
class _Walk:
    path: list[int]
    matched_id: int | None = None
    resolved: int = 0
    stopped_at: str | None = None
    stopped_under: int = ROOT_ID
    choice_segments: list[str] = field(default_factory=list)


def _walk_segments(
    segments: Sequence[str],
    children_index: Mapping[int, list[SpecNode]],
    start_id: int,
    path: list[int],
) -> _Walk:
    walk = _Walk(path=path)
    current_id = start_id
    i = 0
    while i < len(segments):
        segment = segments[i]
        children = children_index.get(current_id, [])

        # 1. compound: "telephoneNumber" + "CommunicationsNumber"
        if i + 1 < len(segments):
            match = _find_child(children, f"{segment}.{segments[i + 1]}")
            if match is not None:
                walk.path.append(match.node_id)
                current_id = walk.matched_id = match.node_id
                walk.resolved += 2
                i += 2
                continue

        # 2. single segment
        match = _find_child(children, segment)
        if match is not None:
            walk.path.append(match.node_id)
            current_id = walk.matched_id = match.node_id
            walk.resolved += 1
            i += 1
            continue

        # 3. transparent descent through a Choice grouping node
        choice = _find_choice(children)
        if choice is not None:
            match = _find_child(children_index.get(choice.node_id, []), segment)
            if match is not None:
                walk.choice_segments.append(segment)
                walk.path.extend((choice.node_id, match.node_id))
                current_id = walk.matched_id = match.node_id
                walk.resolved += 1
                i += 1
                continue

        walk.stopped_at = segment
        walk.stopped_under = current_id
        break
    return walk


def path_search(
    nodes: Sequence[SpecNode],
    query: str,
    expanded: frozenset[int],
) -> SearchOutcome:
    """Resolve a hierarchical path and focus the last node reached.

    On at least one resolved segment the expanded set is *replaced* by the
    nodes on the resolved path; otherwise it is returned unchanged and
    nothing is highlighted.  When the prefix names a root, the walk from
    that root and the walk from the sentinel both run; the one resolving
    more segments wins, the anchored one on ties.
    """
    parsed = normalize_path_query(query)
    children_index = build_children_index(nodes)

    walks: list[_Walk] = []
    anchor = _anchor_root(parsed.root_token, children_index)
    if anchor is not None:
        walks.append(_walk_segments(
            parsed.segments, children_index, anchor.node_id, [anchor.node_id]
        ))
    walks.append(_walk_segments(parsed.segments, children_index, ROOT_ID, []))
    walk = max(walks, key=lambda w: w.resolved)
    for segment in walk.choice_segments:
        log.info("Auto-resolved Choice path at segment %r", segment)
    if walk.stopped_at is not None:
        log.info(
            "Path search stopped at segment %r, parent id %d",
            walk.stopped_at, walk.stopped_under,
        )

    if walk.matched_id is None:
        return SearchOutcome(
            mode=SearchMode.PATH,
            highlighted=frozenset(),
            expanded=expanded,
            stopped_at=walk.stopped_at,
        )
    return SearchOutcome(
        mode=SearchMode.PATH,
        highlighted=frozenset({walk.matched_id}),
        expanded=frozenset(walk.path),
        resolved_segments=walk.resolved,
        stopped_at=walk.stopped_at,
        path=tuple(walk.path),
    )


def run_search(
    nodes: Sequence[SpecNode],
    query: str,
    expanded: frozenset[int],
) -> SearchOutcome:
    """Dispatch *query* to keyword or path mode.

    A blank query highlights nothing and keeps the expanded set.
    """
    if not query.strip():
        return SearchOutcome(
            mode=SearchMode.KEYWORD,
            highlighted=frozenset(),
            expanded=expanded,
        )
    if detect_search_mode(query) is SearchMode.PATH:
        return path_search(nodes, query, expanded)
    return keyword_search(nodes, query, expanded)
