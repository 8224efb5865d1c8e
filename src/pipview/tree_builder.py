"""Catalog tree builder for specification exports.

Turns the main catalog table into a flat, parent-linked node sequence.

2-phase approach:
    1. Pick the main table: among tables with more than five rows, the
       one with the most rows containing the ``|--`` marker.  Without any
       marker, fall back to the table with the most rows.
    2. Walk its rows in order.  A row's depth is the number of ``|``
       characters in its label cell; its parent is the last id emitted
       one level shallower (``0`` when there is none).

Rows with fewer than three cells or a non-numeric id are dropped.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence

from bs4.element import Tag

from pipview.definitions import lookup_description
from pipview.html_utils import cell_text, replace_nbsp, row_cells, row_text, table_rows
from pipview.tree_types import ROOT_ID, SpecNode

log = logging.getLogger(__name__)

HIERARCHY_MARKER = "|--"
MIN_MAIN_TABLE_ROWS = 5

_NON_DIGIT_RE = re.compile(r"\D")
_NAME_DECORATION_RE = re.compile(r"[|\-]")

# Column positions in a catalog row.
_ID_CELL = 0
_NAME_CELL = 2
_ALT_NAME_CELL = 3


class StructureNotFoundError(ValueError):
    """Raised when a document contains no table at all."""


# ---------------------------------------------------------------------------
# Table selection
# ---------------------------------------------------------------------------


def _marker_score(table: Tag) -> int:
    return sum(1 for row in table_rows(table) if HIERARCHY_MARKER in row_text(row))


def select_main_table(tables: Sequence[Tag]) -> Tag:
    """Return the catalog table of a document.

    Ties keep the earliest table in document order.

    Raises:
        StructureNotFoundError: If *tables* is empty.
    """
    main: Tag | None = None
    best_score = 0
    for table in tables:
        if len(table_rows(table)) <= MIN_MAIN_TABLE_ROWS:
            continue
        score = _marker_score(table)
        if score > best_score:
            best_score = score
            main = table

    if main is None and tables:
        log.warning(
            "No table contains %r; falling back to the largest table", HIERARCHY_MARKER
        )
        main = max(tables, key=lambda t: len(table_rows(t)))

    if main is None:
        raise StructureNotFoundError(
            "No table found in document; cannot identify a catalog structure"
        )
    return main


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------


def parse_node_id(field_no: str) -> int | None:
    """Strip every non-digit from *field_no*; None if nothing is left."""
    digits = _NON_DIGIT_RE.sub("", field_no)
    if not digits:
        return None
    return int(digits)


def parse_label(raw: str) -> tuple[int, str]:
    """Return ``(level, name)`` for a raw label cell.

    ``"|--|--ProcessControl"`` -> ``(2, "ProcessControl")``.
    """
    text = replace_nbsp(raw)
    level = text.count("|")
    name = _NAME_DECORATION_RE.sub("", text).strip()
    return level, name


def build_tree(rows: Sequence[Tag], definitions: Mapping[str, str]) -> list[SpecNode]:
    """Build the flat node list from catalog *rows*.

    Args:
        rows: Rows of the main table in document order.
        definitions: Definition dictionary for description lookup.

    Returns:
        Nodes in row order.  Empty when no row qualifies; the caller
        decides whether that is an error.
    """
    nodes: list[SpecNode] = []
    last_id_at_level: dict[int, int] = {-1: ROOT_ID}
    seen_ids: set[int] = set()

    for row in rows:
        cells = row_cells(row)
        if len(cells) < 3:
            continue

        field_no = cell_text(cells[_ID_CELL]).strip()
        node_id = parse_node_id(field_no)
        if node_id is None:
            continue

        level, name = parse_label(cell_text(cells[_NAME_CELL]))
        if not name and len(cells) > _ALT_NAME_CELL:
            level, name = parse_label(cell_text(cells[_ALT_NAME_CELL]))

        parent_id = last_id_at_level.get(level - 1, ROOT_ID)
        last_id_at_level[level] = node_id

        if node_id in seen_ids:
            log.debug("Duplicate node id %d at field %r", node_id, field_no)
        seen_ids.add(node_id)

        nodes.append(SpecNode(
            node_id=node_id,
            parent_id=parent_id,
            field_no=field_no,
            level=level,
            name=name,
            description=lookup_description(name, definitions),
        ))

    return nodes
