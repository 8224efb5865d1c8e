"""Definition-table extractor for specification exports.

Builds the ``name -> description`` dictionary used to annotate catalog
nodes.  A table qualifies as a definition table when any of its rows
mentions both "name" and "definition" (case-insensitive).  Each row with
at least two cells contributes ``cell[0] -> cell[1]``; later rows win.

Descriptions made only of the export tool's placeholder text
("Unformatted text", with or without a trailing period) are stored as
empty strings.

Lookup for a node name is an ordered list of key strategies tried in
sequence (full name, property part, type part); see ``lookup_description``.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping

from bs4.element import Tag

from pipview.html_utils import cell_text, row_cells, row_text, table_rows

NAME_SEPARATOR = "."

_PLACEHOLDER_RE = re.compile(r"^unformatted\s*text\.?$", re.IGNORECASE)
_HEADER_TOKEN = "name"


# ---------------------------------------------------------------------------
# Table classification
# ---------------------------------------------------------------------------


def is_definition_table(table: Tag) -> bool:
    """Return True if any row of *table* mentions both "name" and "definition"."""
    for row in table_rows(table):
        text = row_text(row).lower()
        if "name" in text and "definition" in text:
            return True
    return False


def normalize_definition(text: str) -> str:
    """Trim *text* and blank out the "Unformatted text." placeholder."""
    cleaned = text.strip()
    if _PLACEHOLDER_RE.match(cleaned):
        return ""
    return cleaned


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_definitions(tables: Iterable[Tag]) -> dict[str, str]:
    """Build the definition dictionary from every qualifying table.

    Rows with fewer than two cells, an empty name, or the literal header
    name "Name" are skipped.  Duplicate names are last-write-wins.

    Args:
        tables: Tables of one document, in document order.

    Returns:
        Mapping of exact (case-sensitive) name to description.
    """
    definitions: dict[str, str] = {}
    for table in tables:
        if not is_definition_table(table):
            continue
        for row in table_rows(table):
            cells = row_cells(row)
            if len(cells) < 2:
                continue
            name = cell_text(cells[0]).strip()
            if not name or name.lower() == _HEADER_TOKEN:
                continue
            definitions[name] = normalize_definition(cell_text(cells[1]))
    return definitions


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def _full_name(name: str) -> str | None:
    return name


def _property_part(name: str) -> str | None:
    if NAME_SEPARATOR not in name:
        return None
    return name.split(NAME_SEPARATOR, 1)[0]


def _type_part(name: str) -> str | None:
    if NAME_SEPARATOR not in name:
        return None
    return name.split(NAME_SEPARATOR, 1)[1]


# Tried in order; the first key with a non-empty description wins.
LOOKUP_STRATEGIES: tuple[Callable[[str], str | None], ...] = (
    _full_name,
    _property_part,
    _type_part,
)


def lookup_description(name: str, definitions: Mapping[str, str]) -> str:
    """Resolve the description for a (possibly compound) node name.

    ``"telephoneNumber.CommunicationsNumber"`` is looked up as the full
    name, then ``"telephoneNumber"``, then ``"CommunicationsNumber"``.
    An entry whose description is empty does not count as a hit, so a
    placeholder on the full name falls through to the parts.
    """
    for strategy in LOOKUP_STRATEGIES:
        key = strategy(name)
        if key is None:
            continue
        description = definitions.get(key, "")
        if description:
            return description
    return ""
