"""HTML table access and encoding-safe file reading.

Specification exports are HTML documents whose content lives in ``<table>``
elements.  This module is the only place that touches BeautifulSoup; the
rest of the package works with the tag handles returned here.

Table model:
- ``find_tables`` - every ``<table>`` in document order (nested included).
- ``table_rows``  - every ``<tr>`` descendant of a table.
- ``row_cells``   - every ``<td>`` descendant of a row (``<th>`` excluded).

Encoding-safe file reading handles exports saved from Word with mixed
encodings (UTF-8 -> CP1252 -> replace fallback).
"""
from __future__ import annotations

import re
from pathlib import Path

from bs4 import BeautifulSoup
from bs4.element import Tag

# U+FFFD replacement characters left behind by lossy re-encoding upstream.
_REPLACEMENT_CHAR_RE = re.compile("\ufffd")

NBSP = "\u00a0"


# ---------------------------------------------------------------------------
# Text cleanup
# ---------------------------------------------------------------------------


def clean_html_text(raw_html: str) -> str:
    """Remove U+FFFD replacement characters from raw document text."""
    if not raw_html:
        return ""
    return _REPLACEMENT_CHAR_RE.sub("", raw_html)


def replace_nbsp(text: str) -> str:
    """Turn non-breaking spaces into ordinary spaces."""
    return text.replace(NBSP, " ")


# ---------------------------------------------------------------------------
# Table access
# ---------------------------------------------------------------------------


def load_soup(raw_html: str) -> BeautifulSoup:
    """Parse raw HTML (after cleanup) with the stdlib-backed html.parser."""
    return BeautifulSoup(clean_html_text(raw_html), "html.parser")


def find_tables(soup: BeautifulSoup) -> list[Tag]:
    """Return all tables in document order."""
    return list(soup.find_all("table"))


def table_rows(table: Tag) -> list[Tag]:
    """Return all rows of *table*, including rows of nested tables."""
    return list(table.find_all("tr"))


def row_cells(row: Tag) -> list[Tag]:
    """Return the data cells of *row*."""
    return list(row.find_all("td"))


def cell_text(cell: Tag) -> str:
    """Concatenated text content of a cell, untrimmed."""
    return cell.get_text()


def row_text(row: Tag) -> str:
    """Concatenated text content of a whole row, untrimmed."""
    return row.get_text()


# ---------------------------------------------------------------------------
# Encoding-safe file reading
# ---------------------------------------------------------------------------


def read_file(fpath: Path) -> str:
    """Read an export with encoding fallback: UTF-8 -> CP1252 -> replace.

    Raises:
        OSError: If the file cannot be read.
    """
    raw = fpath.read_bytes()
    for encoding in ("utf-8", "cp1252"):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")
