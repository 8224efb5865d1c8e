"""Parse entry point: raw export text -> ParseResult.

Pure and synchronous.  The single failure is a document without any table
(``StructureNotFoundError``); a document whose catalog yields no rows is
reported through ``ParseResult.is_empty``.
"""
from __future__ import annotations

import logging

from pipview.definitions import extract_definitions
from pipview.html_utils import find_tables, load_soup, table_rows
from pipview.tree_builder import build_tree, select_main_table
from pipview.tree_types import ParseResult, SpecNode

log = logging.getLogger(__name__)


def parse_document(raw_html: str) -> ParseResult:
    """Parse a specification export into nodes plus its definition dictionary.

    Raises:
        StructureNotFoundError: If the document has no table.
    """
    soup = load_soup(raw_html)
    tables = find_tables(soup)
    definitions = extract_definitions(tables)
    main_table = select_main_table(tables)
    nodes = build_tree(table_rows(main_table), definitions)
    log.debug(
        "Parsed %d tables, %d definitions, %d nodes",
        len(tables), len(definitions), len(nodes),
    )
    return ParseResult(nodes=tuple(nodes), definitions=definitions)


def parse(raw_html: str) -> tuple[SpecNode, ...]:
    """Return only the node sequence of ``parse_document``."""
    return parse_document(raw_html).nodes
