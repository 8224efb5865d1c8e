#!/usr/bin/env python3
"""Parse a specification export and print its catalog tree.

Reads an export from disk (or from the document store), builds the node
tree, optionally runs a keyword/path search, and prints either the
currently visible outline or the full node list as JSON.

Usage:
    # Outline of the root level
    python3 scripts/spec_reader.py exports/3A4_PurchaseOrderRequest.htm

    # Fully expanded outline
    python3 scripts/spec_reader.py exports/3A4.htm --expand-all

    # Path search; prints the outline focused on the match
    python3 scripts/spec_reader.py exports/3A4.htm \
      --query "/Pip3A4PurchaseOrderRequest/ServiceHeader/ProcessControl"

    # Load from the document store and dump nodes as row arrays
    python3 scripts/spec_reader.py --db data/documents.duckdb \
      --name 3A4.htm --json --rows

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from pipview.document_store import DocumentNotFoundError, DocumentStore
from pipview.html_utils import read_file
from pipview.io_utils import dumps_nodes
from pipview.session import (
    EmptyDocumentError,
    UnsupportedFileError,
    ViewerSession,
    ViewState,
    validate_upload_name,
)
from pipview.tree_builder import StructureNotFoundError
from pipview.tree_types import SpecNode
from pipview.visibility import expandable_ids

log = logging.getLogger("spec_reader")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse a specification export and print its catalog tree."
    )
    parser.add_argument(
        "path", nargs="?", type=Path, default=None,
        help="Export file (.htm/.html/.txt). Omit when using --db/--name.",
    )
    parser.add_argument("--db", type=Path, default=None, help="Path to documents.duckdb")
    parser.add_argument("--name", default=None, help="Stored document name (with --db)")
    parser.add_argument(
        "--query", default=None,
        help="Keyword, or a path such as /Pip3A4/ServiceHeader/ProcessControl",
    )
    parser.add_argument(
        "--expand-all", action="store_true",
        help="Expand every node with children before printing.",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print all nodes as JSON instead of the outline.",
    )
    parser.add_argument(
        "--rows", action="store_true",
        help="With --json, emit [id, parent_id, field_no, level, name, description] rows.",
    )
    parser.add_argument(
        "--descriptions", action="store_true",
        help="Show descriptions in the outline.",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def render_outline(
    nodes: Sequence[SpecNode],
    state: ViewState,
    parents: frozenset[int],
    *,
    descriptions: bool = False,
) -> list[str]:
    """Format visible *nodes* as indented outline lines.

    ``+``/``-`` mark collapsed/expanded parents and ``*`` marks search hits.
    """
    lines: list[str] = []
    for node in nodes:
        if node.node_id in parents:
            marker = "-" if node.node_id in state.expanded else "+"
        else:
            marker = " "
        hit = "*" if node.node_id in state.highlighted else " "
        line = f"{hit}{'  ' * node.level}{marker} {node.field_no:<10} {node.name}"
        if descriptions and node.description:
            line += f"  -- {node.description}"
        lines.append(line.rstrip())
    return lines


def _load_source(args: argparse.Namespace) -> tuple[str, str]:
    if args.db is not None:
        if not args.name:
            raise SystemExit("ERROR: --name is required with --db")
        with DocumentStore(args.db, read_only=True) as store:
            return store.read(args.name), args.name
    if args.path is None:
        raise SystemExit("ERROR: give an export path or --db/--name")
    validate_upload_name(args.path.name)
    if not args.path.exists():
        raise SystemExit(f"ERROR: file not found: {args.path}")
    return read_file(args.path), args.path.name


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    session = ViewerSession()
    try:
        content, name = _load_source(args)
        session.load_html(content, name)
    except (
        DocumentNotFoundError,
        EmptyDocumentError,
        OSError,
        StructureNotFoundError,
        UnsupportedFileError,
    ) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if args.expand_all:
        session.expand_all()
    if args.query:
        outcome = session.search(args.query)
        if outcome is not None:
            log.info(
                "%s search %r: %d highlighted",
                outcome.mode, args.query, len(outcome.highlighted),
            )

    if args.json:
        sys.stdout.buffer.write(dumps_nodes(session.nodes, as_rows=args.rows, pretty=True))
        sys.stdout.buffer.write(b"\n")
        return 0

    for line in render_outline(
        session.visible_nodes(),
        session.state,
        expandable_ids(session.nodes),
        descriptions=args.descriptions,
    ):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
