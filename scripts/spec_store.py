#!/usr/bin/env python3
"""Manage specification exports in the DuckDB document store.

Usage:
    # List stored documents
    python3 scripts/spec_store.py --db data/documents.duckdb list

    # Store an export (name defaults to the file name)
    python3 scripts/spec_store.py --db data/documents.duckdb put exports/3A4.htm

    # Print a stored export
    python3 scripts/spec_store.py --db data/documents.duckdb get 3A4.htm

    # Remove a stored export
    python3 scripts/spec_store.py --db data/documents.duckdb delete 3A4.htm

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from pipview.doc_parser import parse_document
from pipview.document_store import DocumentNotFoundError, DocumentStore
from pipview.html_utils import read_file
from pipview.session import UnsupportedFileError, validate_upload_name
from pipview.tree_builder import StructureNotFoundError

log = logging.getLogger("spec_store")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage specification exports in the document store."
    )
    parser.add_argument(
        "--db", type=Path, required=True, help="Path to documents.duckdb"
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List stored documents")

    put = sub.add_parser("put", help="Store an export file")
    put.add_argument("file", type=Path)
    put.add_argument("--name", default=None, help="Stored name (default: file name)")
    put.add_argument(
        "--no-check", action="store_true",
        help="Store without checking that the export parses.",
    )

    get = sub.add_parser("get", help="Print a stored export")
    get.add_argument("name")

    delete = sub.add_parser("delete", help="Remove a stored export")
    delete.add_argument("name")
    return parser


def cmd_put(store: DocumentStore, file: Path, name: str | None, *, check: bool) -> dict[str, object]:
    stored_name = name or file.name
    validate_upload_name(stored_name)
    content = read_file(file)
    summary: dict[str, object] = {"name": stored_name, "chars": len(content)}
    if check:
        result = parse_document(content)
        summary["nodes"] = len(result.nodes)
        summary["definitions"] = len(result.definitions)
        if result.is_empty:
            log.warning("%s has no catalog rows", stored_name)
    store.write(stored_name, content)
    summary["status"] = "success"
    return summary


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    read_only = args.command in ("list", "get")
    if read_only and not args.db.exists():
        print(f"ERROR: document store not found at {args.db}", file=sys.stderr)
        return 1

    with DocumentStore(args.db, create_if_missing=True, read_only=read_only) as store:
        try:
            if args.command == "list":
                dump_json({"files": [d.to_dict() for d in store.list_documents()]})
            elif args.command == "put":
                if not args.file.exists():
                    print(f"ERROR: file not found: {args.file}", file=sys.stderr)
                    return 1
                dump_json(cmd_put(store, args.file, args.name, check=not args.no_check))
            elif args.command == "get":
                sys.stdout.write(store.read(args.name))
            elif args.command == "delete":
                removed = store.delete(args.name)
                if not removed:
                    print(f"ERROR: no stored document named {args.name!r}", file=sys.stderr)
                    return 1
                dump_json({"name": args.name, "status": "deleted"})
        except DocumentNotFoundError as exc:
            print(f"ERROR: no stored document named {exc.args[0]!r}", file=sys.stderr)
            return 1
        except (OSError, StructureNotFoundError, UnsupportedFileError) as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
