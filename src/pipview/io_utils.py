"""Node serialization: row arrays, JSON and JSONL via orjson.

Row form is positional ``[id, parent_id, field_no, level, name, description]``,
the compact shape viewers consume; JSONL holds one node object per line.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import orjson

from pipview.tree_types import NodeRow, SpecNode


def nodes_to_rows(nodes: Iterable[SpecNode]) -> list[NodeRow]:
    return [n.to_row() for n in nodes]


def rows_to_nodes(rows: Iterable[Sequence[Any]]) -> list[SpecNode]:
    return [SpecNode.from_row(r) for r in rows]


def dumps_nodes(nodes: Iterable[SpecNode], *, as_rows: bool = False, pretty: bool = False) -> bytes:
    """Encode *nodes* as a JSON array of rows or of objects."""
    payload: list[Any] = (
        [list(r) for r in nodes_to_rows(nodes)]
        if as_rows
        else [n.to_dict() for n in nodes]
    )
    opts = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(payload, option=opts)


def save_nodes_json(nodes: Iterable[SpecNode], path: Path, *, as_rows: bool = True) -> None:
    """Write *nodes* as a JSON array (row form by default)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps_nodes(nodes, as_rows=as_rows, pretty=True))


def load_nodes_json(path: Path) -> list[SpecNode]:
    """Read nodes written by ``save_nodes_json`` in either form."""
    payload = orjson.loads(path.read_bytes())
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array in {path}")
    nodes: list[SpecNode] = []
    for item in payload:
        if isinstance(item, dict):
            nodes.append(SpecNode(
                node_id=int(item["id"]),
                parent_id=int(item["parent_id"]),
                field_no=str(item["field_no"]),
                level=int(item["level"]),
                name=str(item["name"]),
                description=str(item.get("description", "")),
            ))
        else:
            nodes.append(SpecNode.from_row(item))
    return nodes


def save_nodes_jsonl(nodes: Iterable[SpecNode], path: Path) -> None:
    """Write one node object per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(n.to_dict()) for n in nodes]
    path.write_bytes(b"\n".join(lines) + b"\n" if lines else b"")


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped."""
    records: list[dict[str, Any]] = []
    for line in path.read_bytes().split(b"\n"):
        line = line.strip()
        if line:
            records.append(orjson.loads(line))
    return records
