"""Core types shared by the parser, projector, search engine and session.

Type hierarchy:
  SpecNode     - One catalog row, parent-linked by integer id
  ParseResult  - Flat node sequence + id index + definition dictionary

``parent_id == 0`` is the root sentinel, not a real node.  All dataclasses
use slots=True.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

ROOT_ID = 0

type NodeRow = tuple[int, int, str, int, str, str]


@dataclass(frozen=True, slots=True)
class SpecNode:
    """A single catalog row."""

    node_id: int          # digits of the field-number column
    parent_id: int        # ROOT_ID for top-level rows
    field_no: str         # original field-number token: "1.1.2"
    level: int            # count of "|" indentation markers
    name: str             # "telephoneNumber.CommunicationsNumber"
    description: str = ""

    @property
    def is_root(self) -> bool:
        return self.parent_id == ROOT_ID

    def to_row(self) -> NodeRow:
        """Positional form: ``(id, parent_id, field_no, level, name, description)``."""
        return (
            self.node_id,
            self.parent_id,
            self.field_no,
            self.level,
            self.name,
            self.description,
        )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> SpecNode:
        if len(row) != 6:
            raise ValueError(f"node row must have 6 fields, got {len(row)}")
        return cls(
            node_id=int(row[0]),
            parent_id=int(row[1]),
            field_no=str(row[2]),
            level=int(row[3]),
            name=str(row[4]),
            description=str(row[5]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.node_id,
            "parent_id": self.parent_id,
            "field_no": self.field_no,
            "level": self.level,
            "name": self.name,
            "description": self.description,
        }


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Everything produced by one parse call.

    Replaced wholesale on every parse; never updated in place.  The id index
    keeps the last node seen for a duplicated id.
    """

    nodes: tuple[SpecNode, ...]
    definitions: Mapping[str, str] = field(default_factory=dict)
    index: Mapping[int, SpecNode] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "index", {n.node_id: n for n in self.nodes})

    @property
    def is_empty(self) -> bool:
        """True when the document parsed but produced no catalog rows."""
        return not self.nodes

    def __len__(self) -> int:
        return len(self.nodes)
