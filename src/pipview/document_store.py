"""DuckDB document store for raw specification exports.

Implements the persistence contract the viewer consumes:

* ``list_documents()``  -> ``[DocumentSummary(name, updated)]``
* ``read(name)``        -> raw content
* ``write(name, content)`` -> True

Records are keyed by filename and overwritten on every write
(last-write-wins).  No caching, retry or conflict resolution happens here.

Tables:
    documents        - one row per filename (content + ISO-8601 UTC timestamp)
    _schema_version  - schema version tracking
"""
from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

log = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"

_SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS _schema_version (
    table_name VARCHAR PRIMARY KEY,
    version VARCHAR NOT NULL
);

CREATE TABLE IF NOT EXISTS documents (
    name VARCHAR PRIMARY KEY,
    content VARCHAR NOT NULL,
    updated VARCHAR NOT NULL
)
"""


class DocumentNotFoundError(KeyError):
    """Raised when reading a filename the store does not hold."""


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True, slots=True)
class DocumentSummary:
    """Listing entry for a stored document."""

    name: str
    updated: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "updated": self.updated}


class DocumentStore:
    """Read/write interface to a ``documents.duckdb`` file."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        create_if_missing: bool = False,
        read_only: bool = False,
    ) -> None:
        self._db_path = Path(db_path)
        if not self._db_path.exists() and not create_if_missing:
            raise FileNotFoundError(f"Document store not found: {self._db_path}")
        if read_only and not self._db_path.exists():
            raise FileNotFoundError(f"Document store not found: {self._db_path}")

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: Any = _duckdb_mod.connect(str(self._db_path), read_only=read_only)
        if not read_only:
            self._create_schema()

    def _create_schema(self) -> None:
        for stmt in _SCHEMA_DDL.split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)
        self._conn.execute(
            "INSERT INTO _schema_version VALUES ('documents', ?) "
            "ON CONFLICT (table_name) DO UPDATE SET version = excluded.version",
            [SCHEMA_VERSION],
        )

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def schema_version(self) -> str:
        row = self._conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = 'documents'"
        ).fetchone()
        return str(row[0]) if row else "unknown"

    # -- contract ------------------------------------------------------------

    def list_documents(self) -> list[DocumentSummary]:
        """All stored documents ordered by name."""
        rows = self._conn.execute(
            "SELECT name, updated FROM documents ORDER BY name"
        ).fetchall()
        return [DocumentSummary(name=str(r[0]), updated=str(r[1])) for r in rows]

    def read(self, name: str) -> str:
        """Return the raw content stored under *name*.

        Raises:
            DocumentNotFoundError: If *name* is not stored.
        """
        row = self._conn.execute(
            "SELECT content FROM documents WHERE name = ?", [name]
        ).fetchone()
        if row is None:
            raise DocumentNotFoundError(name)
        return str(row[0] or "")

    def write(self, name: str, content: str) -> bool:
        """Store *content* under *name*, replacing any previous record."""
        if not name:
            raise ValueError("document name must be non-empty")
        self._conn.execute(
            "INSERT INTO documents (name, content, updated) VALUES (?, ?, ?) "
            "ON CONFLICT (name) DO UPDATE SET "
            "content = excluded.content, updated = excluded.updated",
            [name, content, _now()],
        )
        log.info("Saved %s (%d chars) to %s", name, len(content), self._db_path)
        return True

    def delete(self, name: str) -> bool:
        """Remove *name*; False when it was not stored."""
        if not self.exists(name):
            return False
        self._conn.execute("DELETE FROM documents WHERE name = ?", [name])
        return True

    def exists(self, name: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM documents WHERE name = ?", [name]
        ).fetchone()
        return row is not None

    def count(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()
        return int(row[0]) if row else 0

    # -- lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> DocumentStore:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()
