"""FastAPI server for the specification tree viewer.

Exposes the document store (list/read/save raw exports) and one viewer
session (parse, search, expand/collapse, visible tree) as JSON endpoints
for the browser frontend.

Usage:
    cd dashboard
    PYTHONPATH=../src PIPVIEW_STORE_PATH=../data/documents.duckdb \
        uvicorn api.server:app --reload --port 8000
"""
from __future__ import annotations

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, Field

# Add src to path so we can import pipview modules
_pipview_src = Path(__file__).resolve().parents[2] / "src"
if str(_pipview_src) not in sys.path:
    sys.path.insert(0, str(_pipview_src))

from pipview.document_store import DocumentNotFoundError, DocumentStore  # noqa: E402
from pipview.session import (  # noqa: E402
    EmptyDocumentError,
    NothingToSaveError,
    UnsupportedFileError,
    ViewerSession,
    validate_upload_name,
)
from pipview.tree_builder import StructureNotFoundError  # noqa: E402
from pipview.visibility import expandable_ids  # noqa: E402

log = logging.getLogger("pipview.dashboard")

# ---------------------------------------------------------------------------
# Globals
#
# DuckDB connections are NOT thread-safe and the session is process-wide.
# Run a single uvicorn worker and keep every endpoint ``async def`` so they
# all execute on the event loop thread.
# ---------------------------------------------------------------------------
_store_path = Path(
    os.environ.get(
        "PIPVIEW_STORE_PATH",
        str(Path(__file__).resolve().parents[2] / "data" / "documents.duckdb"),
    )
)
_store: DocumentStore | None = None
_session = ViewerSession()


def _get_store() -> DocumentStore:
    """Get the document store, raising 503 if not available."""
    if _store is None:
        raise HTTPException(status_code=503, detail="Document store not available")
    return _store


def _get_loaded_session() -> ViewerSession:
    if not _session.is_loaded:
        raise HTTPException(status_code=409, detail="No document loaded")
    return _session


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    global _store  # noqa: PLW0603
    try:
        _store = DocumentStore(_store_path, create_if_missing=True)
        log.info("Document store opened: %s (%d documents)", _store_path, _store.count())
    except Exception as e:
        log.warning("Could not open document store at %s: %s", _store_path, e)
        _store = None
    yield
    if _store is not None:
        _store.close()
        _store = None


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Specification Tree Viewer API",
    version="0.1.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class SaveFileRequest(BaseModel):
    name: str = Field(min_length=1)
    content: str


class OpenDocumentRequest(BaseModel):
    name: str = Field(min_length=1)


class UploadDocumentRequest(BaseModel):
    name: str = Field(min_length=1)
    content: str


class SaveDocumentRequest(BaseModel):
    name: str | None = None


class SearchRequest(BaseModel):
    query: str = ""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _state_payload(session: ViewerSession) -> dict[str, Any]:
    state = session.state
    return {
        "filename": session.filename,
        "node_count": len(session.nodes),
        "expanded": sorted(state.expanded),
        "highlighted": sorted(state.highlighted),
        "query": state.query,
        "mode": str(state.mode),
    }


def _load_into_session(content: str, name: str) -> dict[str, Any]:
    try:
        result = _session.load_html(content, name)
    except (StructureNotFoundError, EmptyDocumentError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return {
        "filename": name,
        "node_count": len(result.nodes),
        "definition_count": len(result.definitions),
    }


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "store_path": str(_store_path),
        "store_available": _store is not None,
        "document": _session.filename or None,
        "node_count": len(_session.nodes),
    }


# ---------------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------------


@app.get("/api/files")
async def list_files() -> dict[str, Any]:
    store = _get_store()
    return {"files": [d.to_dict() for d in store.list_documents()]}


@app.get("/api/files/{name:path}")
async def get_file(name: str) -> dict[str, Any]:
    store = _get_store()
    try:
        content = store.read(name)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"File not found: {name}") from e
    return {"name": name, "content": content}


@app.post("/api/files")
async def save_file(req: SaveFileRequest) -> dict[str, Any]:
    store = _get_store()
    store.write(req.name, req.content)
    return {"status": "success", "name": req.name}


# ---------------------------------------------------------------------------
# Session documents
# ---------------------------------------------------------------------------


@app.post("/api/documents/open")
async def open_document(req: OpenDocumentRequest) -> dict[str, Any]:
    store = _get_store()
    try:
        content = store.read(req.name)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"File not found: {req.name}") from e
    return _load_into_session(content, req.name)


@app.post("/api/documents/upload")
async def upload_document(req: UploadDocumentRequest) -> dict[str, Any]:
    try:
        validate_upload_name(req.name)
    except UnsupportedFileError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return _load_into_session(req.content, req.name)


@app.post("/api/documents/save")
async def save_document(req: SaveDocumentRequest) -> dict[str, Any]:
    store = _get_store()
    try:
        name, content = _session.save_payload(req.name)
    except NothingToSaveError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    store.write(name, content)
    return {"status": "success", "name": name}


# ---------------------------------------------------------------------------
# Tree view
# ---------------------------------------------------------------------------


@app.get("/api/tree")
async def tree() -> dict[str, Any]:
    session = _session
    parents = expandable_ids(session.nodes)
    state = session.state
    rows = [
        {
            **node.to_dict(),
            "has_children": node.node_id in parents,
            "expanded": node.node_id in state.expanded,
            "highlighted": node.node_id in state.highlighted,
        }
        for node in session.visible_nodes()
    ]
    return {"nodes": rows, "visible_count": len(rows), **_state_payload(session)}


@app.post("/api/search")
async def search(req: SearchRequest) -> dict[str, Any]:
    session = _get_loaded_session()
    outcome = session.search(req.query)
    payload = _state_payload(session)
    if outcome is not None:
        payload["resolved_segments"] = outcome.resolved_segments
        payload["stopped_at"] = outcome.stopped_at
    return payload


@app.post("/api/toggle/{node_id}")
async def toggle_node(node_id: int) -> dict[str, Any]:
    session = _get_loaded_session()
    session.toggle(node_id)
    return _state_payload(session)


@app.post("/api/expand-all")
async def expand_all() -> dict[str, Any]:
    session = _get_loaded_session()
    session.expand_all()
    return _state_payload(session)


@app.post("/api/collapse-all")
async def collapse_all() -> dict[str, Any]:
    _session.collapse_all()
    return _state_payload(_session)


@app.post("/api/reset-view")
async def reset_view() -> dict[str, Any]:
    _session.reset_view()
    return _state_payload(_session)


@app.post("/api/reset-file")
async def reset_file() -> dict[str, Any]:
    _session.reset_file()
    return _state_payload(_session)
