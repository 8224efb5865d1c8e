"""Viewer session: one loaded document plus its view state.

The view state (expanded ids, highlighted ids, query text, search mode) is
an immutable value.  Every operation returns a new ``ViewState``; the
session only swaps its reference, so no caller ever sees a half-updated
state.

Expansion operations:
    toggle(id)     flip one id
    expand_all     exactly the ids that have children
    collapse_all   nothing expanded
    reset_view     nothing expanded or highlighted, query cleared
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from pipview.doc_parser import parse_document
from pipview.search import SearchMode, SearchOutcome, run_search
from pipview.tree_types import ParseResult, SpecNode
from pipview.visibility import expandable_ids, project_visible

log = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: tuple[str, ...] = (".htm", ".html", ".txt")
DEFAULT_SAVE_NAME = "template.html"


class EmptyDocumentError(ValueError):
    """Raised when a document parses but yields zero catalog rows."""


class UnsupportedFileError(ValueError):
    """Raised for uploads whose name is not an .htm/.html/.txt file."""


class NothingToSaveError(RuntimeError):
    """Raised when saving without any loaded raw content."""


def validate_upload_name(filename: str) -> None:
    """Reject file names the upload surfaces do not accept."""
    if not filename.lower().endswith(ALLOWED_EXTENSIONS):
        raise UnsupportedFileError(
            f"Unsupported file {filename!r}: expected one of {', '.join(ALLOWED_EXTENSIONS)}"
        )


# ---------------------------------------------------------------------------
# View state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ViewState:
    expanded: frozenset[int] = frozenset()
    highlighted: frozenset[int] = frozenset()
    query: str = ""
    mode: SearchMode = SearchMode.KEYWORD


def toggle(state: ViewState, node_id: int) -> ViewState:
    return replace(state, expanded=state.expanded ^ {node_id})


def expand_all(state: ViewState, nodes: tuple[SpecNode, ...]) -> ViewState:
    return replace(state, expanded=expandable_ids(nodes))


def collapse_all(state: ViewState) -> ViewState:
    return replace(state, expanded=frozenset())


def reset_view(state: ViewState) -> ViewState:
    return replace(
        state,
        expanded=frozenset(),
        highlighted=frozenset(),
        query="",
        mode=SearchMode.KEYWORD,
    )


def apply_search(state: ViewState, query: str, outcome: SearchOutcome) -> ViewState:
    return ViewState(
        expanded=outcome.expanded,
        highlighted=outcome.highlighted,
        query=query,
        mode=outcome.mode,
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class ViewerSession:
    """Owns the loaded document and its view state for one user."""

    def __init__(self) -> None:
        self.document: ParseResult = ParseResult(nodes=())
        self.filename: str = ""
        self.raw_content: str = ""
        self.state: ViewState = ViewState()

    @property
    def nodes(self) -> tuple[SpecNode, ...]:
        return self.document.nodes

    @property
    def is_loaded(self) -> bool:
        return not self.document.is_empty

    # -- loading -----------------------------------------------------------

    def load_html(self, raw_html: str, filename: str) -> ParseResult:
        """Parse *raw_html* and make it the current document.

        The previous document and view state are replaced only after a
        successful parse.

        Raises:
            StructureNotFoundError: If the document has no table.
            EmptyDocumentError: If the catalog yields no rows.
        """
        result = parse_document(raw_html)
        if result.is_empty:
            raise EmptyDocumentError(
                f"{filename or 'document'} parsed successfully but no catalog rows were found"
            )
        self.document = result
        self.filename = filename
        self.raw_content = raw_html
        self.state = ViewState()
        log.info("Loaded %s: %d nodes, %d definitions",
                 filename, len(result.nodes), len(result.definitions))
        return result

    def reset_file(self) -> None:
        self.document = ParseResult(nodes=())
        self.filename = ""
        self.raw_content = ""
        self.state = ViewState()

    def save_payload(self, name: str | None = None) -> tuple[str, str]:
        """Return ``(name, content)`` to hand to a document store.

        Raises:
            NothingToSaveError: If no raw content is retained.
        """
        if not self.raw_content:
            raise NothingToSaveError("No loaded content to save")
        return (name or self.filename or DEFAULT_SAVE_NAME), self.raw_content

    # -- view operations ---------------------------------------------------

    def toggle(self, node_id: int) -> ViewState:
        self.state = toggle(self.state, node_id)
        return self.state

    def expand_all(self) -> ViewState:
        self.state = expand_all(self.state, self.nodes)
        return self.state

    def collapse_all(self) -> ViewState:
        self.state = collapse_all(self.state)
        return self.state

    def reset_view(self) -> ViewState:
        self.state = reset_view(self.state)
        return self.state

    def search(self, query: str) -> SearchOutcome | None:
        """Run a keyword or path search; None when no document is loaded."""
        if not self.is_loaded:
            return None
        outcome = run_search(self.nodes, query, self.state.expanded)
        self.state = apply_search(self.state, query, outcome)
        return outcome

    def visible_nodes(self) -> list[SpecNode]:
        return project_visible(self.nodes, self.state.expanded)
