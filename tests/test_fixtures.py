"""Fixture sanity checks."""
from __future__ import annotations

from pathlib import Path


def test_fixture_export_has_catalog_and_definition_tables() -> None:
    fixtures_dir = Path(__file__).resolve().parent / "fixtures"
    html_files = sorted(
        [*fixtures_dir.glob("*.htm"), *fixtures_dir.glob("*.html")]
    )
    assert html_files
    text = html_files[0].read_text(encoding="utf-8")
    assert "|--" in text
    assert "Definition" in text
