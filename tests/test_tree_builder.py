"""Tests for pipview.tree_builder module."""
import pytest

from pipview.html_utils import find_tables, load_soup, table_rows
from pipview.tree_builder import (
    StructureNotFoundError,
    build_tree,
    parse_label,
    parse_node_id,
    select_main_table,
)
from pipview.tree_types import ROOT_ID


def _row(*cells: str) -> str:
    return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"


def _table(*rows: str, table_id: str = "") -> str:
    attr = f' id="{table_id}"' if table_id else ""
    return f"<table{attr}>" + "".join(rows) + "</table>"


def _rows(html: str):
    return table_rows(find_tables(load_soup(html))[0])


class TestParseNodeId:
    def test_plain(self) -> None:
        assert parse_node_id("12") == 12

    def test_decorated(self) -> None:
        assert parse_node_id("(14)") == 14
        assert parse_node_id("F-7*") == 7

    def test_digits_are_concatenated(self) -> None:
        assert parse_node_id("1.1.2") == 112

    def test_non_numeric(self) -> None:
        assert parse_node_id("Note") is None
        assert parse_node_id("") is None


class TestParseLabel:
    def test_root(self) -> None:
        assert parse_label("Pip3A4PurchaseOrderRequest") == (0, "Pip3A4PurchaseOrderRequest")

    def test_nested(self) -> None:
        assert parse_label("|--|--ProcessControl") == (2, "ProcessControl")

    def test_nbsp_and_whitespace(self) -> None:
        assert parse_label("|--\u00a0 ServiceHeader \u00a0") == (1, "ServiceHeader")

    def test_hyphens_inside_names_are_removed(self) -> None:
        assert parse_label("|--e-mail") == (1, "email")

    def test_decoration_only(self) -> None:
        assert parse_label("|--|--") == (2, "")


class TestSelectMainTable:
    def test_prefers_marker_rich_table(self) -> None:
        plain = _table(*[_row(str(i), "1", f"Plain{i}") for i in range(1, 20)], table_id="plain")
        tree = _table(
            _row("1", "1", "Root"),
            *[_row(str(i), "1", f"|--Child{i}") for i in range(2, 8)],
            table_id="tree",
        )
        soup = load_soup(plain + tree)
        assert select_main_table(find_tables(soup)).get("id") == "tree"

    def test_small_marker_tables_are_ignored(self) -> None:
        legend = _table(_row("|-- child"), _row("|-- optional"), table_id="legend")
        big = _table(*[_row(str(i), "1", f"Name{i}") for i in range(1, 10)], table_id="big")
        soup = load_soup(legend + big)
        assert select_main_table(find_tables(soup)).get("id") == "big"

    def test_five_row_marker_table_is_not_eligible(self) -> None:
        five = _table(*[_row(str(i), "1", f"|--A{i}") for i in range(5)], table_id="five")
        six = _table(
            _row("1", "1", "Root"),
            _row("2", "1", "|--Only"),
            *[_row(str(i), "1", f"Plain{i}") for i in range(3, 7)],
            table_id="six",
        )
        soup = load_soup(five + six)
        assert select_main_table(find_tables(soup)).get("id") == "six"

    def test_six_row_marker_table_is_eligible(self) -> None:
        plain = _table(*[_row(str(i), "1", f"Plain{i}") for i in range(20)], table_id="plain")
        six = _table(*[_row(str(i), "1", f"|--A{i}") for i in range(6)], table_id="six")
        soup = load_soup(plain + six)
        assert select_main_table(find_tables(soup)).get("id") == "six"

    def test_fallback_to_largest_table(self, caplog: pytest.LogCaptureFixture) -> None:
        small = _table(_row("1", "1", "A"), table_id="small")
        large = _table(_row("1", "1", "A"), _row("2", "1", "B"), table_id="large")
        soup = load_soup(small + large)
        with caplog.at_level("WARNING"):
            assert select_main_table(find_tables(soup)).get("id") == "large"
        assert "falling back" in caplog.text

    def test_ties_keep_first_table(self) -> None:
        first = _table(*[_row(str(i), "1", f"|--A{i}") for i in range(7)], table_id="first")
        second = _table(*[_row(str(i), "1", f"|--B{i}") for i in range(7)], table_id="second")
        soup = load_soup(first + second)
        assert select_main_table(find_tables(soup)).get("id") == "first"

    def test_no_tables_raises(self) -> None:
        with pytest.raises(StructureNotFoundError):
            select_main_table([])


class TestBuildTree:
    def test_levels_and_parents(self) -> None:
        html = _table(
            _row("1", "1", "Pip3A4.Root"),
            _row("2", "1", "|--ServiceHeader"),
            _row("3", "1", "|--|--ProcessControl"),
        )
        nodes = build_tree(_rows(html), {})
        assert [n.node_id for n in nodes] == [1, 2, 3]
        assert [n.level for n in nodes] == [0, 1, 2]
        assert [n.parent_id for n in nodes] == [ROOT_ID, 1, 2]

    def test_sibling_after_deeper_subtree(self) -> None:
        html = _table(
            _row("1", "1", "Root"),
            _row("2", "1", "|--A"),
            _row("3", "1", "|--|--A1"),
            _row("4", "1", "|--|--|--A1x"),
            _row("5", "1", "|--B"),
            _row("6", "1", "|--|--B1"),
        )
        nodes = build_tree(_rows(html), {})
        parents = {n.node_id: n.parent_id for n in nodes}
        assert parents == {1: 0, 2: 1, 3: 2, 4: 3, 5: 1, 6: 5}

    def test_skipped_level_attaches_to_sentinel(self) -> None:
        html = _table(_row("1", "1", "Root"), _row("2", "1", "|--|--Deep"))
        nodes = build_tree(_rows(html), {})
        assert nodes[1].level == 2
        assert nodes[1].parent_id == ROOT_ID

    def test_malformed_rows_are_dropped(self) -> None:
        html = _table(
            "<tr><th>No.</th><th>Card</th><th>Name</th></tr>",
            _row("1", "1", "Root"),
            _row("Comments only"),
            _row("1", "|--TwoCells"),
            _row("Note", "-", "|--NotANode"),
            _row("2", "1", "|--Kept"),
        )
        nodes = build_tree(_rows(html), {})
        assert [n.name for n in nodes] == ["Root", "Kept"]

    def test_field_no_keeps_original_token(self) -> None:
        html = _table(_row(' <a name="F14">(14)</a> ', "1", "Root"))
        node = build_tree(_rows(html), {})[0]
        assert node.node_id == 14
        assert node.field_no == "(14)"

    def test_name_from_fourth_cell(self) -> None:
        html = _table(
            _row("1", "1", "Root"),
            _row("2", "1", "|--", "|--Shifted"),
        )
        nodes = build_tree(_rows(html), {})
        assert nodes[1].name == "Shifted"
        assert nodes[1].level == 1
        assert nodes[1].parent_id == 1

    def test_empty_name_without_fourth_cell(self) -> None:
        html = _table(_row("1", "1", "Root"), _row("2", "1", "|--"))
        nodes = build_tree(_rows(html), {})
        assert nodes[1].name == ""
        assert nodes[1].parent_id == 1

    def test_descriptions_from_dictionary(self) -> None:
        html = _table(
            _row("1", "1", "Root"),
            _row("2", "1", "|--telephoneNumber.CommunicationsNumber"),
        )
        defs = {"CommunicationsNumber": "A telephone number."}
        nodes = build_tree(_rows(html), defs)
        assert nodes[0].description == ""
        assert nodes[1].description == "A telephone number."

    def test_duplicate_ids_are_kept(self) -> None:
        html = _table(
            _row("1", "1", "Root"),
            _row("2", "1", "|--A"),
            _row("2", "1", "|--B"),
            _row("3", "1", "|--|--B1"),
        )
        nodes = build_tree(_rows(html), {})
        assert [n.node_id for n in nodes] == [1, 2, 2, 3]
        assert nodes[3].parent_id == 2

    def test_no_rows(self) -> None:
        assert build_tree([], {}) == []

    def test_parents_only_reference_earlier_nodes(self) -> None:
        html = _table(
            _row("1", "1", "Root"),
            _row("2", "1", "|--|--|--Deep"),
            _row("3", "1", "|--A"),
            _row("4", "1", "|--|--A1"),
            _row("5", "1", "Other"),
            _row("6", "1", "|--O1"),
        )
        nodes = build_tree(_rows(html), {})
        seen: set[int] = set()
        for node in nodes:
            assert node.parent_id == ROOT_ID or node.parent_id in seen
            seen.add(node.node_id)
