"""Tests for pipview.visibility module."""
from pathlib import Path

import pytest

from pipview.doc_parser import parse
from pipview.tree_types import SpecNode
from pipview.visibility import (
    ancestor_ids,
    build_children_index,
    expandable_ids,
    project_visible,
)

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "pip3a4_sample.htm"


def _node(node_id: int, parent_id: int, level: int = 0) -> SpecNode:
    return SpecNode(node_id, parent_id, str(node_id), level, f"N{node_id}")


@pytest.fixture(scope="module")
def nodes():
    return parse(FIXTURE.read_text(encoding="utf-8"))


def _ids(visible) -> list[int]:
    return [n.node_id for n in visible]


class TestProjectVisible:
    def test_collapsed_shows_roots_only(self, nodes) -> None:
        assert _ids(project_visible(nodes, frozenset())) == [1]

    def test_expand_all_shows_everything(self, nodes) -> None:
        visible = project_visible(nodes, expandable_ids(nodes))
        assert _ids(visible) == [n.node_id for n in nodes]

    def test_one_level(self, nodes) -> None:
        assert _ids(project_visible(nodes, frozenset({1}))) == [1, 2, 7, 8, 15]

    def test_hidden_ancestor_hides_descendants(self, nodes) -> None:
        # 9 is expanded but 8 is not
        assert _ids(project_visible(nodes, frozenset({1, 9}))) == [1, 2, 7, 8, 15]

    def test_path_expansion(self, nodes) -> None:
        visible = project_visible(nodes, frozenset({1, 8, 9}))
        assert _ids(visible) == [1, 2, 7, 8, 9, 10, 14, 15]

    def test_order_is_preserved(self, nodes) -> None:
        visible = _ids(project_visible(nodes, frozenset({1, 2, 3})))
        assert visible == sorted(visible, key=[n.node_id for n in nodes].index)

    def test_dangling_parent_is_hidden(self) -> None:
        orphan = [_node(1, 0), _node(5, 99, level=1)]
        assert _ids(project_visible(orphan, frozenset({1, 99}))) == [1]

    def test_empty(self) -> None:
        assert project_visible([], frozenset({1})) == []

    def test_self_referencing_chain_terminates(self) -> None:
        looped = [_node(1, 0), _node(2, 3), _node(3, 2)]
        assert _ids(project_visible(looped, frozenset({2, 3}))) == [1]


class TestIndexes:
    def test_expandable_ids(self, nodes) -> None:
        assert expandable_ids(nodes) == frozenset({1, 2, 3, 8, 9, 10, 12})

    def test_children_index(self, nodes) -> None:
        index = build_children_index(nodes)
        assert [n.node_id for n in index[0]] == [1]
        assert [n.node_id for n in index[9]] == [10, 14]
        assert 4 not in index

    def test_ancestor_ids_nearest_first(self, nodes) -> None:
        by_id = {n.node_id: n for n in nodes}
        assert ancestor_ids(by_id[13], by_id) == [12, 10, 9, 8, 1]
        assert ancestor_ids(by_id[1], by_id) == []

    def test_ancestor_ids_with_dangling_parent(self) -> None:
        orphan = _node(5, 99)
        assert ancestor_ids(orphan, {5: orphan}) == [99]
