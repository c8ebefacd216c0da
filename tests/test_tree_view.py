# test_tree_view.py
# Unit tests for expansion state and visible row computation

# @see: services/study_tree/view.py - Implementation under test

import pytest

from services.study_tree import ExpansionState, StudyNode, build_forest, visible_rows


@pytest.fixture
def forest():
    nodes = [
        StudyNode(id="1", name="CS101", sort_order=0),
        StudyNode(id="2", parent_id="1", name="Midterm", sort_order=0),
        StudyNode(id="3", parent_id="1", name="Final", sort_order=1),
        StudyNode(id="5", parent_id="3", name="Review", sort_order=0),
        StudyNode(id="4", name="MATH200", sort_order=1),
    ]
    return build_forest(nodes)


def rows_as_tuples(rows):
    return [(row.node.id, row.depth, row.has_children, row.expanded) for row in rows]


def test_collapsed_forest_shows_roots_only(forest):
    rows = visible_rows(forest, ExpansionState())

    assert rows_as_tuples(rows) == [("1", 0, True, False), ("4", 0, False, False)]


def test_expanded_node_shows_children(forest):
    rows = visible_rows(forest, ExpansionState(["1"]))

    assert [(r.node.id, r.depth) for r in rows] == [("1", 0), ("2", 1), ("3", 1), ("4", 0)]


def test_collapsed_ancestor_hides_expanded_descendant(forest):
    rows = visible_rows(forest, ExpansionState(["3"]))

    assert [r.node.id for r in rows] == ["1", "4"]


def test_toggle_returns_new_flag():
    expansion = ExpansionState()

    assert expansion.toggle("1") is True
    assert expansion.is_expanded("1")
    assert expansion.toggle("1") is False
    assert not expansion.is_expanded("1")


def test_expand_to_reveals_node(forest):
    expansion = ExpansionState()
    expansion.expand_to(forest, "5")

    assert expansion.expanded_ids == {"1", "3"}
    assert "5" in [r.node.id for r in visible_rows(forest, expansion)]


def test_prune_forgets_deleted_nodes(forest):
    expansion = ExpansionState(["1", "gone"])
    expansion.prune(forest)

    assert expansion.expanded_ids == {"1"}


def test_expand_and_collapse():
    expansion = ExpansionState()
    expansion.expand("1")
    expansion.collapse("1")
    expansion.collapse("never-expanded")

    assert expansion.expanded_ids == set()
