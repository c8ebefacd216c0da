"""
============================================================================
FILE: test_tree_builder.py
LOCATION: tests/test_tree_builder.py
============================================================================

PURPOSE:
    Tests for building the ordered forest from flat study nodes.

ROLE IN PROJECT:
    Ensures every flat node shows up exactly once in the forest, that
    sibling ordering is deterministic, and that dangling, self and cyclic
    parent links are absorbed by promoting nodes to roots.

KEY COMPONENTS:
    - TestBuildForest: Shape and ordering
    - TestMalformedInput: Orphans, self references, cycles, duplicates
    - TestNodePath: Breadcrumb resolution

DEPENDENCIES:
    - External: pytest
    - Internal: services.study_tree

USAGE:
    pytest tests/test_tree_builder.py -v
============================================================================
"""

import logging

import pytest

from services.study_tree import (
    StudyNode,
    StudyTreeConfig,
    build_forest,
    flatten_forest,
    index_forest,
    iter_forest,
    node_path,
    resolve_parents,
)


def make_node(node_id, parent_id=None, sort_order=0, name=None, **extra):
    return StudyNode(
        id=node_id,
        parent_id=parent_id,
        sort_order=sort_order,
        name=name or f"Node {node_id}",
        **extra,
    )


def ids(nodes):
    return [node.id for node in nodes]


@pytest.fixture
def course_nodes():
    return [
        make_node("1", None, 0, "CS101"),
        make_node("2", "1", 0, "Midterm"),
        make_node("3", "1", 1, "Final"),
    ]


class TestBuildForest:
    def test_nests_children_under_parent(self, course_nodes):
        forest = build_forest(course_nodes)

        assert ids(forest) == ["1"]
        assert ids(forest[0].children) == ["2", "3"]

    def test_empty_input_gives_empty_forest(self):
        assert build_forest([]) == []

    def test_input_order_does_not_matter(self, course_nodes):
        forward = build_forest(course_nodes)
        backward = build_forest(list(reversed(course_nodes)))

        assert [n.model_dump() for n in forward] == [n.model_dump() for n in backward]

    def test_siblings_sorted_by_sort_order(self):
        nodes = [
            make_node("a", None, 2, "Alpha"),
            make_node("b", None, 0, "Beta"),
            make_node("c", None, 1, "Gamma"),
        ]

        assert ids(build_forest(nodes)) == ["b", "c", "a"]

    def test_ties_broken_by_name_case_insensitive_then_id(self):
        nodes = [
            make_node("z", None, 0, "beta"),
            make_node("y", None, 0, "Alpha"),
            make_node("x", None, 0, "BETA"),
        ]

        assert ids(build_forest(nodes)) == ["y", "x", "z"]

    def test_input_nodes_are_not_mutated(self, course_nodes):
        build_forest(course_nodes)

        assert all(node.children == [] for node in course_nodes)

    def test_every_node_appears_exactly_once(self, course_nodes):
        nodes = course_nodes + [make_node("4", "3", 0), make_node("5", "missing", 0)]
        forest = build_forest(nodes)

        seen = [node.id for node, _ in iter_forest(forest)]
        assert sorted(seen) == ["1", "2", "3", "4", "5"]

    def test_iter_forest_reports_depth_in_preorder(self, course_nodes):
        forest = build_forest(course_nodes + [make_node("4", "2", 0)])

        assert [(n.id, d) for n, d in iter_forest(forest)] == [
            ("1", 0),
            ("2", 1),
            ("4", 2),
            ("3", 1),
        ]

    def test_index_and_flatten(self, course_nodes):
        forest = build_forest(course_nodes)

        assert set(index_forest(forest)) == {"1", "2", "3"}
        flat = flatten_forest(forest)
        assert ids(flat) == ["1", "2", "3"]
        assert all(node.children == [] for node in flat)

    def test_deep_chain_does_not_recurse(self):
        nodes = [make_node("0")] + [make_node(str(i), str(i - 1)) for i in range(1, 3000)]
        forest = build_forest(nodes)

        assert sum(1 for _ in iter_forest(forest)) == 3000


class TestMalformedInput:
    def test_dangling_parent_promoted_to_root(self, course_nodes):
        nodes = course_nodes + [make_node("9", "ghost", 0, "Orphan")]
        forest = build_forest(nodes)

        assert ids(forest) == ["1", "9"]
        assert forest[1].parent_id is None

    def test_self_parent_promoted_to_root(self):
        forest = build_forest([make_node("a", "a")])

        assert ids(forest) == ["a"]

    def test_empty_parent_id_is_root(self):
        forest = build_forest([make_node("a", "")])

        assert ids(forest) == ["a"]

    def test_cycle_broken_at_smallest_id(self):
        nodes = [
            make_node("b", "c"),
            make_node("c", "a"),
            make_node("a", "b"),
        ]
        parents = resolve_parents(nodes)

        assert parents["a"] is None
        forest = build_forest(nodes)
        assert [(n.id, d) for n, d in iter_forest(forest)] == [("a", 0), ("c", 1), ("b", 2)]

    def test_tail_into_cycle_keeps_its_parent(self):
        nodes = [
            make_node("a", "b"),
            make_node("b", "a"),
            make_node("t", "b"),
        ]
        parents = resolve_parents(nodes)

        assert parents == {"a": None, "b": "a", "t": "b"}

    def test_duplicate_ids_keep_first_occurrence(self):
        nodes = [make_node("a", None, 0, "First"), make_node("a", None, 1, "Second")]
        forest = build_forest(nodes)

        assert len(forest) == 1
        assert forest[0].name == "First"

    def test_malformed_input_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="services.study_tree"):
            build_forest([make_node("a", "ghost")])

        assert "missing parent ghost" in caplog.text

    def test_logging_can_be_disabled(self, caplog):
        config = StudyTreeConfig(log_malformed_input=False)
        with caplog.at_level(logging.WARNING, logger="services.study_tree"):
            build_forest([make_node("a", "ghost")], config)

        assert caplog.text == ""


class TestNodePath:
    def test_path_from_root(self, course_nodes):
        assert ids(node_path(course_nodes, "3")) == ["1", "3"]

    def test_unknown_node_gives_empty_path(self, course_nodes):
        assert node_path(course_nodes, "nope") == []

    def test_path_stops_at_missing_parent(self):
        assert ids(node_path([make_node("a", "ghost")], "a")) == ["a"]

    def test_path_stops_on_cycle(self):
        nodes = [make_node("a", "b"), make_node("b", "a")]

        assert ids(node_path(nodes, "a")) == ["b", "a"]
