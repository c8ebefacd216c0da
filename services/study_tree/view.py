# view.py
# Expansion state and visible rows for tree renderers

# Consumer side of the forest: renderers keep an ExpansionState and ask
# visible_rows() which nodes to draw, at what depth.

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from .models import StudyNode
from .tree_builder import index_forest


@dataclass
class TreeRow:
    node: StudyNode
    depth: int
    has_children: bool
    expanded: bool


class ExpansionState:
    """Set of expanded node ids."""

    def __init__(self, expanded: Optional[Iterable[str]] = None):
        self._expanded: Set[str] = set(expanded or ())

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self._expanded

    def expand(self, node_id: str) -> None:
        self._expanded.add(node_id)

    def collapse(self, node_id: str) -> None:
        self._expanded.discard(node_id)

    def toggle(self, node_id: str) -> bool:
        """Flip a node; returns the new expanded flag."""
        if node_id in self._expanded:
            self._expanded.discard(node_id)
            return False
        self._expanded.add(node_id)
        return True

    def expand_to(self, forest: List[StudyNode], node_id: str) -> None:
        """Expand every ancestor of `node_id` so it becomes visible."""
        index = index_forest(forest)
        node = index.get(node_id)
        while node is not None and node.parent_id is not None:
            self._expanded.add(node.parent_id)
            node = index.get(node.parent_id)

    def prune(self, forest: List[StudyNode]) -> None:
        """Forget ids that no longer exist after a rebuild."""
        self._expanded &= set(index_forest(forest))

    @property
    def expanded_ids(self) -> Set[str]:
        return set(self._expanded)


def visible_rows(forest: List[StudyNode], expansion: ExpansionState) -> List[TreeRow]:
    """Rows in display order; children of collapsed nodes are skipped."""
    rows: List[TreeRow] = []
    stack = [(node, 0) for node in reversed(forest)]
    while stack:
        node, depth = stack.pop()
        expanded = expansion.is_expanded(node.id)
        rows.append(TreeRow(node=node, depth=depth, has_children=bool(node.children), expanded=expanded))
        if expanded:
            stack.extend((child, depth + 1) for child in reversed(node.children))
    return rows
