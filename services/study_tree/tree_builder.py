# tree_builder.py
# Flat study node list -> ordered forest

# The flat list from persistence is the source of truth; the forest is a
# throwaway view rebuilt on every fetch. Nodes whose parent is missing,
# themselves, or part of a parent cycle are promoted to roots so every
# input node shows up exactly once.

# @see: descendancy.py - Works on the forest built here
# @see: reorder_planner.py - Resolves sibling groups from the forest
# @note: Input nodes are copied, never mutated

"""
Forest construction for study hierarchies.

build_forest() is pure and idempotent: the same flat list always yields a
structurally identical forest. Children are ordered by sort_order, then by
case-insensitive name, then by id.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .config import StudyTreeConfig, get_study_tree_config
from .models import StudyNode

logger = logging.getLogger(__name__)


def _dedupe(flat_nodes: Iterable[StudyNode], warn: bool) -> Dict[str, StudyNode]:
    by_id: Dict[str, StudyNode] = {}
    for node in flat_nodes:
        if node.id in by_id:
            if warn:
                logger.warning("Duplicate study node id %s dropped", node.id)
            continue
        by_id[node.id] = node
    return by_id


def resolve_parents(
    flat_nodes: Iterable[StudyNode],
    config: Optional[StudyTreeConfig] = None,
) -> Dict[str, Optional[str]]:
    """
    Map each node id to the parent it will hang under in the forest.

    Dangling and self references resolve to None. For every parent cycle the
    member with the smallest id is cut loose and becomes a root.

    Args:
        flat_nodes: Nodes in any order.
        config: Optional engine configuration.

    Returns:
        Dict of node id -> effective parent id (None for roots).
    """
    config = config or get_study_tree_config()
    warn = config.log_malformed_input
    by_id = _dedupe(flat_nodes, warn)

    parents: Dict[str, Optional[str]] = {}
    for node_id, node in by_id.items():
        parent_id = node.parent_id or None
        if parent_id is not None and parent_id == node_id:
            if warn:
                logger.warning("Study node %s references itself as parent", node_id)
            parent_id = None
        elif parent_id is not None and parent_id not in by_id:
            if warn:
                logger.warning(
                    "Study node %s references missing parent %s, promoted to root",
                    node_id,
                    parent_id,
                )
            parent_id = None
        parents[node_id] = parent_id

    # 0 = unvisited, 1 = on current walk, 2 = settled
    state: Dict[str, int] = {}
    for start in sorted(parents):
        if state.get(start):
            continue
        walk: List[str] = []
        current: Optional[str] = start
        while current is not None and not state.get(current):
            state[current] = 1
            walk.append(current)
            current = parents[current]
        if current is not None and state[current] == 1:
            cycle = walk[walk.index(current):]
            cut = min(cycle)
            if warn:
                logger.warning(
                    "Parent cycle among study nodes %s, promoting %s to root",
                    ", ".join(sorted(cycle)),
                    cut,
                )
            parents[cut] = None
        for node_id in walk:
            state[node_id] = 2

    return parents


def build_forest(
    flat_nodes: Iterable[StudyNode],
    config: Optional[StudyTreeConfig] = None,
) -> List[StudyNode]:
    """
    Build the ordered forest for a flat list of study nodes.

    Args:
        flat_nodes: Nodes in any order, possibly with orphaned parent links.
        config: Optional engine configuration.

    Returns:
        Root nodes (copies) with nested, ordered children.
    """
    flat_nodes = list(flat_nodes)
    config = config or get_study_tree_config()
    parents = resolve_parents(flat_nodes, config)

    copies: Dict[str, StudyNode] = {}
    for node in flat_nodes:
        if node.id in copies:
            continue
        copies[node.id] = node.model_copy(
            update={"parent_id": parents[node.id], "children": []}
        )

    roots: List[StudyNode] = []
    for node_id, copy in copies.items():
        parent_id = parents[node_id]
        if parent_id is None:
            roots.append(copy)
        else:
            copies[parent_id].children.append(copy)

    for copy in copies.values():
        copy.children.sort(key=StudyNode.sort_key)
    roots.sort(key=StudyNode.sort_key)
    return roots


def iter_forest(forest: Iterable[StudyNode], depth: int = 0) -> Iterator[Tuple[StudyNode, int]]:
    """Depth-first, pre-order walk yielding (node, depth)."""
    stack = [(node, depth) for node in reversed(list(forest))]
    while stack:
        node, level = stack.pop()
        yield node, level
        for child in reversed(node.children):
            stack.append((child, level + 1))


def index_forest(forest: Iterable[StudyNode]) -> Dict[str, StudyNode]:
    """Map node id -> forest node."""
    return {node.id: node for node, _ in iter_forest(forest)}


def flatten_forest(forest: Iterable[StudyNode]) -> List[StudyNode]:
    """Turn a forest back into flat copies without children."""
    return [node.model_copy(update={"children": []}) for node, _ in iter_forest(forest)]


def node_path(flat_nodes: Iterable[StudyNode], node_id: str) -> List[StudyNode]:
    """
    Breadcrumb path from the root down to `node_id`.

    Stops at a missing parent or when a parent cycle is detected.
    Returns an empty list if `node_id` is unknown.
    """
    by_id = {}
    for node in flat_nodes:
        by_id.setdefault(node.id, node)

    path: List[StudyNode] = []
    seen = set()
    current = by_id.get(node_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        path.append(current)
        current = by_id.get(current.parent_id) if current.parent_id else None
    path.reverse()
    return path
