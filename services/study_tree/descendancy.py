# descendancy.py
# Ancestor/descendant checks on a materialized forest

# Sole guard against cycles: a node may never be moved below itself.
# Works on forest nodes from build_forest() because it needs resolved
# children; flat records have empty `children`.

# @see: reorder_planner.py - Calls is_descendant before planning
# @see: drag_session.py - Calls is_descendant on every hover

from typing import Iterable, Optional, Set

from .models import StudyNode


def is_descendant(forest_node: StudyNode, candidate: StudyNode) -> bool:
    """True iff `candidate` is somewhere below `forest_node` (never itself)."""
    stack = list(forest_node.children)
    while stack:
        node = stack.pop()
        if node.id == candidate.id:
            return True
        stack.extend(node.children)
    return False


def descendant_ids(forest_node: StudyNode) -> Set[str]:
    """Ids of every node in the subtree of `forest_node`, excluding itself."""
    found: Set[str] = set()
    stack = list(forest_node.children)
    while stack:
        node = stack.pop()
        found.add(node.id)
        stack.extend(node.children)
    return found


def find_node(forest: Iterable[StudyNode], node_id: str) -> Optional[StudyNode]:
    """Locate a node anywhere in the forest."""
    stack = list(forest)
    while stack:
        node = stack.pop()
        if node.id == node_id:
            return node
        stack.extend(node.children)
    return None
