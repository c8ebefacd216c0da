# reorder_planner.py
# Drag-and-drop move planning with dense sibling renumbering

# Computes where a dragged node lands (new parent + sort_order) and which
# siblings shift, at the destination and at the source group. The result
# is a MovePlan; nothing is written here.

# @see: drag_session.py - Calls ReorderPlanner.plan() on a legal drop
# @see: api/study_nodes/repository.py - Applies MovePlan atomically
# @note: Kinds are never consulted, legality is purely structural

"""
Move planning for study hierarchies.

Every sibling group a plan touches ends up with sort_order values exactly
0..k-1. The destination group is re-derived from its current order (by
sort_order, name, id) with the dragged node removed and re-inserted, so
already-sparse or duplicated orders from older data get repaired too.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .config import StudyTreeConfig, get_study_tree_config
from .descendancy import is_descendant
from .errors import InvalidMove, NodeNotFound
from .models import DropPosition, MovePlan, NodePlacement, SiblingUpdate, StudyNode
from .tree_builder import build_forest, index_forest

logger = logging.getLogger(__name__)


def _ordered_group(group: Iterable[StudyNode]) -> List[StudyNode]:
    seen = set()
    ordered = []
    for node in sorted(group, key=StudyNode.sort_key):
        if node.id in seen:
            continue
        seen.add(node.id)
        ordered.append(node)
    return ordered


def _renumber(
    group: Sequence[StudyNode],
    parent_id: Optional[str],
    skip_id: str,
) -> List[SiblingUpdate]:
    return [
        SiblingUpdate(id=node.id, parent_id=parent_id, sort_order=index)
        for index, node in enumerate(group)
        if node.id != skip_id and node.sort_order != index
    ]


def plan_move(
    dragged: StudyNode,
    target: StudyNode,
    position: Union[DropPosition, str],
    target_children: Sequence[StudyNode],
    target_siblings: Sequence[StudyNode],
    source_siblings: Optional[Sequence[StudyNode]] = None,
    config: Optional[StudyTreeConfig] = None,
) -> MovePlan:
    """
    Plan a drag-and-drop move of `dragged` relative to `target`.

    Args:
        dragged: Forest node being moved (children must be materialized).
        target: Node the drop landed on.
        position: before / inside / after.
        target_children: Current children of `target` (used for inside).
        target_siblings: Current group of `target`, itself included
            (used for before / after).
        source_siblings: Current group of `dragged`. When given and the
            move changes parent, the source group is renumbered as well.
        config: Optional engine configuration.

    Returns:
        MovePlan with the dragged node placement and every shifted sibling.

    Raises:
        InvalidMove: If target is the dragged node, lies in its subtree, or
            is missing from `target_siblings`.
    """
    config = config or get_study_tree_config()
    position = DropPosition(position)

    if dragged.id == target.id:
        raise InvalidMove(
            "Cannot drop a study node onto itself",
            node_id=dragged.id,
            target_id=target.id,
        )
    if is_descendant(dragged, target):
        raise InvalidMove(
            "Cannot move a folder into its own subfolder",
            node_id=dragged.id,
            target_id=target.id,
        )

    if position == DropPosition.INSIDE:
        new_parent_id = target.id
        if dragged.parent_id == target.id and config.inside_current_parent == "noop":
            return MovePlan(
                placement=NodePlacement(
                    id=dragged.id,
                    parent_id=dragged.parent_id,
                    sort_order=dragged.sort_order,
                ),
                previous_parent_id=dragged.parent_id,
                previous_sort_order=dragged.sort_order,
            )
        remaining = [n for n in _ordered_group(target_children) if n.id != dragged.id]
        insert_at = len(remaining)
    else:
        new_parent_id = target.parent_id
        remaining = [n for n in _ordered_group(target_siblings) if n.id != dragged.id]
        target_index = next(
            (index for index, node in enumerate(remaining) if node.id == target.id),
            None,
        )
        if target_index is None:
            raise InvalidMove(
                f"Target '{target.id}' is not part of the supplied sibling group",
                node_id=dragged.id,
                target_id=target.id,
            )
        insert_at = target_index + 1 if position == DropPosition.AFTER else target_index

    destination = remaining[:insert_at] + [dragged] + remaining[insert_at:]
    updates = _renumber(destination, new_parent_id, dragged.id)

    if source_siblings is not None and dragged.parent_id != new_parent_id:
        source = [n for n in _ordered_group(source_siblings) if n.id != dragged.id]
        updates.extend(_renumber(source, dragged.parent_id, dragged.id))

    plan = MovePlan(
        placement=NodePlacement(id=dragged.id, parent_id=new_parent_id, sort_order=insert_at),
        previous_parent_id=dragged.parent_id,
        previous_sort_order=dragged.sort_order,
        sibling_updates=updates,
    )
    logger.debug(
        "Planned move of %s %s %s: parent=%s sort_order=%d, %d sibling updates",
        dragged.id,
        position.value,
        target.id,
        new_parent_id,
        insert_at,
        len(updates),
    )
    return plan


class ReorderPlanner:
    """
    Plans moves against one snapshot of a user's flat node list.

    The forest is built once; sibling groups (including the root group)
    are resolved from it, so promoted orphans behave like ordinary roots.
    """

    def __init__(self, flat_nodes: Iterable[StudyNode], config: Optional[StudyTreeConfig] = None):
        self.config = config or get_study_tree_config()
        self.forest = build_forest(flat_nodes, self.config)
        self._index = index_forest(self.forest)

    @classmethod
    def from_forest(cls, forest: List[StudyNode], config: Optional[StudyTreeConfig] = None) -> "ReorderPlanner":
        planner = cls.__new__(cls)
        planner.config = config or get_study_tree_config()
        planner.forest = forest
        planner._index = index_forest(forest)
        return planner

    def node(self, node_id: str) -> StudyNode:
        try:
            return self._index[node_id]
        except KeyError:
            raise NodeNotFound(node_id) from None

    def children_of(self, parent_id: Optional[str]) -> List[StudyNode]:
        if parent_id is None:
            return self.forest
        return self.node(parent_id).children

    def plan(
        self,
        dragged_id: str,
        target_id: str,
        position: Union[DropPosition, str],
    ) -> MovePlan:
        """Plan moving `dragged_id` before / inside / after `target_id`."""
        dragged = self.node(dragged_id)
        target = self.node(target_id)
        return plan_move(
            dragged,
            target,
            position,
            target_children=target.children,
            target_siblings=self.children_of(target.parent_id),
            source_siblings=self.children_of(dragged.parent_id),
            config=self.config,
        )


def apply_move_plan(flat_nodes: Iterable[StudyNode], plan: MovePlan) -> List[StudyNode]:
    """
    Apply a plan to a flat list without touching the input.

    Raises:
        NodeNotFound: If the plan references an id missing from the list.
    """
    result = [node.model_copy(update={"children": []}) for node in flat_nodes]
    by_id: Dict[str, StudyNode] = {node.id: node for node in result}

    for node_id, _, _ in plan.updates():
        if node_id not in by_id:
            raise NodeNotFound(node_id)

    moved = by_id[plan.placement.id]
    moved.parent_id = plan.placement.parent_id
    moved.sort_order = plan.placement.sort_order
    for update in plan.sibling_updates:
        by_id[update.id].sort_order = update.sort_order
    return result


def sort_order_violations(flat_nodes: Iterable[StudyNode]) -> Dict[Optional[str], List[int]]:
    """
    Sibling groups whose sort_order values are not exactly 0..k-1.

    Returns:
        Dict of parent id -> sorted sort_order values of the offending group.
    """
    groups: Dict[Optional[str], List[int]] = defaultdict(list)
    for node in flat_nodes:
        groups[node.parent_id].append(node.sort_order)
    return {
        parent_id: sorted(orders)
        for parent_id, orders in groups.items()
        if sorted(orders) != list(range(len(orders)))
    }
