# __init__.py
# Study hierarchy tree engine

# Pure, in-memory logic behind the study node sidebar: forest building,
# descendant checks, drag-and-drop move planning and the drag session
# state machine. Persistence and HTTP live in api/study_nodes.

# @see: api/study_nodes/service.py - Main consumer
# @note: No I/O here except the persistence calls made by DragSession.drop()

from .config import StudyTreeConfig, get_study_tree_config
from .descendancy import descendant_ids, find_node, is_descendant
from .drag_session import DragSession, DragState, MovePersistence
from .errors import DropInFlight, InvalidMove, NodeNotFound, StaleTree, StudyTreeError
from .kinds import next_default_kind
from .models import (
    DropPosition,
    HierarchyKind,
    MovePlan,
    NodePlacement,
    SiblingUpdate,
    StudyNode,
)
from .reorder_planner import ReorderPlanner, apply_move_plan, plan_move, sort_order_violations
from .tree_builder import build_forest, flatten_forest, index_forest, iter_forest, node_path, resolve_parents
from .view import ExpansionState, TreeRow, visible_rows

__all__ = [
    # Configuration
    "StudyTreeConfig",
    "get_study_tree_config",
    # Models
    "StudyNode",
    "HierarchyKind",
    "DropPosition",
    "MovePlan",
    "NodePlacement",
    "SiblingUpdate",
    # Errors
    "StudyTreeError",
    "InvalidMove",
    "StaleTree",
    "DropInFlight",
    "NodeNotFound",
    # Tree building
    "build_forest",
    "resolve_parents",
    "iter_forest",
    "index_forest",
    "flatten_forest",
    "node_path",
    # Descendancy
    "is_descendant",
    "descendant_ids",
    "find_node",
    # Planning
    "plan_move",
    "ReorderPlanner",
    "apply_move_plan",
    "sort_order_violations",
    # Drag session
    "DragSession",
    "DragState",
    "MovePersistence",
    # View
    "ExpansionState",
    "TreeRow",
    "visible_rows",
    # Kinds
    "next_default_kind",
]
