# service.py
# Business logic for study node CRUD and drag-and-drop moves

# Provides StudyNodeService, the layer between the FastAPI router and the
# Firestore repository. Reads return a freshly built forest; a move is
# replayed through a DragSession (begin, hover, drop) so the server applies
# exactly the legality rules the sidebar shows while dragging.

# @see: repository.py - Firestore reads and batched writes
# @see: services/study_tree/drag_session.py - Move state machine
# @note: Mutations for one user are serialized by a per-user asyncio.Lock.
#        The lock is per process; several workers need storage-side checks,
#        which repository.apply_move_plan does before every batch

import asyncio
import weakref
from typing import List, Optional, Tuple

from api.logging_config import get_logger
from services.study_tree import (
    DragSession,
    DragState,
    DropPosition,
    HierarchyKind,
    MovePlan,
    NodeNotFound,
    StudyNode,
    StudyTreeConfig,
    build_forest,
    get_study_tree_config,
    next_default_kind,
)

from .models import StudyNodeCreate, StudyNodeUpdate
from .repository import StudyNodeRepository

logger = get_logger("study_nodes")

# One lock per user: a drop must not interleave with another write.
# Entries vanish once no coroutine holds or waits on the lock.
_scope_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(scope: str) -> asyncio.Lock:
    lock = _scope_locks.get(scope)
    if lock is None:
        lock = asyncio.Lock()
        _scope_locks[scope] = lock
    return lock


class StudyNodeService:
    """Service for study node operations scoped to one user per call."""

    def __init__(
        self,
        repository: Optional[StudyNodeRepository] = None,
        config: Optional[StudyTreeConfig] = None,
    ):
        self.repository = repository or StudyNodeRepository()
        self.config = config or get_study_tree_config()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_flat(self, user_id: str) -> List[StudyNode]:
        return await self.repository.fetch_flat_nodes(user_id)

    async def get_tree(self, user_id: str) -> List[StudyNode]:
        """Ordered forest for the user, orphans promoted to roots."""
        return build_forest(await self.repository.fetch_flat_nodes(user_id), self.config)

    async def get_node(self, user_id: str, node_id: str) -> StudyNode:
        return await self.repository.get_node(user_id, node_id)

    async def pinned(self, user_id: str) -> List[StudyNode]:
        return await self.repository.list_pinned(user_id)

    async def path(self, user_id: str, node_id: str) -> List[StudyNode]:
        return await self.repository.get_path(user_id, node_id)

    async def next_kind(self, user_id: str, parent_id: Optional[str]) -> HierarchyKind:
        """Kind suggested for a new child of `parent_id` (None for a root)."""
        if parent_id is None:
            return next_default_kind(None)
        parent = await self.repository.get_node(user_id, parent_id)
        return next_default_kind(parent.kind)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, user_id: str, data: StudyNodeCreate) -> StudyNode:
        async with _lock_for(user_id):
            return await self.repository.create_node(user_id, data)

    async def update(self, user_id: str, node_id: str, data: StudyNodeUpdate) -> StudyNode:
        async with _lock_for(user_id):
            return await self.repository.update_node(user_id, node_id, data)

    async def delete(self, user_id: str, node_id: str) -> List[str]:
        async with _lock_for(user_id):
            return await self.repository.delete_node(user_id, node_id)

    async def move(
        self,
        user_id: str,
        node_id: str,
        target_id: str,
        position: DropPosition,
    ) -> Tuple[MovePlan, List[StudyNode]]:
        """
        Drop `node_id` before / inside / after `target_id`.

        Args:
            user_id: Owner of both nodes.
            node_id: Dragged node.
            target_id: Node the drop landed on.
            position: Drop position relative to the target.

        Returns:
            (plan, forest) where forest is rebuilt from storage after the
            write. A no-op plan writes nothing.

        Raises:
            NodeNotFound: If either node is unknown for this user.
            InvalidMove: If the target is the node itself or in its subtree.
            StaleTree: If storage changed underneath and the plan was rejected.
        """
        async with _lock_for(user_id):
            flat = await self.repository.fetch_flat_nodes(user_id)
            known = {node.id for node in flat}
            for required in (node_id, target_id):
                if required not in known:
                    raise NodeNotFound(required)

            session = DragSession(flat, self.repository, scope=user_id, config=self.config)
            session.begin(node_id)
            state = session.hover(target_id, position)
            if state == DragState.HOVERING_INVALID:
                logger.info("Rejected move of %s %s %s for %s", node_id, position, target_id, user_id)
            plan = await session.drop()
            return plan, session.forest
