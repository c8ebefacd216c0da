# drag_session.py
# Short-lived state machine for one drag-and-drop gesture

# IDLE -> DRAGGING -> (HOVERING_VALID | HOVERING_INVALID) -> IDLE.
# Hover transitions are local only; the single external effect happens on
# a legal drop: plan the move, hand it to persistence, then re-fetch and
# rebuild the forest. A failed submission is reconciled the same way and
# surfaces as StaleTree.

# @see: reorder_planner.py - ReorderPlanner.plan() runs on drop
# @see: api/study_nodes/service.py - Replays a move request through a session
# @note: One active session per tree; begin() refuses while a drop persists

"""
Drag session for the study hierarchy.

Legality of a pending drop is a pure function of (dragged id, target id,
forest snapshot). The session only stores the last hovered target and
position, never a history.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Union

from .config import StudyTreeConfig
from .descendancy import is_descendant
from .errors import DropInFlight, InvalidMove, NodeNotFound, StaleTree
from .models import DropPosition, MovePlan, StudyNode
from .reorder_planner import ReorderPlanner

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING_VALID = "hovering_valid"
    HOVERING_INVALID = "hovering_invalid"


class MovePersistence(Protocol):
    """Persistence collaborator used by a drag session."""

    async def fetch_flat_nodes(self, scope: Optional[str]) -> List[StudyNode]:
        ...

    async def apply_move_plan(self, plan: MovePlan, scope: Optional[str]) -> bool:
        ...


class DragSession:
    """Tracks the node being dragged and the legality of the pending drop."""

    def __init__(
        self,
        flat_nodes: Iterable[StudyNode],
        persistence: Optional[MovePersistence] = None,
        scope: Optional[str] = None,
        config: Optional[StudyTreeConfig] = None,
    ):
        self.persistence = persistence
        self.scope = scope
        self.config = config
        self._planner = ReorderPlanner(flat_nodes, config)
        self._in_flight = False
        self._reset()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.dragged_id: Optional[str] = None
        self.target_id: Optional[str] = None
        self.position: Optional[DropPosition] = None

    @property
    def forest(self) -> List[StudyNode]:
        return self._planner.forest

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def is_legal_target(self, target_id: str) -> bool:
        """Whether dropping the dragged node on `target_id` keeps the tree acyclic."""
        if self.dragged_id is None or target_id == self.dragged_id:
            return False
        try:
            dragged = self._planner.node(self.dragged_id)
            target = self._planner.node(target_id)
        except NodeNotFound:
            return False
        return not is_descendant(dragged, target)

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def begin(self, node_id: str) -> DragState:
        if self._in_flight:
            raise DropInFlight("A previous move is still being saved")
        self._planner.node(node_id)
        self._reset()
        self.dragged_id = node_id
        self.state = DragState.DRAGGING
        return self.state

    def hover(self, target_id: str, position: Union[DropPosition, str]) -> DragState:
        if self.state == DragState.IDLE:
            return self.state
        self.target_id = target_id
        self.position = DropPosition(position)
        if self.is_legal_target(target_id):
            self.state = DragState.HOVERING_VALID
        else:
            self.state = DragState.HOVERING_INVALID
        return self.state

    def leave(self) -> DragState:
        """Pointer left every drop target."""
        if self.state in (DragState.HOVERING_VALID, DragState.HOVERING_INVALID):
            self.target_id = None
            self.position = None
            self.state = DragState.DRAGGING
        return self.state

    def cancel(self) -> None:
        if self.state != DragState.IDLE:
            logger.debug("Drag of %s cancelled", self.dragged_id)
        self._reset()

    async def drop(self) -> Optional[MovePlan]:
        """
        Finish the gesture.

        Returns:
            The MovePlan for a legal drop (already persisted when a
            persistence collaborator is attached), None when nothing was
            hovered.

        Raises:
            InvalidMove: If the last hovered target was illegal.
            StaleTree: If persistence rejected the plan; the forest has
                already been re-fetched.
        """
        state, dragged_id = self.state, self.dragged_id
        target_id, position = self.target_id, self.position
        self._reset()

        if state in (DragState.IDLE, DragState.DRAGGING):
            if state == DragState.DRAGGING:
                logger.debug("Drag of %s dropped outside any target", dragged_id)
            return None
        if state == DragState.HOVERING_INVALID:
            raise InvalidMove(
                "Cannot move a folder into its own subfolder"
                if target_id != dragged_id
                else "Cannot drop a study node onto itself",
                node_id=dragged_id,
                target_id=target_id,
            )

        plan = self._planner.plan(dragged_id, target_id, position)
        if plan.is_noop or self.persistence is None:
            return plan

        self._in_flight = True
        try:
            try:
                applied = await self.persistence.apply_move_plan(plan, self.scope)
            except Exception as exc:
                logger.warning("Saving move of %s failed: %s", dragged_id, exc)
                try:
                    await self.reload()
                except Exception as reload_exc:
                    logger.error("Reloading after failed move of %s failed: %s", dragged_id, reload_exc)
                raise StaleTree(f"Move of '{dragged_id}' could not be saved") from exc
            await self.reload()
        finally:
            self._in_flight = False

        if not applied:
            logger.warning("Move of %s rejected by persistence, tree reloaded", dragged_id)
            raise StaleTree(f"Move of '{dragged_id}' was rejected, the tree has changed")
        return plan

    # ------------------------------------------------------------------
    # Snapshot refresh
    # ------------------------------------------------------------------

    def refresh(self, flat_nodes: Iterable[StudyNode]) -> None:
        """Swap in a new snapshot; a vanished drag source ends the drag."""
        self._planner = ReorderPlanner(flat_nodes, self.config)
        if self.dragged_id is None:
            return
        try:
            self._planner.node(self.dragged_id)
        except NodeNotFound:
            logger.info("Drag source %s removed mid-drag", self.dragged_id)
            self._reset()
            return
        if self.target_id is not None:
            self.hover(self.target_id, self.position)

    async def reload(self) -> None:
        """Re-fetch the authoritative flat list and rebuild."""
        flat_nodes = await self.persistence.fetch_flat_nodes(self.scope)
        self.refresh(flat_nodes)
