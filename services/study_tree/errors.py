# errors.py
# Exception taxonomy for the study hierarchy tree engine

# InvalidMove rejects a drop before any plan exists; StaleTree reports a
# plan that persistence refused (the caller has already re-fetched);
# DropInFlight guards the single outstanding persistence call.
# Malformed flat input is never raised: tree_builder absorbs and logs it.

# @see: reorder_planner.py - Raises InvalidMove
# @see: drag_session.py - Raises StaleTree and DropInFlight


class StudyTreeError(Exception):
    """Base class for tree engine errors."""


class InvalidMove(StudyTreeError):
    """Raised when a drop would make a node its own ancestor or sibling of itself."""

    def __init__(self, message: str, node_id: str = None, target_id: str = None):
        super().__init__(message)
        self.node_id = node_id
        self.target_id = target_id


class StaleTree(StudyTreeError):
    """Raised when persistence rejects a plan computed against an outdated tree."""


class DropInFlight(StudyTreeError):
    """Raised when a drag starts while a previous drop is still being persisted."""


class NodeNotFound(StudyTreeError, KeyError):
    """Raised when a node id is not present in the current snapshot."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Study node '{self.node_id}' not found"
