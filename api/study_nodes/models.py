# models.py
# Pydantic request/response schemas for the study nodes API

# Requests validate user input (trimmed, non-empty names; known kinds and
# drop positions). Responses reuse the engine's StudyNode, whose children
# are filled for tree responses and empty for flat ones.

# @see: router.py - FastAPI endpoints using these models
# @see: services/study_tree/models.py - StudyNode, MovePlan
# @note: user_id travels as a query parameter, not in bodies

from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field

from services.study_tree import DropPosition, HierarchyKind, MovePlan, StudyNode


def _clean_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("name must not be blank")
    return value


NodeName = Annotated[str, AfterValidator(_clean_name)]


class StudyNodeCreate(BaseModel):
    """Request model for creating a study node."""
    name: NodeName = Field(..., min_length=1, max_length=200, description="Display name")
    kind: Optional[HierarchyKind] = Field(None, description="Node kind, defaults from the parent kind")
    parent_id: Optional[str] = Field(None, description="Parent node ID, omit for a root")
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=32)
    icon: Optional[str] = Field(None, max_length=64)


class StudyNodeUpdate(BaseModel):
    """Request model for rename/recolor/pin. Only provided fields change."""
    name: Optional[NodeName] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=32)
    icon: Optional[str] = Field(None, max_length=64)
    is_pinned: Optional[bool] = None


class MoveRequest(BaseModel):
    """Drop of one node before / inside / after another."""
    node_id: str = Field(..., description="Dragged node ID")
    target_id: str = Field(..., description="Node the drop landed on")
    position: DropPosition = Field(..., description="before, inside or after")


class MoveResponse(BaseModel):
    success: bool
    message: str
    plan: MovePlan
    nodes: List[StudyNode] = Field(default_factory=list, description="Rebuilt forest after the move")


class StudyNodeListResponse(BaseModel):
    """Flat list of a user's study nodes."""
    nodes: List[StudyNode] = Field(default_factory=list)
    total: int = Field(..., description="Total count of nodes")


class StudyNodeTreeResponse(BaseModel):
    """Forest of a user's study nodes."""
    nodes: List[StudyNode] = Field(default_factory=list, description="Root nodes with nested children")
    total: int = Field(..., description="Total count of nodes in the forest")


class BreadcrumbResponse(BaseModel):
    path: List[StudyNode] = Field(default_factory=list, description="Root first, requested node last")


class NextKindResponse(BaseModel):
    parent_id: Optional[str] = None
    kind: HierarchyKind


class DeleteResponse(BaseModel):
    message: str
    deleted_ids: List[str] = Field(default_factory=list)
