# models.py
# Data models for the study hierarchy tree engine

# Defines the StudyNode record shared by the tree builder, the reorder
# planner and the drag session, plus the MovePlan produced by a drop.
# Nodes are stored flat (id, parent_id, sort_order); `children` is only
# populated on the copies returned by build_forest().

# @see: tree_builder.py - Populates StudyNode.children
# @see: reorder_planner.py - Produces MovePlan
# @note: kind is descriptive only, tree shape never depends on it

from datetime import datetime
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class HierarchyKind(str, Enum):
    """Descriptive type of a study node."""
    COURSE = "course"
    YEAR = "year"
    SUBJECT = "subject"
    SEMESTER = "semester"
    CUSTOM = "custom"


class DropPosition(str, Enum):
    """Where a dragged node lands relative to the hovered target."""
    BEFORE = "before"
    INSIDE = "inside"
    AFTER = "after"


class StudyNode(BaseModel):
    """A folder-like organizational unit in a user's study hierarchy."""

    id: str = Field(..., description="Opaque node ID")
    parent_id: Optional[str] = Field(None, description="Parent node ID, None for roots")
    name: str = Field(..., min_length=1, description="Display name")
    kind: HierarchyKind = Field(HierarchyKind.CUSTOM, description="Descriptive node type")
    sort_order: int = Field(0, ge=0, description="Position among siblings")
    color: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    is_pinned: bool = False
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    children: List["StudyNode"] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    def sort_key(self) -> Tuple[int, str, str]:
        """Sibling ordering: sort_order, then case-insensitive name, then id."""
        return (self.sort_order, self.name.casefold(), self.id)


class NodePlacement(BaseModel):
    """New location of the dragged node."""
    id: str
    parent_id: Optional[str]
    sort_order: int = Field(..., ge=0)


class SiblingUpdate(BaseModel):
    """New sort_order for a sibling shifted by a move.

    parent_id is the group the sibling already belongs to; it is not
    rewritten, persistence uses it to detect a stale plan.
    """
    id: str
    parent_id: Optional[str]
    sort_order: int = Field(..., ge=0)


class MovePlan(BaseModel):
    """
    All writes needed to realize one drag-and-drop move.

    The plan is pure data. Persistence must apply placement and every
    sibling update as one atomic unit.
    """

    placement: NodePlacement
    previous_parent_id: Optional[str] = None
    previous_sort_order: int = 0
    sibling_updates: List[SiblingUpdate] = Field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return (
            not self.sibling_updates
            and self.placement.parent_id == self.previous_parent_id
            and self.placement.sort_order == self.previous_sort_order
        )

    def updates(self) -> Iterator[Tuple[str, Optional[str], int]]:
        """Yield (id, parent_id, sort_order) for every node the plan touches."""
        yield self.placement.id, self.placement.parent_id, self.placement.sort_order
        for update in self.sibling_updates:
            yield update.id, update.parent_id, update.sort_order

    def as_mapping(self) -> dict:
        """Plan keyed by node id: {id: {"parent_id": p, "sort_order": n}}."""
        result = {
            self.placement.id: {
                "parent_id": self.placement.parent_id,
                "sort_order": self.placement.sort_order,
            }
        }
        for update in self.sibling_updates:
            result[update.id] = {
                "parent_id": update.parent_id,
                "sort_order": update.sort_order,
            }
        return result


StudyNode.model_rebuild()
