# router.py
# FastAPI router for study node CRUD, tree reads and drag-and-drop moves

# Provides REST API endpoints behind the studies sidebar.
# All endpoints are prefixed with /api/study-nodes and tagged for Swagger UI.
# Uses dependency injection for StudyNodeService.

# @see: service.py - Business logic layer
# @see: models.py - Request/response Pydantic schemas
# @note: user_id comes from the query string until auth is wired in

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from services.study_tree import (
    DropInFlight,
    InvalidMove,
    NodeNotFound,
    StaleTree,
    StudyNode,
    iter_forest,
)

from .models import (
    BreadcrumbResponse,
    DeleteResponse,
    MoveRequest,
    MoveResponse,
    NextKindResponse,
    StudyNodeCreate,
    StudyNodeListResponse,
    StudyNodeTreeResponse,
    StudyNodeUpdate,
)
from .repository import DuplicateNameError
from .service import StudyNodeService

router = APIRouter(prefix="/api/study-nodes", tags=["Study Nodes"])


def get_study_node_service() -> StudyNodeService:
    """Dependency for getting StudyNodeService instance."""
    return StudyNodeService()


def _not_found(exc: NodeNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=StudyNodeListResponse)
async def list_study_nodes(
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """Flat list of every study node the user owns."""
    nodes = await service.list_flat(user_id)
    return StudyNodeListResponse(nodes=nodes, total=len(nodes))


@router.get("/tree", response_model=StudyNodeTreeResponse)
async def get_study_tree(
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """
    The user's study hierarchy as an ordered forest.

    Nodes with a missing parent are returned as roots.
    """
    forest = await service.get_tree(user_id)
    total = sum(1 for _ in iter_forest(forest))
    return StudyNodeTreeResponse(nodes=forest, total=total)


@router.get("/pinned", response_model=StudyNodeListResponse)
async def list_pinned_nodes(
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """Pinned subtrees, top-most pinned node only."""
    nodes = await service.pinned(user_id)
    return StudyNodeListResponse(nodes=nodes, total=len(nodes))


@router.get("/next-kind", response_model=NextKindResponse)
async def get_next_kind(
    user_id: str = Query(..., description="Owner user ID"),
    parent_id: Optional[str] = Query(None, description="Parent node ID, omit for a root"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """Suggested kind for a new node (course -> year -> subject -> semester -> custom)."""
    try:
        kind = await service.next_kind(user_id, parent_id)
    except NodeNotFound as e:
        raise _not_found(e)
    return NextKindResponse(parent_id=parent_id, kind=kind)


@router.post("/move", response_model=MoveResponse)
async def move_study_node(
    move: MoveRequest,
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """
    Drop a node before, inside or after another node.

    Returns the applied plan and the forest re-read from storage.
    """
    try:
        plan, forest = await service.move(user_id, move.node_id, move.target_id, move.position)
    except NodeNotFound as e:
        raise _not_found(e)
    except InvalidMove as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (StaleTree, DropInFlight) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    message = "Nothing to move" if plan.is_noop else "Study node moved"
    return MoveResponse(success=True, message=message, plan=plan, nodes=forest)


@router.post("", response_model=StudyNode, status_code=status.HTTP_201_CREATED)
async def create_study_node(
    node_data: StudyNodeCreate,
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """
    Create a study node at the end of its sibling group.

    Kind defaults from the parent's kind when omitted.
    """
    try:
        return await service.create(user_id, node_data)
    except NodeNotFound as e:
        raise _not_found(e)
    except DuplicateNameError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/{node_id}", response_model=StudyNode)
async def get_study_node(
    node_id: str,
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    try:
        return await service.get_node(user_id, node_id)
    except NodeNotFound as e:
        raise _not_found(e)


@router.get("/{node_id}/path", response_model=BreadcrumbResponse)
async def get_study_node_path(
    node_id: str,
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """Breadcrumbs from the root down to the node."""
    try:
        path = await service.path(user_id, node_id)
    except NodeNotFound as e:
        raise _not_found(e)
    return BreadcrumbResponse(path=path)


@router.patch("/{node_id}", response_model=StudyNode)
async def update_study_node(
    node_id: str,
    update_data: StudyNodeUpdate,
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """
    Rename, recolor, describe or pin a study node.

    Only provided fields are updated. Moves go through /move.
    """
    try:
        return await service.update(user_id, node_id, update_data)
    except NodeNotFound as e:
        raise _not_found(e)
    except DuplicateNameError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{node_id}", response_model=DeleteResponse)
async def delete_study_node(
    node_id: str,
    user_id: str = Query(..., description="Owner user ID"),
    service: StudyNodeService = Depends(get_study_node_service),
):
    """Delete a study node and its whole subtree."""
    try:
        deleted = await service.delete(user_id, node_id)
    except NodeNotFound as e:
        raise _not_found(e)
    return DeleteResponse(
        message=f"Deleted {len(deleted)} study node(s)",
        deleted_ids=deleted,
    )
