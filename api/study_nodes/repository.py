# repository.py
# Firestore persistence for study nodes

# Owns the authoritative flat list of study nodes (one document per node,
# scoped by user_id). Multi-document changes (moves, cascading deletes)
# are written through a single write batch so a sibling group is never
# left half renumbered.

# @see: service.py - Orchestrates repository calls and the drag session
# @see: services/study_tree/reorder_planner.py - Produces the MovePlan applied here
# @note: Methods are async to satisfy the MovePersistence protocol; the
#        Firestore client itself is the sync one

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import GoogleAPICallError

from api.config import STUDY_NODES_COLLECTION, get_db
from api.logging_config import get_logger
from services.study_tree import (
    MovePlan,
    NodeNotFound,
    StudyNode,
    build_forest,
    descendant_ids,
    find_node,
    is_descendant,
    iter_forest,
    next_default_kind,
    node_path,
    resolve_parents,
    sort_order_violations,
)

from .models import StudyNodeCreate, StudyNodeUpdate

logger = get_logger("study_nodes")

_STORED_FIELDS = (
    "parent_id",
    "name",
    "kind",
    "sort_order",
    "color",
    "description",
    "icon",
    "is_pinned",
    "user_id",
    "created_at",
    "updated_at",
)


class DuplicateNameError(ValueError):
    """Raised when a sibling with the same name already exists."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _stored_parents(flat_nodes: List[StudyNode]) -> Dict[str, Optional[str]]:
    stored: Dict[str, Optional[str]] = {}
    for node in flat_nodes:
        stored.setdefault(node.id, node.parent_id or None)
    return stored


def _sibling_write(
    stored: Dict[str, Optional[str]],
    node_id: str,
    parent_id: Optional[str],
    sort_order: int,
    now: datetime,
) -> Dict[str, Any]:
    """Fields to write for a renumbered sibling.

    A promoted orphan gets its effective parent persisted too, otherwise its
    new sort_order would land in the group of its dangling parent.
    """
    data: Dict[str, Any] = {"sort_order": sort_order, "updated_at": now}
    if stored.get(node_id) != parent_id:
        data["parent_id"] = parent_id
    return data


class StudyNodeRepository:
    """Firestore-backed store of study nodes, one collection for all users."""

    def __init__(self, firestore_db=None, collection_name: Optional[str] = None):
        """Initialize with optional Firestore client injection for testing."""
        self.db = firestore_db or get_db()
        self.collection = self.db.collection(collection_name or STUDY_NODES_COLLECTION)

    @staticmethod
    def _doc_to_node(doc) -> StudyNode:
        data = doc.to_dict() or {}
        # Older documents store the kind under "type"
        kind = data.get("kind") or data.get("type") or "custom"
        payload = {key: data.get(key) for key in _STORED_FIELDS if data.get(key) is not None}
        payload.update(id=doc.id, kind=kind, sort_order=max(0, int(data.get("sort_order") or 0)))
        return StudyNode.model_validate(payload)

    @staticmethod
    def _node_to_doc(node: StudyNode) -> Dict[str, Any]:
        data = node.model_dump(include=set(_STORED_FIELDS))
        data["kind"] = node.kind.value
        return data

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_flat_nodes(self, scope: Optional[str]) -> List[StudyNode]:
        """
        All study nodes owned by `scope`, in storage order.

        Args:
            scope: Owner user ID.

        Returns:
            Flat list of StudyNode (children empty).
        """
        query = self.collection.where("user_id", "==", scope)
        nodes = [self._doc_to_node(doc) for doc in query.stream()]

        violations = sort_order_violations(nodes)
        if violations:
            logger.debug("Non-dense sibling groups for %s: %s", scope, violations)
        return nodes

    async def get_node(self, scope: str, node_id: str) -> StudyNode:
        """
        Fetch one node owned by `scope`.

        Raises:
            NodeNotFound: If the node does not exist or belongs to someone else.
        """
        doc = self.collection.document(node_id).get()
        if not doc.exists or (doc.to_dict() or {}).get("user_id") != scope:
            raise NodeNotFound(node_id)
        return self._doc_to_node(doc)

    async def get_tree(self, scope: str) -> List[StudyNode]:
        return build_forest(await self.fetch_flat_nodes(scope))

    async def list_pinned(self, scope: str) -> List[StudyNode]:
        """Pinned subtrees; a pinned node below another pinned node is not repeated."""
        pinned: List[StudyNode] = []
        covered = set()
        for node, _ in iter_forest(await self.get_tree(scope)):
            if node.id in covered:
                continue
            if node.is_pinned:
                pinned.append(node)
                covered |= descendant_ids(node)
        return pinned

    async def get_path(self, scope: str, node_id: str) -> List[StudyNode]:
        path = node_path(await self.fetch_flat_nodes(scope), node_id)
        if not path:
            raise NodeNotFound(node_id)
        return path

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_unique_name(
        siblings: List[StudyNode],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        folded = name.casefold()
        for sibling in siblings:
            if sibling.id != exclude_id and sibling.name.casefold() == folded:
                raise DuplicateNameError(f"A study node named '{name}' already exists here")

    async def create_node(self, scope: str, data: StudyNodeCreate) -> StudyNode:
        """
        Create a node at the end of its sibling group.

        Args:
            scope: Owner user ID.
            data: Creation payload.

        Returns:
            The stored StudyNode.

        Raises:
            NodeNotFound: If the parent does not exist for this user.
            DuplicateNameError: If a sibling already uses the name.
        """
        flat = await self.fetch_flat_nodes(scope)
        parents = resolve_parents(flat)
        by_id = {node.id: node for node in flat}

        parent = None
        if data.parent_id is not None:
            parent = by_id.get(data.parent_id)
            if parent is None:
                raise NodeNotFound(data.parent_id)

        siblings = [node for node in flat if parents[node.id] == data.parent_id]
        self._ensure_unique_name(siblings, data.name)

        now = _now()
        doc_ref = self.collection.document()
        node = StudyNode(
            id=doc_ref.id,
            parent_id=data.parent_id,
            name=data.name,
            kind=data.kind or next_default_kind(parent.kind if parent else None),
            sort_order=len(siblings),
            color=data.color,
            description=data.description,
            icon=data.icon,
            user_id=scope,
            created_at=now,
            updated_at=now,
        )
        doc_ref.set(self._node_to_doc(node))
        logger.info("Created study node %s under %s for %s", node.id, node.parent_id, scope)
        return node

    async def update_node(self, scope: str, node_id: str, data: StudyNodeUpdate) -> StudyNode:
        """
        Rename / recolor / describe / pin a node.

        Raises:
            NodeNotFound: If the node does not exist for this user.
            DuplicateNameError: If the new name clashes with a sibling.
        """
        node = await self.get_node(scope, node_id)
        changes = data.model_dump(exclude_unset=True)
        for field in ("name", "is_pinned"):
            if field in changes and changes[field] is None:
                del changes[field]
        if not changes:
            return node

        if "name" in changes and changes["name"] != node.name:
            flat = await self.fetch_flat_nodes(scope)
            parents = resolve_parents(flat)
            siblings = [n for n in flat if parents[n.id] == parents.get(node_id)]
            self._ensure_unique_name(siblings, changes["name"], exclude_id=node_id)

        changes["updated_at"] = _now()
        self.collection.document(node_id).update(changes)
        return node.model_copy(update=changes)

    async def delete_node(self, scope: str, node_id: str) -> List[str]:
        """
        Delete a node with its whole subtree and close the gap it leaves.

        Returns:
            Ids of every deleted node, the requested node first.

        Raises:
            NodeNotFound: If the node does not exist for this user.
        """
        flat = await self.fetch_flat_nodes(scope)
        forest = build_forest(flat)
        node = find_node(forest, node_id)
        if node is None:
            raise NodeNotFound(node_id)

        deleted = [node_id] + sorted(descendant_ids(node))
        group = forest if node.parent_id is None else find_node(forest, node.parent_id).children

        now = _now()
        batch = self.db.batch()
        for doc_id in deleted:
            batch.delete(self.collection.document(doc_id))
        remaining = [sibling for sibling in group if sibling.id != node_id]
        stored = _stored_parents(flat)
        for index, sibling in enumerate(remaining):
            if sibling.sort_order != index:
                batch.update(
                    self.collection.document(sibling.id),
                    _sibling_write(stored, sibling.id, sibling.parent_id, index, now),
                )
        batch.commit()

        logger.info("Deleted study node %s and %d descendants for %s", node_id, len(deleted) - 1, scope)
        return deleted

    async def apply_move_plan(self, plan: MovePlan, scope: Optional[str]) -> bool:
        """
        Apply every write of `plan` in one batch.

        The plan is checked against the current stored state first: every
        node must exist for `scope`, siblings must still sit in the group
        the plan saw, and the new parent must not be inside the moved
        subtree. Any mismatch rejects the whole plan.

        Returns:
            True when committed, False when rejected (nothing written).
        """
        flat = await self.fetch_flat_nodes(scope)
        parents = resolve_parents(flat)
        forest = build_forest(flat)

        problem = None
        moved = find_node(forest, plan.placement.id)
        new_parent_id = plan.placement.parent_id
        if moved is None:
            problem = f"node {plan.placement.id} no longer exists"
        elif new_parent_id is not None and new_parent_id not in parents:
            problem = f"parent {new_parent_id} no longer exists"
        elif new_parent_id is not None and (
            new_parent_id == moved.id or is_descendant(moved, find_node(forest, new_parent_id))
        ):
            problem = f"parent {new_parent_id} is inside the moved subtree"
        else:
            for update in plan.sibling_updates:
                if update.id not in parents:
                    problem = f"sibling {update.id} no longer exists"
                    break
                if parents[update.id] != update.parent_id:
                    problem = f"sibling {update.id} changed parent"
                    break

        if problem:
            logger.warning("Rejected move plan for %s: %s", scope, problem)
            return False

        now = _now()
        batch = self.db.batch()
        batch.update(
            self.collection.document(plan.placement.id),
            {
                "parent_id": new_parent_id,
                "sort_order": plan.placement.sort_order,
                "updated_at": now,
            },
        )
        stored = _stored_parents(flat)
        for update in plan.sibling_updates:
            batch.update(
                self.collection.document(update.id),
                _sibling_write(stored, update.id, update.parent_id, update.sort_order, now),
            )
        try:
            batch.commit()
        except GoogleAPICallError as exc:
            logger.error("Move plan commit failed for %s: %s", scope, exc)
            return False

        logger.info(
            "Moved study node %s to parent %s at %d (%d sibling updates)",
            plan.placement.id,
            new_parent_id,
            plan.placement.sort_order,
            len(plan.sibling_updates),
        )
        return True
