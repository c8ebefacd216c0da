"""
============================================================================
FILE: test_study_nodes_api.py
LOCATION: tests/test_study_nodes_api.py
============================================================================

PURPOSE:
    End-to-end tests for the study nodes endpoints.

ROLE IN PROJECT:
    Drives the FastAPI app through TestClient against an in-memory mock
    Firestore, covering CRUD, tree reads, breadcrumbs and drag-and-drop
    moves including the error status mapping.

KEY COMPONENTS:
    - TestCrud: Create / read / update / delete
    - TestTreeReads: Forest, pinned, path, next-kind
    - TestMove: /move success, no-op and rejection paths

DEPENDENCIES:
    - External: pytest, fastapi, httpx
    - Internal: api.main, api.study_nodes, api.mock_firestore

USAGE:
    pytest tests/test_study_nodes_api.py -v
============================================================================
"""

import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.mock_firestore import MockFirestoreClient
from api.study_nodes import StudyNodeRepository, StudyNodeService
from api.study_nodes.router import get_study_node_service


client = TestClient(app)

USER = "user_001"
BASE = "/api/study-nodes"


@pytest.fixture(autouse=True)
def reset_dependency_overrides() -> None:
    """Ensure dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def db():
    return MockFirestoreClient()


@pytest.fixture
def service(db):
    svc = StudyNodeService(StudyNodeRepository(firestore_db=db))
    app.dependency_overrides[get_study_node_service] = lambda: svc
    return svc


def create(name, parent_id=None, user_id=USER, **extra):
    payload = {"name": name, "parent_id": parent_id, **extra}
    response = client.post(BASE, params={"user_id": user_id}, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def tree(user_id=USER):
    response = client.get(f"{BASE}/tree", params={"user_id": user_id})
    assert response.status_code == 200
    return response.json()["nodes"]


@pytest.fixture
def course(service):
    cs = create("CS101")
    midterm = create("Midterm", cs["id"])
    final = create("Final", cs["id"])
    return cs, midterm, final


class TestCrud:
    def test_root_endpoint(self):
        response = client.get("/")

        assert response.status_code == 200
        assert "Study Nodes" in response.json()["message"]

    def test_create_assigns_order_and_kind(self, course):
        cs, midterm, final = course

        assert cs["kind"] == "course"
        assert cs["sort_order"] == 0
        assert midterm["kind"] == "year"
        assert (midterm["sort_order"], final["sort_order"]) == (0, 1)
        assert final["parent_id"] == cs["id"]
        assert final["user_id"] == USER

    def test_create_with_explicit_kind(self, service):
        node = create("Electives", kind="custom")

        assert node["kind"] == "custom"

    def test_create_trims_name(self, service):
        assert create("  Physics  ")["name"] == "Physics"

    def test_create_blank_name_is_rejected(self, service):
        response = client.post(BASE, params={"user_id": USER}, json={"name": "   "})

        assert response.status_code == 422

    def test_create_requires_user_id(self, service):
        response = client.post(BASE, json={"name": "CS101"})

        assert response.status_code == 422

    def test_create_under_missing_parent(self, service):
        response = client.post(BASE, params={"user_id": USER}, json={"name": "X", "parent_id": "ghost"})

        assert response.status_code == 404

    def test_duplicate_sibling_name_conflicts(self, course):
        cs, _, _ = course
        response = client.post(BASE, params={"user_id": USER}, json={"name": "midterm", "parent_id": cs["id"]})

        assert response.status_code == 409

    def test_same_name_allowed_under_other_parent(self, course):
        create("Midterm")

    def test_get_node(self, course):
        cs, _, _ = course
        response = client.get(f"{BASE}/{cs['id']}", params={"user_id": USER})

        assert response.status_code == 200
        assert response.json()["name"] == "CS101"

    def test_get_node_of_other_user_is_not_found(self, course):
        cs, _, _ = course
        response = client.get(f"{BASE}/{cs['id']}", params={"user_id": "someone_else"})

        assert response.status_code == 404

    def test_list_flat(self, course):
        response = client.get(BASE, params={"user_id": USER})

        assert response.status_code == 200
        assert response.json()["total"] == 3
        assert all(node["children"] == [] for node in response.json()["nodes"])

    def test_update_renames_and_pins(self, course):
        _, midterm, _ = course
        response = client.patch(
            f"{BASE}/{midterm['id']}",
            params={"user_id": USER},
            json={"name": "Midterm Exam", "is_pinned": True},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Midterm Exam"
        assert body["is_pinned"] is True
        assert body["sort_order"] == 0

    def test_update_rename_conflict(self, course):
        _, midterm, _ = course
        response = client.patch(f"{BASE}/{midterm['id']}", params={"user_id": USER}, json={"name": "FINAL"})

        assert response.status_code == 409

    def test_update_missing_node(self, service):
        response = client.patch(f"{BASE}/ghost", params={"user_id": USER}, json={"name": "X"})

        assert response.status_code == 404

    def test_delete_cascades_and_closes_gap(self, course):
        cs, midterm, final = course
        review = create("Review", midterm["id"])
        math = create("MATH200")

        response = client.delete(f"{BASE}/{cs['id']}", params={"user_id": USER})

        assert response.status_code == 200
        assert sorted(response.json()["deleted_ids"]) == sorted(
            [cs["id"], midterm["id"], final["id"], review["id"]]
        )
        remaining = tree()
        assert [n["id"] for n in remaining] == [math["id"]]
        assert remaining[0]["sort_order"] == 0

    def test_delete_missing_node(self, service):
        response = client.delete(f"{BASE}/ghost", params={"user_id": USER})

        assert response.status_code == 404


class TestTreeReads:
    def test_tree_is_nested_and_ordered(self, course):
        cs, midterm, final = course
        forest = tree()

        assert [n["id"] for n in forest] == [cs["id"]]
        assert [c["id"] for c in forest[0]["children"]] == [midterm["id"], final["id"]]

    def test_tree_is_scoped_per_user(self, course):
        create("Other", user_id="user_002")

        assert [n["name"] for n in tree("user_002")] == ["Other"]
        assert [n["name"] for n in tree()] == ["CS101"]

    def test_orphans_are_returned_as_roots(self, course, db):
        db.collection("study_nodes").document("orphan").set(
            {"name": "Lost", "parent_id": "deleted-parent", "sort_order": 0, "user_id": USER}
        )

        names = [n["name"] for n in tree()]
        assert sorted(names) == ["CS101", "Lost"]

    def test_legacy_type_field_is_read_as_kind(self, service, db):
        db.collection("study_nodes").document("old").set(
            {"name": "Legacy", "type": "semester", "sort_order": 0, "user_id": USER}
        )

        assert tree()[0]["kind"] == "semester"

    def test_pinned_returns_topmost_pinned(self, course):
        cs, midterm, _ = course
        for node in (cs, midterm):
            client.patch(f"{BASE}/{node['id']}", params={"user_id": USER}, json={"is_pinned": True})

        response = client.get(f"{BASE}/pinned", params={"user_id": USER})

        assert response.status_code == 200
        assert [n["id"] for n in response.json()["nodes"]] == [cs["id"]]

    def test_path(self, course):
        cs, _, final = course
        response = client.get(f"{BASE}/{final['id']}/path", params={"user_id": USER})

        assert response.status_code == 200
        assert [n["id"] for n in response.json()["path"]] == [cs["id"], final["id"]]

    def test_path_missing_node(self, service):
        response = client.get(f"{BASE}/ghost/path", params={"user_id": USER})

        assert response.status_code == 404

    def test_next_kind(self, course):
        cs, midterm, _ = course

        root = client.get(f"{BASE}/next-kind", params={"user_id": USER})
        child = client.get(f"{BASE}/next-kind", params={"user_id": USER, "parent_id": midterm["id"]})

        assert root.json()["kind"] == "course"
        assert child.json() == {"parent_id": midterm["id"], "kind": "subject"}


class TestMove:
    def move(self, node_id, target_id, position):
        return client.post(
            f"{BASE}/move",
            params={"user_id": USER},
            json={"node_id": node_id, "target_id": target_id, "position": position},
        )

    def test_before_swaps_siblings(self, course):
        cs, midterm, final = course
        response = self.move(final["id"], midterm["id"], "before")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["plan"]["placement"] == {"id": final["id"], "parent_id": cs["id"], "sort_order": 0}
        assert [c["id"] for c in body["nodes"][0]["children"]] == [final["id"], midterm["id"]]
        assert [c["id"] for c in tree()[0]["children"]] == [final["id"], midterm["id"]]

    def test_inside_moves_between_parents(self, course):
        cs, midterm, final = course
        math = create("MATH200")

        response = self.move(midterm["id"], math["id"], "inside")

        assert response.status_code == 200
        forest = tree()
        assert [c["id"] for c in forest[0]["children"]] == [final["id"]]
        assert forest[0]["children"][0]["sort_order"] == 0
        assert [c["id"] for c in forest[1]["children"]] == [midterm["id"]]

    def test_move_to_root(self, course):
        cs, midterm, _ = course

        response = self.move(midterm["id"], cs["id"], "after")

        assert response.status_code == 200
        assert [n["id"] for n in tree()] == [cs["id"], midterm["id"]]

    def test_noop_move(self, course):
        _, midterm, final = course
        response = self.move(midterm["id"], final["id"], "before")

        assert response.status_code == 200
        assert response.json()["message"] == "Nothing to move"

    def test_into_own_subtree_is_rejected(self, course):
        cs, midterm, _ = course
        response = self.move(cs["id"], midterm["id"], "inside")

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot move a folder into its own subfolder"
        assert [n["id"] for n in tree()] == [cs["id"]]

    def test_onto_itself_is_rejected(self, course):
        cs, _, _ = course

        assert self.move(cs["id"], cs["id"], "inside").status_code == 400

    def test_unknown_target(self, course):
        cs, _, _ = course

        assert self.move(cs["id"], "ghost", "before").status_code == 404

    def test_bad_position(self, course):
        cs, midterm, _ = course

        assert self.move(midterm["id"], cs["id"], "sideways").status_code == 422
