"""
============================================================================
FILE: mock_firestore.py
LOCATION: api/mock_firestore.py
============================================================================

PURPOSE:
    In-memory stand-in for the Firestore client used by the study node
    repository. Lets the API and its tests run without Firebase.

ROLE IN PROJECT:
    - Selected by config.get_db() unless USE_REAL_FIREBASE=true
    - Optionally persists to a JSON file (MOCK_DB_FILE) for local dev
    - Supports the client surface the repository relies on: collections,
      documents, where/order_by/limit queries and atomic write batches

KEY COMPONENTS:
    - MockFirestoreClient: Entry point (collection(), batch())
    - MockCollectionReference / MockQuery: Filtering and ordering
    - MockDocumentReference / MockDocumentSnapshot: Document CRUD
    - MockWriteBatch: Staged writes committed all-or-nothing

DEPENDENCIES:
    - External: google-api-core (NotFound, raised like the real client)
    - Internal: None

USAGE:
    from api.mock_firestore import MockFirestoreClient

    client = MockFirestoreClient()
    client.collection("study_nodes").document("n1").set({"name": "CS101"})
============================================================================
"""
import copy
import json
import os
import uuid
from typing import Any, Dict, List, Optional, Tuple

from google.api_core.exceptions import NotFound


ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"


def _matches(data: Dict[str, Any], field: str, op: str, value: Any) -> bool:
    val = data.get(field)
    if op == "==":
        return val == value
    if op == "!=":
        return val != value
    if op == "in":
        return bool(value) and val in value
    if op == "not-in":
        return val not in (value or [])
    if op == "array_contains":
        return isinstance(val, list) and value in val
    if val is None:
        return False
    if op == ">":
        return val > value
    if op == ">=":
        return val >= value
    if op == "<":
        return val < value
    if op == "<=":
        return val <= value
    raise ValueError(f"Unsupported operator: {op}")


class MockDocumentSnapshot:
    def __init__(self, ref, data, exists=True):
        self._ref = ref
        self.id = ref.id
        self._data = copy.deepcopy(data) if data is not None else {}
        self.exists = exists

    def to_dict(self):
        if not self.exists:
            return None
        return copy.deepcopy(self._data)

    def get(self, field_path):
        if not self.exists:
            return None
        curr = self._data
        for part in field_path.split("."):
            if isinstance(curr, dict) and part in curr:
                curr = curr[part]
            else:
                return None
        return curr

    @property
    def reference(self):
        return self._ref


class MockDocumentReference:
    def __init__(self, collection_parent, document_id):
        self.parent = collection_parent
        self.id = document_id

    @property
    def _data(self):
        return self.parent._docs.get(self.id)

    @property
    def path(self):
        return f"{self.parent.path}/{self.id}"

    def get(self, transaction=None):
        data = self._data
        return MockDocumentSnapshot(self, data, exists=data is not None)

    def set(self, data: Dict[str, Any], merge=False):
        if merge and self.id in self.parent._docs:
            self.parent._docs[self.id].update(copy.deepcopy(data))
        else:
            self.parent._docs[self.id] = copy.deepcopy(data)
        self.parent._save()

    def update(self, data: Dict[str, Any]):
        if self.id not in self.parent._docs:
            raise NotFound(f"No document to update: {self.path}")
        self.parent._docs[self.id].update(copy.deepcopy(data))
        self.parent._save()

    def delete(self):
        self.parent._docs.pop(self.id, None)
        self.parent._save()


class MockQuery:
    def __init__(self, collection, filters=None, orders=None, limit=None):
        self.collection = collection
        self.filters: List[Tuple[str, str, Any]] = list(filters or [])
        self.orders: List[Tuple[str, str]] = list(orders or [])
        self.limit_val = limit

    def where(self, field, op, value):
        return MockQuery(self.collection, self.filters + [(field, op, value)], self.orders, self.limit_val)

    def order_by(self, field, direction=ASCENDING):
        return MockQuery(self.collection, self.filters, self.orders + [(field, direction)], self.limit_val)

    def limit(self, count):
        return MockQuery(self.collection, self.filters, self.orders, count)

    def stream(self, transaction=None):
        results = []
        for doc_id, data in self.collection._docs.items():
            if all(_matches(data, f, op, v) for f, op, v in self.filters):
                results.append(MockDocumentSnapshot(self.collection.document(doc_id), data))

        # Stable sorts applied last-key-first give multi-field ordering
        for field, direction in reversed(self.orders):
            results.sort(
                key=lambda doc: (doc._data.get(field) is not None, doc._data.get(field)),
                reverse=direction == DESCENDING,
            )

        if self.limit_val is not None:
            results = results[: self.limit_val]
        return iter(results)

    def get(self, transaction=None):
        return list(self.stream())


class MockCollectionReference(MockQuery):
    def __init__(self, client, path):
        self.client = client
        self.path = path
        self.id = path.split("/")[-1]
        self._docs = self.client._db_data.setdefault(path, {})
        super().__init__(self)

    def document(self, document_id=None):
        if not document_id:
            document_id = uuid.uuid4().hex[:20]
        return MockDocumentReference(self, document_id)

    def add(self, data: Dict[str, Any]):
        doc_ref = self.document()
        doc_ref.set(data)
        return None, doc_ref

    def _save(self):
        self.client._save_db()


class MockWriteBatch:
    """Staged writes applied all-or-nothing on commit()."""

    def __init__(self, client):
        self.client = client
        self._writes: List[Tuple[str, MockDocumentReference, Optional[Dict[str, Any]]]] = []

    def set(self, ref, data, merge=False):
        self._writes.append(("merge" if merge else "set", ref, copy.deepcopy(data)))
        return self

    def update(self, ref, data):
        self._writes.append(("update", ref, copy.deepcopy(data)))
        return self

    def delete(self, ref):
        self._writes.append(("delete", ref, None))
        return self

    def __len__(self):
        return len(self._writes)

    def commit(self):
        # Validate every update against the state the batch itself produces
        present = {}
        for kind, ref, _ in self._writes:
            key = (ref.parent.path, ref.id)
            exists = present.get(key, ref.id in ref.parent._docs)
            if kind == "update" and not exists:
                raise NotFound(f"No document to update: {ref.path}")
            present[key] = kind != "delete"

        for kind, ref, data in self._writes:
            docs = ref.parent._docs
            if kind == "set":
                docs[ref.id] = data
            elif kind == "merge":
                docs.setdefault(ref.id, {}).update(data)
            elif kind == "update":
                docs[ref.id].update(data)
            else:
                docs.pop(ref.id, None)
        self._writes = []
        self.client._save_db()
        return []


class MockFirestoreClient:
    def __init__(self, db_file: Optional[str] = None):
        self.db_file = db_file
        self._db_data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.reload()

    def reload(self):
        self._db_data = {}
        if self.db_file and os.path.exists(self.db_file):
            with open(self.db_file, "r", encoding="utf-8") as f:
                self._db_data = json.load(f)

    def _save_db(self):
        if not self.db_file:
            return
        with open(self.db_file, "w", encoding="utf-8") as f:
            json.dump(self._db_data, f, indent=2, default=str)

    def collection(self, name):
        return MockCollectionReference(self, name)

    def batch(self):
        return MockWriteBatch(self)

    def clear(self):
        for docs in self._db_data.values():
            docs.clear()
        self._save_db()


def get_mock_db(db_file: Optional[str] = None):
    """Create a mock Firestore client instance.

    Args:
        db_file: Optional JSON file to load from and save to.

    Returns:
        MockFirestoreClient: New mock client instance.
    """
    return MockFirestoreClient(db_file)
