"""
In-memory stand-in for the Firestore client.

Implements the subset of the google-cloud-firestore surface the services use:
collection(), document(), set/get/update/delete, where(), order_by(),
limit(), offset() and stream(). Documents are deep-copied on the way in and
out so callers never share state with the store, just like a remote database.
"""

import copy
import random
import string
from typing import Any, Dict, Iterator, List, Optional

_AUTO_ID_CHARS = string.ascii_letters + string.digits
_MISSING = object()


def _auto_id() -> str:
    return "".join(random.choice(_AUTO_ID_CHARS) for _ in range(20))


def _get_path(data: Dict, field_path: str):
    value: Any = data
    for part in field_path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _set_path(data: Dict, field_path: str, value: Any):
    parts = field_path.split(".")
    target = data
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[parts[-1]] = value


def _matches(value: Any, op_string: str, expected: Any) -> bool:
    if value is _MISSING:
        return False
    try:
        if op_string == "==":
            return value == expected
        if op_string == "!=":
            return value != expected
        if op_string == "<":
            return value < expected
        if op_string == "<=":
            return value <= expected
        if op_string == ">":
            return value > expected
        if op_string == ">=":
            return value >= expected
        if op_string == "in":
            return value in expected
        if op_string == "not-in":
            return value not in expected
        if op_string == "array_contains":
            return isinstance(value, list) and expected in value
    except TypeError:
        return False
    raise ValueError(f"Unsupported operator: {op_string}")


class MockDocumentSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict], reference: "MockDocumentReference"):
        self.id = doc_id
        self._data = data
        self.reference = reference

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field_path: str):
        if self._data is None:
            return None
        value = _get_path(self._data, field_path)
        return None if value is _MISSING else copy.deepcopy(value)


class MockDocumentReference:
    def __init__(self, collection: "MockCollectionReference", doc_id: str):
        self._collection = collection
        self.id = doc_id

    @property
    def path(self) -> str:
        return f"{self._collection.id}/{self.id}"

    def get(self) -> MockDocumentSnapshot:
        return MockDocumentSnapshot(self.id, self._collection._docs.get(self.id), self)

    def set(self, document_data: Dict, merge: bool = False):
        if merge and self.id in self._collection._docs:
            self._collection._docs[self.id].update(copy.deepcopy(document_data))
        else:
            self._collection._docs[self.id] = copy.deepcopy(document_data)

    def update(self, field_updates: Dict):
        if self.id not in self._collection._docs:
            raise LookupError(f"No document to update: {self.path}")
        current = self._collection._docs[self.id]
        for field_path, value in field_updates.items():
            _set_path(current, field_path, copy.deepcopy(value))

    def delete(self):
        self._collection._docs.pop(self.id, None)


class MockQuery:
    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"

    def __init__(self, collection: "MockCollectionReference", filters=None, orders=None,
                 limit_count: Optional[int] = None, offset_count: int = 0):
        self._collection = collection
        self._filters = list(filters or [])
        self._orders = list(orders or [])
        self._limit = limit_count
        self._offset = offset_count

    def _copy(self, **overrides) -> "MockQuery":
        params = {
            "filters": self._filters,
            "orders": self._orders,
            "limit_count": self._limit,
            "offset_count": self._offset,
        }
        params.update(overrides)
        return MockQuery(self._collection, **params)

    def where(self, field_path: str, op_string: str, value: Any) -> "MockQuery":
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field_path: str, direction: str = ASCENDING) -> "MockQuery":
        return self._copy(orders=self._orders + [(field_path, direction)])

    def limit(self, count: int) -> "MockQuery":
        return self._copy(limit_count=count)

    def offset(self, num_to_skip: int) -> "MockQuery":
        return self._copy(offset_count=num_to_skip)

    def stream(self) -> Iterator[MockDocumentSnapshot]:
        items = [
            (doc_id, data)
            for doc_id, data in self._collection._docs.items()
            if all(_matches(_get_path(data, f), op, v) for f, op, v in self._filters)
        ]

        # Firestore drops documents that lack an order_by field
        for field_path, direction in reversed(self._orders):
            items = [item for item in items if _get_path(item[1], field_path) is not _MISSING]
            items.sort(
                key=lambda item: _get_path(item[1], field_path),
                reverse=direction == self.DESCENDING,
            )

        items = items[self._offset:]
        if self._limit is not None:
            items = items[:self._limit]

        for doc_id, _ in items:
            yield self._collection.document(doc_id).get()

    def get(self) -> List[MockDocumentSnapshot]:
        return list(self.stream())


class MockCollectionReference(MockQuery):
    def __init__(self, name: str):
        self.id = name
        self._docs: Dict[str, Dict] = {}
        super().__init__(self)

    def document(self, document_id: Optional[str] = None) -> MockDocumentReference:
        return MockDocumentReference(self, document_id or _auto_id())

    def add(self, document_data: Dict, document_id: Optional[str] = None):
        doc_ref = self.document(document_id)
        doc_ref.set(document_data)
        return None, doc_ref


class MockFirestore:
    """Process-local document store with a Firestore-compatible API."""

    def __init__(self):
        self._collections: Dict[str, MockCollectionReference] = {}

    def collection(self, name: str) -> MockCollectionReference:
        if name not in self._collections:
            self._collections[name] = MockCollectionReference(name)
        return self._collections[name]

    def collections(self) -> List[MockCollectionReference]:
        return list(self._collections.values())

    def reset(self):
        """Drop every collection (used by tests and reseeding)."""
        self._collections.clear()


_mock_db: Optional[MockFirestore] = None


def get_mock_db() -> MockFirestore:
    global _mock_db
    if _mock_db is None:
        _mock_db = MockFirestore()
    return _mock_db
