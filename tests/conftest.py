"""Common utilities for tests."""

from __future__ import annotations

import unittest.mock
from typing import Any, Callable, Optional

from google.cloud.firestore_v1.transforms import ArrayRemove, ArrayUnion
from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and equality."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:  # noqa: E501
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where

    def doc_ref_eq(self: Any, other: Any) -> bool:
        if not isinstance(other, DocumentReference):
            return False
        return self._path == other._path

    if not hasattr(DocumentReference, "_orig_eq"):
        DocumentReference._orig_eq = DocumentReference.__eq__
        DocumentReference.__eq__ = doc_ref_eq
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))

    # Transactional reads pass the transaction through.
    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get

        def doc_ref_get(self: Any, transaction: Any = None) -> Any:
            return self._orig_get()

        DocumentReference.get = doc_ref_get

    if not hasattr(DocumentReference, "_orig_update"):
        DocumentReference._orig_update = DocumentReference.update

        def patched_update(self: Any, data: dict[str, Any]) -> Any:
            current_data = self._orig_get().to_dict() or {}
            new_data = {}
            for k, v in data.items():
                if isinstance(v, ArrayUnion):
                    existing = current_data.get(k, [])
                    if not isinstance(existing, list):
                        existing = []
                    merged = list(existing)
                    for item in v.values:
                        if item not in merged:
                            merged.append(item)
                    new_data[k] = merged
                elif isinstance(v, ArrayRemove):
                    existing = current_data.get(k, [])
                    if not isinstance(existing, list):
                        existing = []
                    new_data[k] = [i for i in existing if i not in v.values]
                else:
                    new_data[k] = v
            return self._orig_update(new_data)

        DocumentReference.update = patched_update


class MockBatch:
    """Write batch that applies its operations on commit."""

    def __init__(self, db: Any) -> None:
        self.db = db
        self.operations: list[tuple[str, Any, Any, bool]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.operations.append(("set", ref, data, merge))

    def update(self, ref: Any, data: Any) -> None:
        self.operations.append(("update", ref, data, False))

    def delete(self, ref: Any) -> None:
        self.operations.append(("delete", ref, None, False))

    def _real_commit(self) -> None:
        for op, ref, data, merge in self.operations:
            if op == "set":
                ref.set(data, merge=merge)
            elif op == "update":
                ref.update(data)
            else:
                ref.delete()


class ImmediateTransaction:
    """Transaction stand-in that applies writes as they are made.

    Used with ``firestore.transactional`` patched to return the wrapped
    function unchanged.
    """

    def __init__(self) -> None:
        self.writes: list[tuple[str, Any]] = []

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set", ref))
        ref.set(data, merge=merge)

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append(("update", ref))
        ref.update(data)

    def delete(self, ref: Any) -> None:
        self.writes.append(("delete", ref))
        ref.delete()


def make_db() -> MockFirestore:
    """A patched MockFirestore with batches and immediate transactions."""
    patch_mockfirestore()
    db = MockFirestore()
    db.batch = lambda: MockBatch(db)
    db.transaction = lambda **kwargs: ImmediateTransaction()
    return db


def passthrough_transactional() -> Any:
    """Patch ``firestore.transactional`` so the body runs directly."""
    return unittest.mock.patch(
        "firebase_admin.firestore.transactional", new=lambda func: func
    )


class FakeWatch:
    """Handle returned by the fake listener; counts unsubscribe calls."""

    def __init__(self, target: Any, callback: Callable[..., None]) -> None:
        self.target = target
        self.callback = callback
        self.unsubscribe_calls = 0

    def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1

    def fire(self, docs: list[Any], changes: Optional[list[Any]] = None) -> None:
        self.callback(docs, changes or [], None)


class FakeWatcher:
    """Stands in for ``on_snapshot``; records every watch it attaches."""

    def __init__(self) -> None:
        self.watches: list[FakeWatch] = []

    def __call__(self, target: Any, callback: Callable[..., None]) -> FakeWatch:
        watch = FakeWatch(target, callback)
        self.watches.append(watch)
        return watch

    def for_path(self, *path: str) -> list[FakeWatch]:
        """Watches whose target collection path ends with ``path``."""
        found = []
        for watch in self.watches:
            target_path = getattr(watch.target, "_path", None)
            if target_path is not None and tuple(target_path[-len(path):]) == path:
                found.append(watch)
        return found


def snapshot(doc_id: str, data: Optional[dict[str, Any]] = None, exists: bool = True) -> Any:
    """A MagicMock document snapshot."""
    snap = unittest.mock.MagicMock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data if exists else None
    return snap


def change(kind: str, doc: Any) -> Any:
    """A MagicMock listener change of ``kind`` (ADDED, MODIFIED or REMOVED)."""
    item = unittest.mock.MagicMock()
    item.type.name = kind
    item.document = doc
    return item
