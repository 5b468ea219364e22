"""Core data types for the rauxa application."""

from typing import Any, TypedDict


class _FirestoreDocumentBase(TypedDict):
    id: str


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure, as returned by the API."""

    path: str
    createdAt: Any
    updatedAt: Any
