"""Shared fixtures for API and service tests."""

from __future__ import annotations

import datetime
import unittest
from typing import Any, Optional
from unittest.mock import patch

from rauxa import create_app
from tests.conftest import make_db, passthrough_transactional

HOST_ID = "H"
EVENT_DATE = datetime.datetime(2026, 11, 1, 19, 0, tzinfo=datetime.timezone.utc)


def seed_event(
    db: Any,
    event_id: str,
    host: str = HOST_ID,
    title: Optional[str] = None,
    **fields: Any,
) -> Any:
    """Write a ``live/{eventId}`` document and return its reference."""
    data = {
        "title": title or f"Event {event_id}",
        "location": "Main Quad",
        "date": EVENT_DATE,
        "groupSize": 4,
        "description": "",
        "tags": [],
        "photos": [],
        "host": host,
        "active": True,
    }
    data.update(fields)
    ref = db.collection("live").document(event_id)
    ref.set(data)
    return ref


def seed_profile(db: Any, user_id: str, first_name: str) -> None:
    db.collection("users").document(user_id).collection("ProfileInfo").document(
        "userinfo"
    ).set({"displayFirstName": first_name, "name": f"{first_name} Tester"})


def existing_ids(collection_ref: Any) -> list[str]:
    """Ids of documents that actually hold data."""
    return sorted(doc.id for doc in collection_ref.stream() if doc.exists)


class ServiceTestCase(unittest.TestCase):
    """A patched MockFirestore with transactions that run inline."""

    def setUp(self) -> None:
        self.db = make_db()
        transactional = passthrough_transactional()
        transactional.start()
        self.addCleanup(transactional.stop)


class ApiTestCase(ServiceTestCase):
    """Test client whose Firestore client and token check are mocked."""

    config: dict[str, Any] = {}

    def setUp(self) -> None:
        super().setUp()
        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "firestore_client": patch(
                "firebase_admin.firestore.client", return_value=self.db
            ),
            "verify_id_token": patch(
                "firebase_admin.auth.verify_id_token",
                side_effect=lambda token: {"uid": token.removeprefix("token-")},
            ),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app({"TESTING": True, **self.config})
        self.client = self.app.test_client()

    def auth(self, user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer token-{user_id}"}
