"""Trigger bodies, independent of the Cloud Functions runtime.

Both handlers are best-effort: failures are logged and reported, never raised,
so the platform does not retry them.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

from rauxa.chat.services import ChatService
from rauxa.core.constants import (
    CASCADE_MAX_WORKERS,
    CHATS,
    DELETE_BATCH_SIZE,
    LIVE_EVENTS,
    MEMBERSHIP_COLLECTIONS,
    MESSAGES,
    NEW_FLAGS,
    RSVPED_USERS,
    USER_RSVP,
    USERS,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.collection import CollectionReference

logger = logging.getLogger(__name__)


@dataclass
class CascadeReport:
    """Per-target outcome of an event cascade."""

    event_id: str
    deleted: dict[str, int] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventId": self.event_id,
            "deleted": dict(self.deleted),
            "failed": dict(self.failed),
            "ok": self.ok,
        }


def delete_collection(
    db: Client, collection_ref: CollectionReference, batch_size: int = DELETE_BATCH_SIZE
) -> int:
    """Delete every document of a collection, ``batch_size`` at a time.

    Returns the number of documents removed.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be positive")

    deleted = 0
    while True:
        docs = list(collection_ref.limit(batch_size).stream())
        if not docs:
            return deleted

        batch = db.batch()
        for doc in docs:
            batch.delete(doc.reference)
        batch.commit()
        deleted += len(docs)
        logger.debug(f"Deleted batch of {len(docs)} documents.")


def on_rsvp_accepted(
    db: Client,
    event_id: str,
    attendee_id: str,
    attendee: Optional[dict[str, Any]] = None,
) -> bool:
    """Add a newly accepted attendee to the event chat.

    Returns whether the user ended up in the chat.
    """
    user_id = (attendee or {}).get("userId") or attendee_id
    logger.info(f"RSVP accepted for user {user_id} in event {event_id}.")
    try:
        return ChatService.join_event_chat(db, event_id, user_id)
    except Exception as e:
        logger.error(f"Error adding {user_id} to chat for event {event_id}: {e}")
        return False


def _delete_chat(db: Client, event_id: str, batch_size: int) -> int:
    chat_ref = db.collection(CHATS).document(event_id)
    # Subcollections outlive their parent, so they go first.
    deleted = delete_collection(db, chat_ref.collection(MESSAGES), batch_size)
    deleted += delete_collection(db, chat_ref.collection(NEW_FLAGS), batch_size)
    chat_ref.delete()
    return deleted + 1


def _delete_rsvp_index(db: Client, event_id: str, batch_size: int) -> int:
    rsvped_ref = (
        db.collection(LIVE_EVENTS).document(event_id).collection(RSVPED_USERS)
    )
    user_ids = [doc.id for doc in rsvped_ref.stream()]
    if not user_ids:
        logger.info(f"No users found in {LIVE_EVENTS}/{event_id}/{RSVPED_USERS}.")

    for user_id in user_ids:
        try:
            db.collection(USERS).document(user_id).collection(USER_RSVP).document(
                event_id
            ).delete()
        except Exception as e:
            logger.error(
                f"Error deleting RSVP for user {user_id} for event {event_id}: {e}"
            )
    return len(user_ids) + delete_collection(db, rsvped_ref, batch_size)


def on_live_event_delete(
    db: Client,
    event_id: str,
    batch_size: int = DELETE_BATCH_SIZE,
    max_workers: int = CASCADE_MAX_WORKERS,
) -> CascadeReport:
    """Remove everything hanging off a deleted ``live/{eventId}`` document."""
    logger.info(
        f"Live event {event_id} deleted. Initiating cascading delete of associated data."
    )
    event_ref = db.collection(LIVE_EVENTS).document(event_id)

    tasks: dict[str, Callable[[], int]] = {}
    for name in MEMBERSHIP_COLLECTIONS:
        tasks[f"{LIVE_EVENTS}/{event_id}/{name}"] = (
            lambda name=name: delete_collection(
                db, event_ref.collection(name), batch_size
            )
        )
    tasks[f"{CHATS}/{event_id}"] = lambda: _delete_chat(db, event_id, batch_size)
    tasks[f"{USERS}/*/{USER_RSVP}/{event_id}"] = lambda: _delete_rsvp_index(
        db, event_id, batch_size
    )

    report = CascadeReport(event_id=event_id)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {path: executor.submit(task) for path, task in tasks.items()}
        for path, future in futures.items():
            try:
                report.deleted[path] = future.result()
                logger.info(f"Successfully deleted '{path}'.")
            except Exception as e:
                report.failed[path] = str(e)
                logger.error(f"Error deleting '{path}': {e}")

    logger.info(f"Cascading delete finished for event {event_id}.")
    return report
