"""Service layer for live events."""

from __future__ import annotations

import datetime
import logging
import os
import tempfile
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore, storage
from werkzeug.utils import secure_filename

from rauxa.core.constants import (
    DELETE_BATCH_SIZE,
    EVENT_PHOTOS_PREFIX,
    FEED_LIMIT,
    LIVE_EVENTS,
    MAX_EVENT_PHOTOS,
    MEETUP_EVENTS,
    MEETUPS,
    RECOMMENDED_MEETUPS,
    TAGS,
    TAGS_DOC,
    USER_DECLINED,
    USER_RSVP,
    USERS,
)
from rauxa.errors import NotFoundError, PermissionDeniedError, ValidationError

from .models import EDITABLE_FIELDS, Event, EventSubmission

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from rauxa.triggers.handlers import CascadeReport

logger = logging.getLogger(__name__)

FIELD_TYPES = {
    "title": str,
    "location": str,
    "groupSize": int,
    "description": str,
    "tags": list,
    "photos": list,
    "active": bool,
}


def parse_event_date(value: Any) -> datetime.datetime | None:
    """Accept a datetime or an ISO 8601 string."""
    if value is None or isinstance(value, datetime.datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError("Date must be an ISO 8601 timestamp.") from None
    raise ValidationError("Date must be an ISO 8601 timestamp.")


class EventService:
    """Handles business logic and data access for live events."""

    @staticmethod
    def _decode_all(snapshots: Any) -> list[Event]:
        """Decode event snapshots, skipping malformed documents."""
        events = []
        for snapshot in snapshots:
            if not snapshot.exists:
                continue
            try:
                events.append(Event.from_snapshot(snapshot))
            except ValidationError as e:
                logger.warning(f"Skipping malformed event {snapshot.id}: {e.message}")
        return events

    @staticmethod
    def get_event(db: Client, event_id: str) -> Event:
        """Fetch a single event or raise NotFoundError."""
        snapshot = db.collection(LIVE_EVENTS).document(event_id).get()
        if not snapshot.exists:
            raise NotFoundError("Event not found.")
        return Event.from_snapshot(snapshot)

    @staticmethod
    def _get_hosted_event(db: Client, event_id: str, user_id: str) -> Event:
        event = EventService.get_event(db, event_id)
        if event.host != user_id:
            raise PermissionDeniedError("Only the host can manage this event.")
        return event

    @staticmethod
    def create_event(db: Client, submission: EventSubmission, host_id: str) -> Event:
        """Create a live event hosted by ``host_id``."""
        submission.validate()

        payload = submission.to_firestore()
        payload.update(
            {
                "host": host_id,
                "active": True,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )
        event_ref = db.collection(LIVE_EVENTS).document()
        event_ref.set(payload)
        logger.info(f"Event {event_ref.id} created by {host_id}.")

        return Event(
            id=event_ref.id,
            title=payload["title"],
            host=host_id,
            location=payload["location"],
            date=payload["date"],
            group_size=payload["groupSize"],
            description=payload["description"],
            tags=payload["tags"],
            photos=payload["photos"],
        )

    @staticmethod
    def update_event(
        db: Client, event_id: str, user_id: str, updates: dict[str, Any]
    ) -> Event:
        """Apply host edits to an event."""
        unknown = set(updates) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit: {', '.join(sorted(unknown))}.")
        if not updates:
            raise ValidationError("Nothing to update.")

        event = EventService._get_hosted_event(db, event_id, user_id)

        for name, value in updates.items():
            kind = FIELD_TYPES.get(name)
            if kind and value is not None and not isinstance(value, kind):
                raise ValidationError(f"Invalid value for {name}.")
        if "date" in updates:
            updates["date"] = parse_event_date(updates["date"])

        merged = EventSubmission(
            title=updates.get("title", event.title),
            location=updates.get("location", event.location),
            date=updates.get("date", event.date),
            group_size=updates.get("groupSize", event.group_size),
            description=updates.get("description", event.description),
            tags=updates.get("tags", event.tags),
            photos=updates.get("photos", event.photos),
        )
        merged.validate()

        db.collection(LIVE_EVENTS).document(event_id).update(
            {**updates, "updatedAt": firestore.SERVER_TIMESTAMP}
        )
        return EventService.get_event(db, event_id)

    @staticmethod
    def delete_event(
        db: Client,
        event_id: str,
        user_id: str,
        cascade: bool = False,
        batch_size: int = DELETE_BATCH_SIZE,
    ) -> CascadeReport | None:
        """Delete an event owned by ``user_id``.

        Associated data is removed by the delete trigger. With ``cascade`` set
        the same cleanup runs inline, for deployments without triggers.
        """
        EventService._get_hosted_event(db, event_id, user_id)
        db.collection(LIVE_EVENTS).document(event_id).delete()
        logger.info(f"Event {event_id} deleted by host {user_id}.")

        if not cascade:
            return None

        from rauxa.triggers.handlers import on_live_event_delete

        return on_live_event_delete(db, event_id, batch_size=batch_size)

    @staticmethod
    def list_hosted_events(db: Client, user_id: str) -> list[Event]:
        """Fetch the events a user hosts."""
        query = db.collection(LIVE_EVENTS).where(
            filter=firestore.FieldFilter("host", "==", user_id)
        )
        return EventService._decode_all(query.stream())

    @staticmethod
    def get_swipe_feed(db: Client, user_id: str, limit: int = FEED_LIMIT) -> list[Event]:
        """Active events the user has not hosted, RSVP'd to or passed on."""
        user_ref = db.collection(USERS).document(user_id)
        seen_ids = set()
        for subcollection in (USER_RSVP, USER_DECLINED):
            seen_ids |= {
                doc.id
                for doc in user_ref.collection(subcollection).stream()
                if doc.exists
            }

        query = db.collection(LIVE_EVENTS).where(
            filter=firestore.FieldFilter("active", "==", True)
        )
        feed = []
        for event in EventService._decode_all(query.stream()):
            if event.host == user_id or event.id in seen_ids:
                continue
            feed.append(event)
            if len(feed) >= limit:
                break
        return feed

    @staticmethod
    def get_tags(db: Client) -> list[str]:
        """Fetch the tags offered to event creators."""
        tags_doc = db.collection(TAGS).document(TAGS_DOC).get()
        if not tags_doc.exists:
            return []
        data = tags_doc.to_dict() or {}
        return [tag for tag in data.get("tags", []) if isinstance(tag, str)]

    @staticmethod
    def list_recommended_meetups(db: Client) -> list[dict[str, Any]]:
        """Fetch the curated meetups listing."""
        events_ref = (
            db.collection(MEETUPS)
            .document(RECOMMENDED_MEETUPS)
            .collection(MEETUP_EVENTS)
        )
        meetups = []
        for doc in events_ref.stream():
            if doc.exists:
                meetups.append({"id": doc.id, **(doc.to_dict() or {})})
        return meetups

    @staticmethod
    def upload_event_photo(
        db: Client, event_id: str, user_id: str, photo_file: Any
    ) -> str:
        """Upload an event photo to Cloud Storage and attach its URL."""
        if not photo_file or not getattr(photo_file, "filename", None):
            raise ValidationError("A photo file is required.")

        event = EventService._get_hosted_event(db, event_id, user_id)
        if len(event.photos) >= MAX_EVENT_PHOTOS:
            raise ValidationError(
                f"An event can have at most {MAX_EVENT_PHOTOS} photos."
            )

        filename = secure_filename(photo_file.filename or f"photo_{event_id}.jpg")
        bucket = storage.bucket()
        blob = bucket.blob(f"{EVENT_PHOTOS_PREFIX}/{event_id}/{filename}")

        with tempfile.NamedTemporaryFile(suffix=os.path.splitext(filename)[1]) as tmp:
            photo_file.save(tmp.name)
            blob.upload_from_filename(tmp.name)

        blob.make_public()
        url = str(blob.public_url)

        db.collection(LIVE_EVENTS).document(event_id).update(
            {
                "photos": firestore.ArrayUnion([url]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )
        return url
