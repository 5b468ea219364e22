"""Cloud Functions (1st gen) entrypoints for the Firestore triggers.

Deployed from ``main.py``::

    gcloud functions deploy on_rsvp_accepted \
        --trigger-event providers/cloud.firestore/eventTypes/document.create \
        --trigger-resource "projects/<project>/databases/(default)/documents/live/{eventId}/attendees/{userId}"

    gcloud functions deploy on_live_event_delete \
        --trigger-event providers/cloud.firestore/eventTypes/document.delete \
        --trigger-resource "projects/<project>/databases/(default)/documents/live/{eventId}"
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import firebase_admin
from firebase_admin import firestore
from google.api_core.datetime_helpers import DatetimeWithNanoseconds

from rauxa.core.constants import ATTENDEES, DELETE_BATCH_SIZE, LIVE_EVENTS

from . import handlers

logger = logging.getLogger(__name__)

_client = None


def _db() -> Any:
    """Firestore client, created on first use and reused across invocations."""
    global _client
    if _client is None:
        if not firebase_admin._apps:
            firebase_admin.initialize_app()
        _client = firestore.client()
    return _client


def document_path(resource: str) -> list[str]:
    """Split the document path out of a trigger resource name.

    ``projects/p/databases/(default)/documents/live/E1`` gives ``["live", "E1"]``.
    """
    _, sep, path = resource.partition("/documents/")
    if not sep or not path:
        raise ValueError(f"Not a Firestore document resource: {resource}")
    return path.split("/")


def decode_value(value: dict[str, Any]) -> Any:
    """Decode one Firestore REST typed value."""
    if "nullValue" in value:
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return value["booleanValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return DatetimeWithNanoseconds.from_rfc3339(value["timestampValue"])
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "referenceValue" in value:
        return value["referenceValue"]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    if "bytesValue" in value:
        return base64.b64decode(value["bytesValue"])
    raise ValueError(f"Unsupported Firestore value: {sorted(value)}")


def decode_fields(fields: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Decode a document's ``fields`` map into plain Python values."""
    return {name: decode_value(value) for name, value in (fields or {}).items()}


def on_rsvp_accepted(data: dict[str, Any], context: Any) -> None:
    """Runs on create of ``live/{eventId}/attendees/{userId}``."""
    path = document_path(context.resource)
    if len(path) != 4 or path[0] != LIVE_EVENTS or path[2] != ATTENDEES:
        logger.error(f"Unexpected resource for RSVP trigger: {context.resource}")
        return

    event_id, attendee_id = path[1], path[3]
    attendee = decode_fields((data.get("value") or {}).get("fields"))
    handlers.on_rsvp_accepted(_db(), event_id, attendee_id, attendee)


def on_live_event_delete(data: dict[str, Any], context: Any) -> None:
    """Runs on delete of ``live/{eventId}``."""
    path = document_path(context.resource)
    if len(path) != 2 or path[0] != LIVE_EVENTS:
        logger.error(f"Unexpected resource for delete trigger: {context.resource}")
        return

    report = handlers.on_live_event_delete(
        _db(), path[1], batch_size=DELETE_BATCH_SIZE
    )
    if not report.ok:
        logger.error(f"Cascade for event {path[1]} incomplete: {report.failed}")
