"""Firestore background triggers and the cleanup they perform."""

from .handlers import (
    CascadeReport,
    delete_collection,
    on_live_event_delete,
    on_rsvp_accepted,
)

__all__ = [
    "CascadeReport",
    "delete_collection",
    "on_live_event_delete",
    "on_rsvp_accepted",
]
