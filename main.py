"""Cloud Functions source entrypoint."""

from rauxa.triggers.entrypoints import on_live_event_delete, on_rsvp_accepted

__all__ = ["on_live_event_delete", "on_rsvp_accepted"]
