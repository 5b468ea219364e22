"""One-shot hub view: the user's RSVPs and the events they host."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from rauxa.core.constants import USER_RSVP, USERS
from rauxa.errors import NotFoundError
from rauxa.events.services import EventService
from rauxa.membership.models import MembershipRequest, MembershipStatus
from rauxa.membership.services import MembershipService
from rauxa.profiles.services import ProfileCache

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


def member_entry(member: MembershipRequest, profiles: ProfileCache) -> dict[str, Any]:
    """A membership record joined with the member's profile."""
    return {**member.to_dict(), "profile": profiles.get(member.user_id).to_dict()}


class HubService:
    """Builds the hub screen data in a single pass."""

    @staticmethod
    def get_rsvps(db: Client, user_id: str) -> list[dict[str, Any]]:
        """Events the user RSVP'd to, skipping ones that no longer exist."""
        rsvps = []
        pointers = db.collection(USERS).document(user_id).collection(USER_RSVP).stream()
        for pointer in pointers:
            if not pointer.exists:
                continue
            try:
                event = EventService.get_event(db, pointer.id)
            except NotFoundError:
                logger.warning(f"RSVP'd event {pointer.id} no longer exists, skipping.")
                continue

            status = MembershipService.get_status(db, event.id, user_id)
            rsvps.append(
                {
                    **event.to_dict(),
                    "status": status.value if status else None,
                    "rsvpStatus": (pointer.to_dict() or {}).get("status"),
                    "isAccepted": status is MembershipStatus.ACCEPTED,
                }
            )
        return rsvps

    @staticmethod
    def get_hosted(
        db: Client, user_id: str, profiles: Optional[ProfileCache] = None
    ) -> list[dict[str, Any]]:
        """Hosted events with their members grouped by state."""
        profiles = profiles if profiles is not None else ProfileCache(db)
        hosted = []
        for event in EventService.list_hosted_events(db, user_id):
            members = MembershipService.list_members(db, event.id)
            hosted.append(
                {
                    **event.to_dict(),
                    "members": {
                        status.value: [
                            member_entry(member, profiles) for member in requests
                        ]
                        for status, requests in members.items()
                    },
                }
            )
        return hosted

    @staticmethod
    def get_hub(db: Client, user_id: str) -> dict[str, Any]:
        profiles = ProfileCache(db)
        return {
            "rsvps": HubService.get_rsvps(db, user_id),
            "hosted": HubService.get_hosted(db, user_id, profiles),
        }
