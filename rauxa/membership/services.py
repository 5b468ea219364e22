"""Service layer for RSVP membership transitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore

from rauxa.chat.services import ChatService
from rauxa.core.constants import (
    LIVE_EVENTS,
    RSVPED_USERS,
    USER_DECLINED,
    USER_RSVP,
    USERS,
)
from rauxa.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    TransitionAbortedError,
    ValidationError,
)
from rauxa.events.models import Event

from .models import MembershipRequest, MembershipStatus, MembershipTransition

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

_STAMP_FIELDS = {
    MembershipStatus.ACCEPTED: "acceptedAt",
    MembershipStatus.REJECTED: "declinedAt",
}


class MembershipService:
    """Moves users through pending, accepted and rejected for an event."""

    @staticmethod
    def _event_ref(db: Client, event_id: str) -> DocumentReference:
        return db.collection(LIVE_EVENTS).document(event_id)

    @staticmethod
    def _rsvp_ref(db: Client, user_id: str, event_id: str) -> DocumentReference:
        return (
            db.collection(USERS).document(user_id).collection(USER_RSVP).document(event_id)
        )

    @staticmethod
    def _request_in_transaction(
        transaction: Transaction,
        event_ref: DocumentReference,
        rsvp_ref: DocumentReference,
        user_id: str,
    ) -> None:
        """Create the pending request and both RSVP index entries atomically."""
        event_snapshot = event_ref.get(transaction=transaction)
        if not event_snapshot.exists:
            raise NotFoundError("Event not found.")
        event = Event.from_snapshot(event_snapshot)
        if not event.active:
            raise ValidationError("This event is no longer accepting RSVPs.")
        if event.host == user_id:
            raise ValidationError("You cannot RSVP to your own event.")

        member_refs = [
            event_ref.collection(status.collection).document(user_id)
            for status in MembershipStatus
        ]
        for member_ref in member_refs:
            if member_ref.get(transaction=transaction).exists:
                raise DuplicateResourceError("You have already RSVP'd to this event.")

        transaction.set(
            member_refs[0],
            {"userId": user_id, "requestedAt": firestore.SERVER_TIMESTAMP},
        )
        transaction.set(
            event_ref.collection(RSVPED_USERS).document(user_id),
            {"userId": user_id, "rsvpedAt": firestore.SERVER_TIMESTAMP},
        )
        transaction.set(
            rsvp_ref,
            {
                "eventId": event_ref.id,
                "status": MembershipStatus.PENDING.value,
                "rsvpedAt": firestore.SERVER_TIMESTAMP,
            },
        )

    @staticmethod
    def _transition_in_transaction(
        transaction: Transaction,
        event_ref: DocumentReference,
        rsvp_ref: DocumentReference,
        user_id: str,
        acting_user_id: str,
        target: MembershipStatus,
    ) -> dict[str, Any]:
        """Move a pending request into ``target``'s collection.

        Raises TransitionAbortedError, writing nothing, when the pending
        document no longer exists.
        """
        event_snapshot = event_ref.get(transaction=transaction)
        if not event_snapshot.exists:
            raise NotFoundError("Event not found.")
        if (event_snapshot.to_dict() or {}).get("host") != acting_user_id:
            raise PermissionDeniedError("Only the host can answer RSVP requests.")

        pending_ref = event_ref.collection(MembershipStatus.PENDING.collection).document(
            user_id
        )
        pending_snapshot = pending_ref.get(transaction=transaction)
        if not pending_snapshot.exists:
            raise TransitionAbortedError()

        record = dict(pending_snapshot.to_dict() or {})
        record.setdefault("userId", user_id)
        record[_STAMP_FIELDS[target]] = firestore.SERVER_TIMESTAMP

        transaction.set(
            event_ref.collection(target.collection).document(user_id), record
        )
        transaction.delete(pending_ref)
        transaction.set(
            rsvp_ref,
            {
                "eventId": event_ref.id,
                "status": target.value,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
            merge=True,
        )
        return record

    @staticmethod
    def request_to_join(db: Client, event_id: str, user_id: str) -> MembershipRequest:
        """RSVP to an event (swipe right); the request starts out pending."""
        event_ref = MembershipService._event_ref(db, event_id)
        rsvp_ref = MembershipService._rsvp_ref(db, user_id, event_id)

        firestore.transactional(MembershipService._request_in_transaction)(
            db.transaction(), event_ref, rsvp_ref, user_id
        )
        logger.info(f"User {user_id} requested to join event {event_id}.")
        return MembershipRequest(
            event_id=event_id,
            user_id=user_id,
            status=MembershipStatus.PENDING,
            data={"userId": user_id},
        )

    @staticmethod
    def pass_event(db: Client, event_id: str, user_id: str) -> None:
        """Record that the user swiped left on an event."""
        if not MembershipService._event_ref(db, event_id).get().exists:
            raise NotFoundError("Event not found.")
        declined_ref = (
            db.collection(USERS)
            .document(user_id)
            .collection(USER_DECLINED)
            .document(event_id)
        )
        declined_ref.set(
            {"eventId": event_id, "declinedAt": firestore.SERVER_TIMESTAMP}
        )

    @staticmethod
    def _transition(
        db: Client,
        event_id: str,
        user_id: str,
        acting_user_id: str,
        target: MembershipStatus,
    ) -> None:
        event_ref = MembershipService._event_ref(db, event_id)
        rsvp_ref = MembershipService._rsvp_ref(db, user_id, event_id)
        try:
            firestore.transactional(MembershipService._transition_in_transaction)(
                db.transaction(),
                event_ref,
                rsvp_ref,
                user_id,
                acting_user_id,
                target,
            )
        except TransitionAbortedError:
            logger.warning(
                f"Request of {user_id} for event {event_id} was no longer pending; "
                f"{target.value} aborted."
            )
            raise
        logger.info(f"User {user_id} {target.value} for event {event_id}.")

    @staticmethod
    def accept(
        db: Client, event_id: str, user_id: str, acting_user_id: str
    ) -> MembershipTransition:
        """Accept a pending request and add the user to the event chat."""
        MembershipService._transition(
            db, event_id, user_id, acting_user_id, MembershipStatus.ACCEPTED
        )

        chat_joined = False
        try:
            chat_joined = ChatService.join_event_chat(db, event_id, user_id)
        except Exception as e:
            # The attendee document stays; sync_participants repairs the chat.
            logger.error(f"Error adding {user_id} to chat {event_id}: {e}")

        return MembershipTransition(
            event_id=event_id,
            user_id=user_id,
            status=MembershipStatus.ACCEPTED,
            chat_joined=chat_joined,
        )

    @staticmethod
    def decline(
        db: Client, event_id: str, user_id: str, acting_user_id: str
    ) -> MembershipTransition:
        """Decline a pending request."""
        MembershipService._transition(
            db, event_id, user_id, acting_user_id, MembershipStatus.REJECTED
        )
        return MembershipTransition(
            event_id=event_id, user_id=user_id, status=MembershipStatus.REJECTED
        )

    @staticmethod
    def get_status(
        db: Client, event_id: str, user_id: str
    ) -> Optional[MembershipStatus]:
        """The user's current state for an event, if any."""
        event_ref = MembershipService._event_ref(db, event_id)
        for status in MembershipStatus:
            if event_ref.collection(status.collection).document(user_id).get().exists:
                return status
        return None

    @staticmethod
    def list_members(
        db: Client, event_id: str
    ) -> dict[MembershipStatus, list[MembershipRequest]]:
        """Fetch every membership document of an event, grouped by state."""
        event_ref = MembershipService._event_ref(db, event_id)
        members: dict[MembershipStatus, list[MembershipRequest]] = {}
        for status in MembershipStatus:
            members[status] = [
                MembershipRequest.from_snapshot(event_id, status, snapshot)
                for snapshot in event_ref.collection(status.collection).stream()
                if snapshot.exists
            ]
        return members
