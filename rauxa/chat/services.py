"""Service layer for event group chats."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore

from rauxa.core.constants import (
    ATTENDEES,
    CHATS,
    EVENT_CHAT_TYPE,
    LIVE_EVENTS,
    MESSAGES,
    MESSAGES_PER_LOAD,
    NEW_FLAGS,
    SYSTEM_SENDER_ID,
)
from rauxa.errors import NotFoundError, PermissionDeniedError, ValidationError
from rauxa.profiles.models import Profile
from rauxa.profiles.services import ProfileService

from .models import Chat, Message

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

_OLDEST = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


def _system_message(text: str) -> dict[str, Any]:
    return {
        "senderId": SYSTEM_SENDER_ID,
        "text": text,
        "timestamp": firestore.SERVER_TIMESTAMP,
        "type": "system",
    }


def _new_flag() -> dict[str, Any]:
    return {"new": True, "updatedAt": firestore.SERVER_TIMESTAMP}


class ChatService:
    """Creates, joins and reads event group chats."""

    @staticmethod
    def _join_in_transaction(  # noqa: PLR0913
        transaction: Transaction,
        chat_ref: DocumentReference,
        event_id: str,
        event_name: str,
        host_id: str,
        user_id: str,
        display_name: str,
    ) -> str:
        """Create the chat or append ``user_id`` to it.

        Returns "created", "joined" or "unchanged".
        """
        # Read before touching subcollection references.
        chat_snapshot = chat_ref.get(transaction=transaction)
        messages_ref = chat_ref.collection(MESSAGES)
        flags_ref = chat_ref.collection(NEW_FLAGS)

        if chat_snapshot.exists:
            participants = list((chat_snapshot.to_dict() or {}).get("participants") or [])
            if user_id in participants:
                return "unchanged"

            participants.append(user_id)
            transaction.update(chat_ref, {"participants": participants})
            transaction.set(
                messages_ref.document(),
                _system_message(f"{display_name} joined the chat."),
            )
            transaction.set(flags_ref.document(user_id), _new_flag())
            return "joined"

        participants = [host_id] if user_id == host_id else [host_id, user_id]
        transaction.set(
            chat_ref,
            {
                "eventId": event_id,
                "name": event_name,
                "hostId": host_id,
                "type": EVENT_CHAT_TYPE,
                "participants": participants,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "lastMessage": {
                    "text": f"Welcome to the {event_name} chat!",
                    "senderId": SYSTEM_SENDER_ID,
                    "timestamp": firestore.SERVER_TIMESTAMP,
                },
                "lastMessageTimestamp": firestore.SERVER_TIMESTAMP,
            },
        )
        transaction.set(
            messages_ref.document(),
            _system_message(
                f"Welcome to {event_name} chat! Only accepted attendees "
                "and host can see this chat."
            ),
        )
        for participant_id in participants:
            transaction.set(flags_ref.document(participant_id), _new_flag())
        return "created"

    @staticmethod
    def join_event_chat(db: Client, event_id: str, user_id: str) -> bool:
        """Make ``user_id`` a participant of the event's chat.

        Returns True when the user is in the chat afterwards, False when the
        event or its host could not be found.
        """
        event_snapshot = db.collection(LIVE_EVENTS).document(event_id).get()
        if not event_snapshot.exists:
            logger.warning(f"Event {event_id} not found for accepted RSVP.")
            return False

        event_data = event_snapshot.to_dict() or {}
        host_id = event_data.get("host")
        if not host_id:
            logger.error(f"Host ID not found for event {event_id}")
            return False
        event_name = event_data.get("title") or event_data.get("name") or f"Event {event_id}"
        display_name = ProfileService.get_profile(db, user_id).display_name

        chat_ref = db.collection(CHATS).document(event_id)
        outcome = firestore.transactional(ChatService._join_in_transaction)(
            db.transaction(),
            chat_ref,
            event_id,
            event_name,
            host_id,
            user_id,
            display_name,
        )
        if outcome == "created":
            logger.info(f"Created chat {event_id} for {event_name}.")
        elif outcome == "joined":
            logger.info(f"Added {user_id} to chat {event_id}.")
        else:
            logger.info(f"{user_id} already in chat {event_id}. No action needed.")
        return True

    @staticmethod
    def sync_participants(db: Client, event_id: str) -> list[str]:
        """Join every accepted attendee who is missing from the chat.

        Repairs chats left behind when a join failed after the attendee
        document was written. Returns the ids that were added.
        """
        attendee_ids = [
            doc.id
            for doc in db.collection(LIVE_EVENTS)
            .document(event_id)
            .collection(ATTENDEES)
            .stream()
            if doc.exists
        ]
        chat_snapshot = db.collection(CHATS).document(event_id).get()
        participants = set()
        if chat_snapshot.exists:
            participants = set((chat_snapshot.to_dict() or {}).get("participants") or [])

        added = []
        for attendee_id in attendee_ids:
            if attendee_id in participants:
                continue
            if ChatService.join_event_chat(db, event_id, attendee_id):
                added.append(attendee_id)
        if added:
            logger.info(f"Synced {len(added)} missing participants into chat {event_id}.")
        return added

    @staticmethod
    def get_chat(db: Client, chat_id: str) -> Chat:
        """Fetch a chat or raise NotFoundError."""
        snapshot = db.collection(CHATS).document(chat_id).get()
        if not snapshot.exists:
            raise NotFoundError("Chat not found.")
        return Chat.from_snapshot(snapshot)

    @staticmethod
    def _get_chat_for(db: Client, chat_id: str, user_id: str) -> Chat:
        chat = ChatService.get_chat(db, chat_id)
        if user_id not in chat.participants:
            raise PermissionDeniedError("You are not a participant of this chat.")
        return chat

    @staticmethod
    def send_message(db: Client, chat_id: str, sender_id: str, text: str) -> Message:
        """Post a user message and flag the chat as new for everyone else."""
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Message text is required.")

        chat = ChatService._get_chat_for(db, chat_id, sender_id)
        chat_ref = db.collection(CHATS).document(chat_id)
        message_ref = chat_ref.collection(MESSAGES).document()
        flags_ref = chat_ref.collection(NEW_FLAGS)

        batch = db.batch()
        batch.set(
            message_ref,
            {
                "senderId": sender_id,
                "text": text,
                "timestamp": firestore.SERVER_TIMESTAMP,
                "type": "user",
            },
        )
        batch.update(
            chat_ref,
            {
                "lastMessage": {
                    "text": text,
                    "senderId": sender_id,
                    "timestamp": firestore.SERVER_TIMESTAMP,
                },
                "lastMessageTimestamp": firestore.SERVER_TIMESTAMP,
            },
        )
        for participant_id in chat.participants:
            if participant_id != sender_id:
                batch.set(flags_ref.document(participant_id), _new_flag())
        batch.commit()

        return Message(id=message_ref.id, sender_id=sender_id, text=text)

    @staticmethod
    def get_messages(
        db: Client,
        chat_id: str,
        user_id: str,
        limit: int = MESSAGES_PER_LOAD,
        after: Optional[str] = None,
    ) -> tuple[list[Message], bool]:
        """Fetch a page of messages, oldest first.

        ``after`` is the id of the last message of the previous page. Returns
        the messages and whether another page may follow.
        """
        ChatService._get_chat_for(db, chat_id, user_id)
        messages_ref = db.collection(CHATS).document(chat_id).collection(MESSAGES)

        query = messages_ref.order_by("timestamp").limit(limit)
        if after:
            cursor = messages_ref.document(after).get()
            if not cursor.exists:
                raise ValidationError("Unknown message cursor.")
            query = query.start_after(cursor)

        messages = []
        for snapshot in query.stream():
            try:
                messages.append(Message.from_snapshot(snapshot))
            except ValidationError as e:
                logger.warning(f"Skipping malformed message in {chat_id}: {e.message}")
        return messages, len(messages) >= limit

    @staticmethod
    def mark_seen(db: Client, chat_id: str, user_id: str) -> None:
        """Clear the user's new-activity flag for a chat."""
        ChatService._get_chat_for(db, chat_id, user_id)
        flag_ref = (
            db.collection(CHATS).document(chat_id).collection(NEW_FLAGS).document(user_id)
        )
        flag_ref.set({"new": False, "updatedAt": firestore.SERVER_TIMESTAMP})

    @staticmethod
    def _has_unread(db: Client, chat_id: str, user_id: str) -> bool:
        flag = (
            db.collection(CHATS)
            .document(chat_id)
            .collection(NEW_FLAGS)
            .document(user_id)
            .get()
        )
        return bool(flag.exists and (flag.to_dict() or {}).get("new"))

    @staticmethod
    def list_user_chats(db: Client, user_id: str) -> list[dict[str, Any]]:
        """Chats the user takes part in, most recent activity first."""
        query = db.collection(CHATS).where(
            filter=firestore.FieldFilter("participants", "array_contains", user_id)
        )
        chats = []
        for snapshot in query.stream():
            try:
                chats.append(Chat.from_snapshot(snapshot))
            except ValidationError as e:
                logger.warning(f"Skipping malformed chat {snapshot.id}: {e.message}")

        chats.sort(
            key=lambda chat: chat.last_message_timestamp
            if isinstance(chat.last_message_timestamp, datetime.datetime)
            else _OLDEST,
            reverse=True,
        )
        results = []
        for chat in chats:
            data = chat.to_dict()
            data["hasUnread"] = ChatService._has_unread(db, chat.id, user_id)
            results.append(data)
        return results

    @staticmethod
    def get_chat_details(db: Client, chat_id: str, user_id: str) -> dict[str, Any]:
        """Chat header data: the chat, its event and participant profiles."""
        chat = ChatService._get_chat_for(db, chat_id, user_id)

        profiles = {SYSTEM_SENDER_ID: Profile.system().to_dict()}
        for participant_id in chat.participants:
            if participant_id not in profiles:
                profiles[participant_id] = ProfileService.get_profile(
                    db, participant_id
                ).to_dict()

        event: dict[str, Any] | None = None
        header_name = chat.name or "Direct Chat"
        header_image = None
        if chat.event_id:
            event_snapshot = db.collection(LIVE_EVENTS).document(chat.event_id).get()
            if event_snapshot.exists:
                event = {"id": event_snapshot.id, **(event_snapshot.to_dict() or {})}
                header_name = event.get("title") or f"Event {chat.event_id[:4]}..."
                photos = event.get("photos") or []
                header_image = photos[0] if photos else None
            else:
                logger.warning(f"Event {chat.event_id} not found for chat {chat_id}.")
                header_name = "Event Not Found"

        return {
            "chat": chat.to_dict(),
            "event": event,
            "headerName": header_name,
            "headerImage": header_image,
            "participants": profiles,
        }
