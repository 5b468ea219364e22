"""Data models for the chat blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from rauxa.core.constants import EVENT_CHAT_TYPE
from rauxa.core.records import optional, require
from rauxa.core.types import FirestoreDocument


class ChatDocument(FirestoreDocument, total=False):
    """A ``chats/{chatId}`` document as returned by the API."""

    eventId: Optional[str]
    name: str
    hostId: Optional[str]
    type: str
    participants: list[str]
    lastMessage: Optional[dict[str, Any]]
    lastMessageTimestamp: Any
    hasUnread: bool


@dataclass
class Chat:
    """An event group chat."""

    id: str
    participants: list[str]
    event_id: Optional[str] = None
    name: str = ""
    host_id: Optional[str] = None
    type: str = EVENT_CHAT_TYPE
    last_message: Optional[dict[str, Any]] = None
    last_message_timestamp: Any = None
    created_at: Any = None

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> Chat:
        """Decode and validate a ``chats/{chatId}`` snapshot."""
        data = snapshot.to_dict() or {}
        source = f"Chat {snapshot.id}"
        return cls(
            id=snapshot.id,
            participants=list(require(data, "participants", list, source)),
            event_id=optional(data, "eventId", str, source),
            name=optional(data, "name", str, source, ""),
            host_id=optional(data, "hostId", str, source),
            type=optional(data, "type", str, source, EVENT_CHAT_TYPE),
            last_message=optional(data, "lastMessage", dict, source),
            last_message_timestamp=data.get("lastMessageTimestamp"),
            created_at=data.get("createdAt"),
        )

    def to_dict(self) -> ChatDocument:
        return ChatDocument(
            id=self.id,
            eventId=self.event_id,
            name=self.name,
            hostId=self.host_id,
            type=self.type,
            participants=self.participants,
            lastMessage=self.last_message,
            lastMessageTimestamp=self.last_message_timestamp,
        )


@dataclass
class Message:
    """A message in ``chats/{chatId}/messages``."""

    id: str
    sender_id: str
    text: str
    timestamp: Any = None
    type: str = "user"

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> Message:
        data = snapshot.to_dict() or {}
        source = f"Message {snapshot.id}"
        return cls(
            id=snapshot.id,
            sender_id=require(data, "senderId", str, source),
            text=require(data, "text", str, source),
            timestamp=data.get("timestamp"),
            type=optional(data, "type", str, source, "user"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "senderId": self.sender_id,
            "text": self.text,
            "timestamp": self.timestamp,
            "type": self.type,
        }
