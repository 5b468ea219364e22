"""Data models for the membership blueprint."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from rauxa.core.constants import ATTENDEES, DECLINED, PENDING
from rauxa.core.records import optional


class MembershipStatus(str, enum.Enum):
    """Where a user stands with an event they RSVP'd to."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def collection(self) -> str:
        """The ``live/{eventId}`` subcollection holding this state."""
        return _COLLECTIONS[self]

    @classmethod
    def from_collection(cls, name: str) -> MembershipStatus:
        for status, collection in _COLLECTIONS.items():
            if collection == name:
                return status
        raise ValueError(f"Not a membership collection: {name}")


_COLLECTIONS = {
    MembershipStatus.PENDING: PENDING,
    MembershipStatus.ACCEPTED: ATTENDEES,
    MembershipStatus.REJECTED: DECLINED,
}


@dataclass
class MembershipRequest:
    """A user's membership document under one of the event subcollections."""

    event_id: str
    user_id: str
    status: MembershipStatus
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_snapshot(
        cls, event_id: str, status: MembershipStatus, snapshot: Any
    ) -> MembershipRequest:
        """Decode a membership snapshot; the document id is the user id."""
        data = snapshot.to_dict() or {}
        source = f"Membership {event_id}/{status.collection}/{snapshot.id}"
        user_id = optional(data, "userId", str, source, snapshot.id)
        return cls(event_id=event_id, user_id=user_id, status=status, data=data)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.data,
            "id": self.user_id,
            "userId": self.user_id,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class MembershipTransition:
    """Outcome of an accept or decline."""

    event_id: str
    user_id: str
    status: MembershipStatus
    chat_joined: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventId": self.event_id,
            "userId": self.user_id,
            "status": self.status.value,
            "chatJoined": self.chat_joined,
        }
