"""Data models for the events blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional

from rauxa.core.constants import MAX_EVENT_PHOTOS
from rauxa.core.records import optional, require
from rauxa.core.types import FirestoreDocument
from rauxa.errors import ValidationError

EDITABLE_FIELDS = (
    "title",
    "location",
    "date",
    "groupSize",
    "description",
    "tags",
    "photos",
    "active",
)


class EventDocument(FirestoreDocument, total=False):
    """A ``live/{eventId}`` document as returned by the API."""

    title: str
    location: str
    date: Any
    groupSize: Optional[int]
    description: str
    tags: list[str]
    photos: list[str]
    host: str
    active: bool


@dataclass
class Event:
    """A live event hosted by a user."""

    id: str
    title: str
    host: str
    location: str = ""
    date: Any = None
    group_size: Optional[int] = None
    description: str = ""
    tags: list[str] = field(default_factory=list)
    photos: list[str] = field(default_factory=list)
    active: bool = True
    created_at: Any = None

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> Event:
        """Decode and validate a ``live/{eventId}`` snapshot."""
        data = snapshot.to_dict() or {}
        source = f"Event {snapshot.id}"
        return cls(
            id=snapshot.id,
            title=require(data, "title", str, source),
            host=require(data, "host", str, source),
            location=optional(data, "location", str, source, ""),
            date=data.get("date"),
            group_size=optional(data, "groupSize", int, source),
            description=optional(data, "description", str, source, ""),
            tags=list(optional(data, "tags", list, source, [])),
            photos=list(optional(data, "photos", list, source, [])),
            active=optional(data, "active", bool, source, True),
            created_at=data.get("createdAt"),
        )

    def to_dict(self) -> EventDocument:
        return EventDocument(
            id=self.id,
            title=self.title,
            location=self.location,
            date=self.date,
            groupSize=self.group_size,
            description=self.description,
            tags=self.tags,
            photos=self.photos,
            host=self.host,
            active=self.active,
        )


@dataclass
class EventSubmission:
    """Dataclass for event creation and edit submissions."""

    title: str
    location: str
    date: Optional[datetime.datetime]
    group_size: Optional[int] = None
    description: str = ""
    tags: list[str] = field(default_factory=list)
    photos: list[str] = field(default_factory=list)

    def validate(self) -> None:
        """Raise ValidationError if the submission is incomplete."""
        if not self.title or not self.title.strip():
            raise ValidationError("Title is required.")
        if not self.location or not self.location.strip():
            raise ValidationError("Location is required.")
        if self.date is None:
            raise ValidationError("Date is required.")
        if self.group_size is not None and self.group_size < 1:
            raise ValidationError("Group size must be at least 1.")
        if len(self.photos) > MAX_EVENT_PHOTOS:
            raise ValidationError(
                f"An event can have at most {MAX_EVENT_PHOTOS} photos."
            )

    def to_firestore(self) -> dict[str, Any]:
        return {
            "title": self.title.strip(),
            "location": self.location.strip(),
            "date": self.date,
            "groupSize": self.group_size,
            "description": self.description,
            "tags": list(self.tags),
            "photos": list(self.photos),
        }
