"""Data models for user profiles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from rauxa.core.constants import SYSTEM_DISPLAY_NAME, SYSTEM_SENDER_ID


def fallback_display_name(user_id: str) -> str:
    """Placeholder name for users without a profile."""
    return f"User {user_id[:4]}..."


@dataclass(frozen=True)
class Profile:
    """The public part of ``users/{uid}/ProfileInfo/userinfo``."""

    id: str
    display_name: str
    first_name: str = ""
    last_name: str = ""
    profile_image: Optional[str] = None

    @classmethod
    def from_data(cls, user_id: str, data: dict[str, Any] | None) -> Profile:
        """Decode profile data, falling back to a placeholder when absent."""
        if not data:
            return cls(
                id=user_id,
                display_name=fallback_display_name(user_id),
                first_name="User",
                last_name=f"{user_id[:4]}...",
            )

        first_name = data.get("displayFirstName") or ""
        full_name = data.get("name") or ""
        name_parts = full_name.split(" ")
        images = data.get("profileImages") or []

        return cls(
            id=user_id,
            display_name=first_name or full_name or "Unknown User",
            first_name=first_name,
            last_name=name_parts[1] if len(name_parts) > 1 else "",
            profile_image=images[0] if images else None,
        )

    @classmethod
    def system(cls) -> Profile:
        """Profile shown for system messages."""
        return cls(
            id=SYSTEM_SENDER_ID,
            display_name=SYSTEM_DISPLAY_NAME,
            first_name="Rauxa",
            last_name="Admin",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "profileImage": self.profile_image,
        }
