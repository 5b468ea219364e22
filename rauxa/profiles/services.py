"""Service layer for profile lookups."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable, Optional

from rauxa.core.constants import (
    PROFILE_INFO,
    PROFILE_INFO_DOC,
    SYSTEM_SENDER_ID,
    USERS,
)

from .models import Profile

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


class ProfileService:
    """Reads user profiles from Firestore."""

    @staticmethod
    def get_profile(db: Client, user_id: str) -> Profile:
        """Fetch a user's profile, or a placeholder if they have none."""
        if user_id == SYSTEM_SENDER_ID:
            return Profile.system()

        profile_ref = (
            db.collection(USERS)
            .document(user_id)
            .collection(PROFILE_INFO)
            .document(PROFILE_INFO_DOC)
        )
        profile_doc = profile_ref.get()
        data = profile_doc.to_dict() if profile_doc.exists else None
        return Profile.from_data(user_id, data)


class ProfileCache:
    """Memoizes profile lookups by user id.

    Entries are never invalidated, so a profile edited after the first lookup
    stays stale for the lifetime of the cache.
    """

    def __init__(
        self,
        db: Client,
        loader: Optional[Callable[[Client, str], Profile]] = None,
    ) -> None:
        self._db = db
        self._loader = loader or ProfileService.get_profile
        self._profiles: dict[str, Profile] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Profile:
        with self._lock:
            cached = self._profiles.get(user_id)
        if cached is not None:
            return cached

        profile = self._loader(self._db, user_id)
        with self._lock:
            # Another thread may have won the race; keep the first entry.
            return self._profiles.setdefault(user_id, profile)

    def __contains__(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._profiles

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)
