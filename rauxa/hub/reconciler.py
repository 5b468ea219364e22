"""Live hub view built from Firestore real-time listeners.

Two top-level watches decide which events are tracked: events the user hosts
and events in the user's RSVP index. Each tracked event owns one watch per
membership state. Whenever the tracked set changes the per-event watches are
diffed, so stale ones are released straight away and new ones attached.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from firebase_admin import firestore

from rauxa.core.constants import LIVE_EVENTS, USER_RSVP, USERS
from rauxa.membership.models import MembershipRequest, MembershipStatus
from rauxa.profiles.services import ProfileCache

from .services import member_entry

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

HubView = dict[str, dict[str, list[dict[str, Any]]]]
SnapshotCallback = Callable[[list[Any], list[Any], Any], None]
Watch = Callable[[Any, SnapshotCallback], Any]


def default_watch(target: Any, callback: SnapshotCallback) -> Any:
    """Attach a Firestore listener; the returned handle has ``unsubscribe()``."""
    return target.on_snapshot(callback)


def _release(handle: Any, label: str) -> None:
    try:
        handle.unsubscribe()
    except Exception as e:
        logger.error(f"Error releasing watch {label}: {e}")


class EventSubscription:
    """The membership watches of one event."""

    def __init__(self, event_id: str, handles: list[Any]) -> None:
        self.event_id = event_id
        self._handles = list(handles)
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        with self._lock:
            return not self._handles

    def close(self) -> None:
        """Release every watch once; later calls are no-ops."""
        with self._lock:
            handles, self._handles = self._handles, []
        for handle in handles:
            _release(handle, self.event_id)


class SubscriptionSet:
    """Subscriptions keyed by event id, diffed against a desired set."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, EventSubscription] = {}
        self._lock = threading.RLock()
        self._closed = False

    def sync(
        self,
        desired_ids: Iterable[str],
        factory: Callable[[str], EventSubscription],
    ) -> tuple[set[str], set[str]]:
        """Attach missing keys and release stale ones.

        Diff, release and attach happen under one lock, so concurrent calls
        never attach the same key twice. After ``close()`` nothing is attached.
        Returns the ids added and the ids removed.
        """
        desired = set(desired_ids)
        with self._lock:
            if self._closed:
                return set(), set()
            current = set(self._subscriptions)
            stale = {key: self._subscriptions.pop(key) for key in current - desired}
            for subscription in stale.values():
                subscription.close()

            added = desired - current
            for key in added:
                self._subscriptions[key] = factory(key)
        return added, set(stale)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            subscriptions, self._subscriptions = self._subscriptions, {}
            for subscription in subscriptions.values():
                subscription.close()

    def keys(self) -> set[str]:
        with self._lock:
            return set(self._subscriptions)

    def __contains__(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._subscriptions

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)


class MembershipReconciler:
    """Keeps ``{eventId: {pending, accepted, rejected}}`` current for a user.

    Usage::

        with MembershipReconciler(db, uid, on_change=print) as reconciler:
            ...
            reconciler.view()
    """

    def __init__(
        self,
        db: Client,
        user_id: str,
        profiles: Optional[ProfileCache] = None,
        on_change: Optional[Callable[[HubView], None]] = None,
        watch: Optional[Watch] = None,
    ) -> None:
        self.db = db
        self.user_id = user_id
        self.profiles = profiles if profiles is not None else ProfileCache(db)
        self.on_change = on_change
        self._watch = watch or default_watch

        # Guards the view state; held briefly.
        self._lock = threading.Lock()
        # Serialises start, close and every reconcile pass.
        self._reconcile_lock = threading.RLock()
        self._subscriptions = SubscriptionSet()
        self._top_level: list[Any] = []
        self._hosted_ids: set[str] = set()
        self._rsvp_ids: set[str] = set()
        self._state: dict[str, dict[MembershipStatus, dict[str, dict[str, Any]]]] = {}
        self._started = False
        self._closed = False

    def __enter__(self) -> MembershipReconciler:
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def start(self) -> MembershipReconciler:
        """Attach the two top-level watches."""
        with self._reconcile_lock:
            if self._started or self._closed:
                return self
            self._started = True

            hosted_query = self.db.collection(LIVE_EVENTS).where(
                filter=firestore.FieldFilter("host", "==", self.user_id)
            )
            rsvp_ref = (
                self.db.collection(USERS).document(self.user_id).collection(USER_RSVP)
            )
            self._top_level = [
                self._watch(hosted_query, self._on_hosted_snapshot),
                self._watch(rsvp_ref, self._on_rsvp_snapshot),
            ]
        logger.info(f"Hub reconciler started for {self.user_id}.")
        return self

    def close(self) -> None:
        """Release every watch exactly once."""
        with self._reconcile_lock:
            self._closed = True
            handles, self._top_level = self._top_level, []
            for handle in handles:
                _release(handle, self.user_id)
            self._subscriptions.close()
            with self._lock:
                self._state.clear()

    def view(self) -> HubView:
        """Snapshot of the current membership lists."""
        with self._lock:
            return {
                event_id: {
                    status.value: list(members.values())
                    for status, members in statuses.items()
                }
                for event_id, statuses in self._state.items()
            }

    @property
    def watched_events(self) -> set[str]:
        return self._subscriptions.keys()

    def _on_hosted_snapshot(self, docs: list[Any], changes: list[Any], read_time: Any) -> None:
        ids = {doc.id for doc in docs if doc.exists}
        with self._reconcile_lock:
            self._hosted_ids = ids
            self._reconcile()

    def _on_rsvp_snapshot(self, docs: list[Any], changes: list[Any], read_time: Any) -> None:
        ids = {doc.id for doc in docs if doc.exists}
        with self._reconcile_lock:
            self._rsvp_ids = ids
            self._reconcile()

    def _reconcile(self) -> None:
        with self._reconcile_lock:
            if self._closed:
                return
            desired = self._hosted_ids | self._rsvp_ids
            added, removed = self._subscriptions.sync(desired, self._subscribe)
            if removed:
                with self._lock:
                    for event_id in removed:
                        self._state.pop(event_id, None)
                logger.info(f"Released watches for {sorted(removed)}.")
            if added:
                logger.info(f"Attached watches for {sorted(added)}.")
            if removed:
                self._notify()

    def _subscribe(self, event_id: str) -> EventSubscription:
        statuses: dict[MembershipStatus, dict[str, dict[str, Any]]] = {
            status: {} for status in MembershipStatus
        }
        with self._lock:
            self._state[event_id] = statuses

        event_ref = self.db.collection(LIVE_EVENTS).document(event_id)
        handles = [
            self._watch(
                event_ref.collection(status.collection),
                self._member_callback(event_id, status, statuses),
            )
            for status in MembershipStatus
        ]
        return EventSubscription(event_id, handles)

    def _member_callback(
        self,
        event_id: str,
        status: MembershipStatus,
        statuses: dict[MembershipStatus, dict[str, dict[str, Any]]],
    ) -> SnapshotCallback:
        def callback(docs: list[Any], changes: list[Any], read_time: Any) -> None:
            self._apply_changes(event_id, status, statuses, changes)

        return callback

    def _apply_changes(
        self,
        event_id: str,
        status: MembershipStatus,
        statuses: dict[MembershipStatus, dict[str, dict[str, Any]]],
        changes: list[Any],
    ) -> None:
        """Patch one event's list for ``status`` from listener changes.

        ``statuses`` is the state owned by the subscription that delivered the
        changes; once that subscription is released the changes are dropped,
        even if the event has been attached again since.
        """
        patches: dict[str, Optional[dict[str, Any]]] = {}
        for change in changes:
            snapshot = change.document
            kind = change.type.name
            if kind == "REMOVED":
                patches[snapshot.id] = None
            elif kind in ("ADDED", "MODIFIED"):
                member = MembershipRequest.from_snapshot(event_id, status, snapshot)
                patches[snapshot.id] = member_entry(member, self.profiles)
            else:
                logger.warning(f"Ignoring unknown change type {kind}.")

        with self._lock:
            if self._state.get(event_id) is not statuses:
                return
            members = statuses[status]
            for user_id, entry in patches.items():
                if entry is None:
                    members.pop(user_id, None)
                else:
                    members[user_id] = entry
        self._notify()

    def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self.view())
        except Exception as e:
            logger.error(f"Hub change callback failed: {e}")
