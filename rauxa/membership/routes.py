"""Routes for the membership blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from rauxa.auth.decorators import login_required
from rauxa.errors import PermissionDeniedError
from rauxa.events.services import EventService

from . import bp
from .services import MembershipService


@bp.route("/<string:event_id>/rsvp", methods=["POST"])
@login_required
def rsvp(event_id: str) -> Any:
    """Swipe right: ask the host to join."""
    request_ = MembershipService.request_to_join(
        firestore.client(), event_id, g.user["uid"]
    )
    return jsonify({"request": request_.to_dict()}), 201


@bp.route("/<string:event_id>/pass", methods=["POST"])
@login_required
def pass_event(event_id: str) -> Any:
    """Swipe left: hide the event from the caller's feed."""
    MembershipService.pass_event(firestore.client(), event_id, g.user["uid"])
    return jsonify({"passed": event_id})


@bp.route("/<string:event_id>/members", methods=["GET"])
@login_required
def list_members(event_id: str) -> Any:
    """Pending, accepted and rejected users of an event. Host only."""
    db = firestore.client()
    event = EventService.get_event(db, event_id)
    if event.host != g.user["uid"]:
        raise PermissionDeniedError("Only the host can view the members.")

    members = MembershipService.list_members(db, event_id)
    return jsonify(
        {
            status.value: [member.to_dict() for member in requests]
            for status, requests in members.items()
        }
    )


@bp.route("/<string:event_id>/members/<string:user_id>/accept", methods=["POST"])
@login_required
def accept(event_id: str, user_id: str) -> Any:
    """Accept a pending request."""
    transition = MembershipService.accept(
        firestore.client(), event_id, user_id, g.user["uid"]
    )
    if not transition.chat_joined:
        current_app.logger.warning(
            f"{user_id} accepted to {event_id} but not yet in its chat."
        )
    return jsonify(transition.to_dict())


@bp.route("/<string:event_id>/members/<string:user_id>/decline", methods=["POST"])
@login_required
def decline(event_id: str, user_id: str) -> Any:
    """Decline a pending request."""
    transition = MembershipService.decline(
        firestore.client(), event_id, user_id, g.user["uid"]
    )
    return jsonify(transition.to_dict())
