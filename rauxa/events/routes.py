"""Routes for the events blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from rauxa.auth.decorators import login_required
from rauxa.errors import ValidationError

from . import bp
from .forms import EventForm
from .models import EventSubmission
from .services import EventService


@bp.route("/feed", methods=["GET"])
@login_required
def swipe_feed() -> Any:
    """Events the user can still swipe on."""
    limit = request.args.get(
        "limit", default=current_app.config["RAUXA_FEED_LIMIT"], type=int
    )
    db = firestore.client()
    events = EventService.get_swipe_feed(db, g.user["uid"], limit=limit)
    return jsonify({"events": [event.to_dict() for event in events]})


@bp.route("/", methods=["POST"])
@login_required
def create_event() -> Any:
    """Create a live event hosted by the caller."""
    form = EventForm()
    if not form.validate():
        raise ValidationError(form.first_error())

    submission = EventSubmission(
        title=form.title.data,
        location=form.location.data,
        date=form.date.data,
        group_size=form.groupSize.data,
        description=form.description.data or "",
        tags=form.tags.data,
        photos=form.photos.data,
    )
    db = firestore.client()
    event = EventService.create_event(db, submission, g.user["uid"])
    return jsonify({"event": event.to_dict()}), 201


@bp.route("/hosted", methods=["GET"])
@login_required
def hosted_events() -> Any:
    """Events hosted by the caller."""
    db = firestore.client()
    events = EventService.list_hosted_events(db, g.user["uid"])
    return jsonify({"events": [event.to_dict() for event in events]})


@bp.route("/tags", methods=["GET"])
@login_required
def tags() -> Any:
    """Tags offered when creating an event."""
    return jsonify({"tags": EventService.get_tags(firestore.client())})


@bp.route("/meetups", methods=["GET"])
@login_required
def recommended_meetups() -> Any:
    """Curated meetups."""
    meetups = EventService.list_recommended_meetups(firestore.client())
    return jsonify({"meetups": meetups})


@bp.route("/<string:event_id>", methods=["GET"])
@login_required
def view_event(event_id: str) -> Any:
    """View a single event."""
    event = EventService.get_event(firestore.client(), event_id)
    return jsonify({"event": event.to_dict()})


@bp.route("/<string:event_id>", methods=["PATCH"])
@login_required
def edit_event(event_id: str) -> Any:
    """Apply host edits to an event."""
    updates = request.get_json(silent=True)
    if not isinstance(updates, dict):
        raise ValidationError("Expected a JSON object.")
    db = firestore.client()
    event = EventService.update_event(db, event_id, g.user["uid"], updates)
    return jsonify({"event": event.to_dict()})


@bp.route("/<string:event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id: str) -> Any:
    """Delete an event hosted by the caller."""
    db = firestore.client()
    report = EventService.delete_event(
        db,
        event_id,
        g.user["uid"],
        cascade=current_app.config["RAUXA_INLINE_CASCADE"],
        batch_size=current_app.config["RAUXA_DELETE_BATCH_SIZE"],
    )
    body: dict[str, Any] = {"deleted": event_id}
    if report is not None:
        body["cascade"] = report.to_dict()
    return jsonify(body)


@bp.route("/<string:event_id>/photos", methods=["POST"])
@login_required
def upload_photo(event_id: str) -> Any:
    """Attach a photo to an event."""
    db = firestore.client()
    url = EventService.upload_event_photo(
        db, event_id, g.user["uid"], request.files.get("photo")
    )
    return jsonify({"url": url}), 201
