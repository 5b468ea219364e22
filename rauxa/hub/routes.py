"""Routes for the hub blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import g, jsonify

from rauxa.auth.decorators import login_required

from . import bp
from .services import HubService


@bp.route("/", methods=["GET"])
@login_required
def hub() -> Any:
    """RSVP'd and hosted events for the caller."""
    return jsonify(HubService.get_hub(firestore.client(), g.user["uid"]))
