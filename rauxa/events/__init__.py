"""Events blueprint."""

from flask import Blueprint

bp = Blueprint("events", __name__, url_prefix="/events")

from . import routes  # noqa: E402, F401
from .models import Event, EventSubmission  # noqa: E402
from .services import EventService  # noqa: E402

__all__ = ["Event", "EventService", "EventSubmission", "routes"]
