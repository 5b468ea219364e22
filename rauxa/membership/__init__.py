"""Membership blueprint: RSVPs and host decisions."""

from flask import Blueprint

bp = Blueprint("membership", __name__, url_prefix="/events")

from . import routes  # noqa: E402, F401
from .models import MembershipRequest, MembershipStatus, MembershipTransition  # noqa: E402
from .services import MembershipService  # noqa: E402

__all__ = [
    "MembershipRequest",
    "MembershipService",
    "MembershipStatus",
    "MembershipTransition",
    "routes",
]
