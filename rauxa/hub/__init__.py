"""Hub blueprint: the user's RSVPs and hosted events."""

from flask import Blueprint

bp = Blueprint("hub", __name__, url_prefix="/hub")

from . import routes  # noqa: E402, F401
from .reconciler import MembershipReconciler, SubscriptionSet  # noqa: E402
from .services import HubService  # noqa: E402

__all__ = ["HubService", "MembershipReconciler", "SubscriptionSet", "routes"]
