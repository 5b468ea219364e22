"""Chat blueprint."""

from flask import Blueprint

bp = Blueprint("chat", __name__, url_prefix="/chats")

from . import routes  # noqa: E402, F401
from .models import Chat, Message  # noqa: E402
from .services import ChatService  # noqa: E402

__all__ = ["Chat", "ChatService", "Message", "routes"]
