"""Routes for the chat blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from rauxa.auth.decorators import login_required
from rauxa.errors import PermissionDeniedError, ValidationError

from . import bp
from .services import ChatService


@bp.route("/", methods=["GET"])
@login_required
def list_chats() -> Any:
    """Chats the caller takes part in."""
    chats = ChatService.list_user_chats(firestore.client(), g.user["uid"])
    return jsonify({"chats": chats})


@bp.route("/<string:chat_id>", methods=["GET"])
@login_required
def view_chat(chat_id: str) -> Any:
    """Chat header, event and participant profiles."""
    details = ChatService.get_chat_details(firestore.client(), chat_id, g.user["uid"])
    return jsonify(details)


@bp.route("/<string:chat_id>/messages", methods=["GET"])
@login_required
def list_messages(chat_id: str) -> Any:
    """A page of messages, oldest first."""
    limit = request.args.get(
        "limit", default=current_app.config["RAUXA_MESSAGES_PER_LOAD"], type=int
    )
    if limit < 1:
        raise ValidationError("Limit must be positive.")
    messages, has_more = ChatService.get_messages(
        firestore.client(),
        chat_id,
        g.user["uid"],
        limit=limit,
        after=request.args.get("after"),
    )
    return jsonify(
        {
            "messages": [message.to_dict() for message in messages],
            "hasMore": has_more,
        }
    )


@bp.route("/<string:chat_id>/messages", methods=["POST"])
@login_required
def send_message(chat_id: str) -> Any:
    """Post a message to a chat."""
    payload = request.get_json(silent=True) or {}
    message = ChatService.send_message(
        firestore.client(), chat_id, g.user["uid"], payload.get("text")
    )
    return jsonify({"message": message.to_dict()}), 201


@bp.route("/<string:chat_id>/seen", methods=["POST"])
@login_required
def mark_seen(chat_id: str) -> Any:
    """Clear the caller's unread flag."""
    ChatService.mark_seen(firestore.client(), chat_id, g.user["uid"])
    return jsonify({"seen": chat_id})


@bp.route("/<string:chat_id>/sync", methods=["POST"])
@login_required
def sync_chat(chat_id: str) -> Any:
    """Add accepted attendees missing from an event chat. Host only."""
    db = firestore.client()
    chat = ChatService.get_chat(db, chat_id)
    if chat.host_id != g.user["uid"]:
        raise PermissionDeniedError("Only the host can sync this chat.")
    added = ChatService.sync_participants(db, chat.event_id or chat_id)
    current_app.logger.info(f"Chat {chat_id} synced by {g.user['uid']}: {added}")
    return jsonify({"added": added})
