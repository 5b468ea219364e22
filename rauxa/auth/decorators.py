"""Decorators for authenticated API routes."""

from functools import wraps

from firebase_admin import auth
from flask import current_app, g, jsonify, request


def _bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def login_required(f=None):
    """Reject the request unless it carries a valid Firebase ID token.

    The decoded token's uid is stored in ``g.user`` for the view.

    Usage:
    @login_required
    def protected_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            token = _bearer_token()
            if token is None:
                return jsonify({"error": "Authentication required."}), 401
            try:
                decoded_token = auth.verify_id_token(token)
            except Exception as e:
                current_app.logger.warning(f"Rejected ID token: {e}")
                return jsonify({"error": "Invalid or expired token."}), 401
            g.user = {"uid": decoded_token["uid"]}
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
