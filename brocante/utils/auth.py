from __future__ import annotations

from flask import g, jsonify, request

from brocante.extensions import db
from brocante.models import User
from brocante.utils.jwt_utils import decode_token, get_bearer_token


def user_id_from_request() -> int | None:
    token = get_bearer_token(request.headers.get("Authorization", ""))
    if not token:
        return None
    payload = decode_token(token)
    if not payload:
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


def get_current_user() -> User | None:
    if getattr(g, "_auth_user_loaded", False):
        return g._auth_user
    uid = user_id_from_request()
    user = db.session.get(User, uid) if uid is not None else None
    g._auth_user = user
    g._auth_user_loaded = True
    return user


def require_user():
    """Return (user, error_response) for the bearer token on the request.

    Suspended accounts are refused even with a valid token.
    """
    u = get_current_user()
    if not u:
        return None, (jsonify({"ok": False, "message": "Unauthorized"}), 401)
    if not u.is_active:
        return None, (jsonify({"ok": False, "message": "Account suspended"}), 403)
    return u, None


def require_admin():
    u, err = require_user()
    if err:
        return None, err
    if not u.is_admin:
        return None, (jsonify({"ok": False, "message": "Forbidden: administrator required"}), 403)
    return u, None
