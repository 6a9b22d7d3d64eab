import os
import hmac
import hashlib
import secrets
from datetime import datetime, timedelta

from flask import Blueprint, jsonify, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from brocante.extensions import db
from brocante.models import User, Role, PasswordResetToken
from brocante.schemas import (
    ForgotPasswordBody,
    LoginBody,
    RegisterBody,
    ResetPasswordBody,
    parse_body,
)
from brocante.utils.auth import require_user
from brocante.utils.jwt_utils import create_token

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/auth")

RESET_TOKEN_TTL_MINUTES = 30
_FORGOT_MESSAGE = "If this email exists, a reset link has been sent."


def _hash_token(value: str) -> str:
    secret = (current_app.config.get("SECRET_KEY") or "brocante").encode("utf-8")
    return hmac.new(secret, value.encode("utf-8"), hashlib.sha256).hexdigest()


def _public_base_url() -> str:
    base = (os.getenv("PUBLIC_BASE_URL") or "").strip()
    return base.rstrip("/") if base else ""


def _session_payload(user: User) -> dict:
    return {
        "ok": True,
        "token": create_token(int(user.id)),
        "user": user.to_dict(),
    }


def _conflict_message(email_user: User | None, username_user: User | None) -> str | None:
    if email_user:
        return "Email already in use"
    if username_user:
        return "Username already in use"
    return None


@auth_bp.post("/register")
def register():
    data, err = parse_body(RegisterBody)
    if err:
        return err

    existing_email = User.query.filter_by(email=data.email).first()
    existing_username = User.query.filter_by(username=data.username).first() if data.username else None
    conflict = _conflict_message(existing_email, existing_username)
    if conflict:
        current_app.logger.info("register_conflict reason=%s", conflict)
        return jsonify({"ok": False, "message": conflict}), 409

    u = User(
        name=data.name,
        email=data.email,
        username=data.username,
        city=data.city,
        role=Role.USER,
    )
    u.set_password(data.password)
    try:
        db.session.add(u)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception("register_integrity_error")
        return jsonify({"ok": False, "message": "Email or username already in use"}), 409
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("register_db_error")
        return jsonify({"ok": False, "message": "Failed to create user"}), 500

    current_app.logger.info("register_ok user_id=%s", u.id)
    return jsonify(_session_payload(u)), 201


@auth_bp.post("/login")
def login():
    data, err = parse_body(LoginBody)
    if err:
        return err

    u = User.query.filter_by(email=data.email).first()
    if not u or not u.check_password(data.password):
        return jsonify({"ok": False, "message": "Invalid credentials"}), 401
    if not u.is_active:
        current_app.logger.info("login_refused_suspended user_id=%s", u.id)
        return jsonify({"ok": False, "message": "Account suspended"}), 403

    return jsonify(_session_payload(u)), 200


@auth_bp.get("/me")
def me():
    u, err = require_user()
    if err:
        return err
    return jsonify({"ok": True, "user": u.to_dict()}), 200


@auth_bp.post("/forgot-password")
def forgot_password():
    data, err = parse_body(ForgotPasswordBody)
    if err:
        return err

    # Same answer whether or not the account exists.
    u = User.query.filter_by(email=data.email).first()
    if not u:
        return jsonify({"ok": True, "message": _FORGOT_MESSAGE}), 200

    now = datetime.utcnow()
    token = secrets.token_urlsafe(32)
    rec = PasswordResetToken(
        user_id=int(u.id),
        token_hash=_hash_token(token),
        created_at=now,
        expires_at=now + timedelta(minutes=RESET_TOKEN_TTL_MINUTES),
        used_at=None,
    )
    try:
        db.session.add(rec)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("password_reset_request_failed")
        return jsonify({"ok": True, "message": _FORGOT_MESSAGE}), 200

    # No mail transport; the link goes to the log for the operator to relay.
    reset_link = f"{_public_base_url()}/auth/reset-password?token={token}"
    current_app.logger.info("PASSWORD_RESET_LINK: %s", reset_link)
    current_app.logger.info("password_reset_requested user_id=%s", u.id)
    return jsonify({"ok": True, "message": _FORGOT_MESSAGE}), 200


@auth_bp.post("/reset-password")
def reset_password():
    data, err = parse_body(ResetPasswordBody)
    if err:
        return err

    now = datetime.utcnow()
    rec = (
        PasswordResetToken.query.filter_by(token_hash=_hash_token(data.token))
        .filter(PasswordResetToken.used_at.is_(None))
        .first()
    )
    if not rec or (rec.expires_at and rec.expires_at < now):
        return jsonify({"ok": False, "message": "Invalid or expired token"}), 400

    u = db.session.get(User, int(rec.user_id))
    if not u:
        return jsonify({"ok": False, "message": "Invalid or expired token"}), 400

    u.set_password(data.password)
    rec.used_at = now
    db.session.commit()
    current_app.logger.info("password_reset_completed user_id=%s", u.id)
    return jsonify({"ok": True, "message": "Password updated"}), 200
