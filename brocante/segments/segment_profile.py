from flask import Blueprint, jsonify

from brocante.extensions import db
from brocante.models import User
from brocante.schemas import ProfileUpdateBody, parse_body
from brocante.utils.auth import require_user

profile_bp = Blueprint("profile_bp", __name__, url_prefix="/api/profile")


@profile_bp.get("")
def get_profile():
    u, err = require_user()
    if err:
        return err
    return jsonify({"ok": True, "user": u.to_dict()}), 200


@profile_bp.patch("")
def update_profile():
    u, err = require_user()
    if err:
        return err
    data, err = parse_body(ProfileUpdateBody)
    if err:
        return err

    if data.username:
        taken = User.query.filter(User.username == data.username, User.id != u.id).first()
        if taken:
            return jsonify({"ok": False, "message": "This username is already taken"}), 400

    if data.name:
        u.name = data.name
    if data.username:
        u.username = data.username
    # Empty strings clear these two.
    if data.city is not None:
        u.city = data.city or None
    if data.image is not None:
        u.image = data.image or None

    db.session.commit()
    return jsonify({"ok": True, "user": u.to_dict()}), 200
