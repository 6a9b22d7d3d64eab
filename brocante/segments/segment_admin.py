from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import func, or_

from brocante.extensions import db
from brocante.models import (
    Listing,
    ListingStatus,
    Order,
    OrderStatus,
    PaymentStatus,
    Role,
    User,
)
from brocante.schemas import AdminUserActionBody, parse_body
from brocante.utils.auth import require_admin

admin_bp = Blueprint("admin_bp", __name__, url_prefix="/api/admin")

ADMIN_PAGE_LIMIT = 100


def _arg(name: str) -> str | None:
    value = (request.args.get(name) or "").strip()
    return value or None


def _count(model, *criteria) -> int:
    q = db.session.query(func.count(model.id))
    if criteria:
        q = q.filter(*criteria)
    return int(q.scalar() or 0)


def _grouped_counts(column, ids: list[int]) -> dict[int, int]:
    if not ids:
        return {}
    rows = (
        db.session.query(column, func.count())
        .filter(column.in_(ids))
        .group_by(column)
        .all()
    )
    return {int(key): int(n) for key, n in rows}


@admin_bp.get("/stats")
def admin_stats():
    _admin, err = require_admin()
    if err:
        return err

    revenue = (
        db.session.query(func.coalesce(func.sum(Order.total_amount), 0.0))
        .filter(Order.payment_status == PaymentStatus.RELEASED)
        .scalar()
    )
    return jsonify({
        "ok": True,
        "users": {"total": _count(User)},
        "listings": {
            "total": _count(Listing),
            "active": _count(Listing, Listing.status == ListingStatus.ACTIVE),
            "sold": _count(Listing, Listing.status == ListingStatus.SOLD),
        },
        "orders": {
            "total": _count(Order),
            "completed": _count(Order, Order.status == OrderStatus.DELIVERED),
        },
        "revenue": {"total": round(float(revenue or 0.0), 2)},
        "disputes": _count(Order, Order.status == OrderStatus.DISPUTED),
    }), 200


@admin_bp.get("/users")
def admin_users():
    _admin, err = require_admin()
    if err:
        return err

    q = User.query
    role = _arg("role")
    if role:
        q = q.filter(User.role == role.upper())
    search = _arg("search")
    if search:
        like = f"%{search}%"
        q = q.filter(or_(User.name.ilike(like), User.email.ilike(like), User.username.ilike(like)))
    rows = q.order_by(User.created_at.desc(), User.id.desc()).limit(ADMIN_PAGE_LIMIT).all()

    ids = [int(r.id) for r in rows]
    listing_counts = _grouped_counts(Listing.user_id, ids)
    buyer_counts = _grouped_counts(Order.buyer_id, ids)
    seller_counts = _grouped_counts(Order.seller_id, ids)
    items = []
    for r in rows:
        items.append({
            **r.to_dict(),
            "counts": {
                "listings": listing_counts.get(int(r.id), 0),
                "buyer_orders": buyer_counts.get(int(r.id), 0),
                "seller_orders": seller_counts.get(int(r.id), 0),
            },
        })
    return jsonify({"ok": True, "items": items}), 200


@admin_bp.patch("/users/<int:user_id>")
def admin_update_user(user_id: int):
    admin, err = require_admin()
    if err:
        return err
    data, err = parse_body(AdminUserActionBody)
    if err:
        return err

    target = db.session.get(User, user_id)
    if not target:
        return jsonify({"ok": False, "message": "User not found"}), 404
    if int(target.id) == int(admin.id):
        return jsonify({"ok": False, "message": "You cannot change your own account status"}), 400

    if data.action == "suspend":
        target.role = Role.SUSPENDED
        message = "User suspended"
    else:
        target.role = Role.USER
        message = "User activated"
    db.session.commit()
    current_app.logger.info("admin_user_%s user_id=%s admin_id=%s", data.action, target.id, admin.id)
    return jsonify({"ok": True, "message": message, "user": target.to_dict()}), 200


@admin_bp.get("/listings")
def admin_listings():
    _admin, err = require_admin()
    if err:
        return err

    q = Listing.query
    status = _arg("status")
    if status:
        q = q.filter(Listing.status == status.upper())
    search = _arg("search")
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Listing.title.ilike(like), Listing.description.ilike(like)))
    rows = q.order_by(Listing.created_at.desc(), Listing.id.desc()).limit(ADMIN_PAGE_LIMIT).all()
    return jsonify({"ok": True, "items": [r.to_dict(include_private=True) for r in rows]}), 200


@admin_bp.delete("/listings/<int:listing_id>")
def admin_delete_listing(listing_id: int):
    admin, err = require_admin()
    if err:
        return err
    listing = db.session.get(Listing, listing_id)
    if not listing:
        return jsonify({"ok": False, "message": "Listing not found"}), 404

    listing.status = ListingStatus.DELETED
    db.session.commit()
    current_app.logger.info("admin_listing_deleted listing_id=%s admin_id=%s", listing.id, admin.id)
    return jsonify({"ok": True, "message": "Listing deleted", "listing_id": listing.id}), 200
