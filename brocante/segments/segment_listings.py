from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import or_

from brocante.extensions import db
from brocante.models import Listing, ListingStatus
from brocante.schemas import ListingCreateBody, ListingUpdateBody, parse_body
from brocante.utils.auth import require_user

listings_bp = Blueprint("listings_bp", __name__, url_prefix="/api/listings")

BROWSE_LIMIT = 50


def _arg(name: str) -> str | None:
    value = (request.args.get(name) or "").strip()
    return value or None


def _float_arg(name: str) -> float | None:
    raw = _arg(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _contains(column, needle: str):
    return column.ilike(f"%{needle}%")


@listings_bp.get("")
def browse_listings():
    status = (_arg("status") or ListingStatus.ACTIVE).upper()
    q = Listing.query.filter(Listing.status == status)

    category = _arg("category")
    if category:
        q = q.filter(Listing.category == category)
    size = _arg("size")
    if size:
        q = q.filter(Listing.size == size)
    brand = _arg("brand")
    if brand:
        q = q.filter(Listing.brand.isnot(None), _contains(Listing.brand, brand))
    condition = _arg("condition")
    if condition:
        q = q.filter(Listing.condition == condition.upper())

    min_price = _float_arg("min_price")
    if min_price is not None:
        q = q.filter(Listing.price >= min_price)
    max_price = _float_arg("max_price")
    if max_price is not None:
        q = q.filter(Listing.price <= max_price)

    search = _arg("search")
    if search:
        q = q.filter(
            or_(
                _contains(Listing.title, search),
                _contains(Listing.description, search),
                Listing.brand.isnot(None) & _contains(Listing.brand, search),
            )
        )

    rows = q.order_by(Listing.created_at.desc(), Listing.id.desc()).limit(BROWSE_LIMIT).all()
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200


@listings_bp.post("")
def create_listing():
    u, err = require_user()
    if err:
        return err
    data, err = parse_body(ListingCreateBody)
    if err:
        return err

    listing = Listing(
        user_id=int(u.id),
        title=data.title,
        description=data.description,
        price=round(float(data.price), 2),
        category=data.category,
        size=data.size,
        brand=data.brand,
        condition=data.condition,
        images=data.images or "",
        status=ListingStatus.ACTIVE,
    )
    db.session.add(listing)
    db.session.commit()
    current_app.logger.info("listing_created listing_id=%s user_id=%s", listing.id, u.id)
    return jsonify({"ok": True, "listing": listing.to_dict()}), 201


@listings_bp.get("/<int:listing_id>")
def get_listing(listing_id: int):
    listing = db.session.get(Listing, listing_id)
    if not listing:
        return jsonify({"ok": False, "message": "Listing not found"}), 404
    return jsonify({"ok": True, "listing": listing.to_dict()}), 200


def _owned_listing(listing_id: int, user, verb: str):
    listing = db.session.get(Listing, listing_id)
    if not listing:
        return None, (jsonify({"ok": False, "message": "Listing not found"}), 404)
    if int(listing.user_id) != int(user.id):
        return None, (jsonify({"ok": False, "message": f"You are not allowed to {verb} this listing"}), 403)
    return listing, None


@listings_bp.patch("/<int:listing_id>")
def update_listing(listing_id: int):
    u, err = require_user()
    if err:
        return err
    listing, err = _owned_listing(listing_id, u, "edit")
    if err:
        return err
    data, err = parse_body(ListingUpdateBody)
    if err:
        return err
    if listing.status == ListingStatus.DELETED:
        return jsonify({"ok": False, "message": "Deleted listings cannot be edited"}), 400

    for key, value in data.changes().items():
        if key == "price":
            value = round(float(value), 2)
        setattr(listing, key, value)
    db.session.commit()
    return jsonify({"ok": True, "listing": listing.to_dict()}), 200


@listings_bp.delete("/<int:listing_id>")
def delete_listing(listing_id: int):
    u, err = require_user()
    if err:
        return err
    listing, err = _owned_listing(listing_id, u, "delete")
    if err:
        return err

    # Soft delete: orders and conversations still point at the row.
    listing.status = ListingStatus.DELETED
    db.session.commit()
    current_app.logger.info("listing_deleted listing_id=%s by_user_id=%s", listing.id, u.id)
    return jsonify({"ok": True, "message": "Listing deleted", "listing_id": listing.id}), 200
