from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import IntegrityError

from brocante.extensions import db
from brocante.models import Order, OrderStatus, Review
from brocante.schemas import ReviewCreateBody, parse_body
from brocante.services.order_lifecycle import party_of
from brocante.utils.auth import require_user

reviews_bp = Blueprint("reviews_bp", __name__, url_prefix="/api/reviews")

_ALREADY_REVIEWED = "A review already exists for this order"


def _int_arg(name: str) -> int | None:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@reviews_bp.get("")
def list_reviews():
    order_id = _int_arg("order_id")
    if order_id is not None:
        review = Review.query.filter_by(order_id=order_id).first()
        return jsonify({"ok": True, "review": review.to_dict() if review else None}), 200

    user_id = _int_arg("user_id")
    if user_id is None:
        return jsonify({"ok": False, "message": "user_id or order_id is required"}), 400

    rows = (
        Review.query.filter_by(reviewee_id=user_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    total = len(rows)
    average = (sum(int(r.rating) for r in rows) / total) if total else 0.0
    return jsonify({
        "ok": True,
        "reviews": [r.to_dict(include_order=True) for r in rows],
        "average_rating": round(average, 1),
        "total_reviews": total,
    }), 200


@reviews_bp.post("")
def create_review():
    u, err = require_user()
    if err:
        return err
    data, err = parse_body(ReviewCreateBody)
    if err:
        return err

    order = db.session.get(Order, int(data.order_id))
    if not order:
        return jsonify({"ok": False, "message": "Order not found"}), 404

    party = party_of(order, u)
    if party is None:
        return jsonify({"ok": False, "message": "You are not allowed to review this order"}), 403
    if order.status != OrderStatus.DELIVERED:
        return jsonify({"ok": False, "message": "You can only review a delivered order"}), 400
    if Review.query.filter_by(order_id=order.id).first():
        return jsonify({"ok": False, "message": _ALREADY_REVIEWED}), 400

    review = Review(
        order_id=int(order.id),
        reviewer_id=int(u.id),
        reviewee_id=int(order.seller_id if party == "buyer" else order.buyer_id),
        rating=int(data.rating),
        comment=data.comment,
    )
    try:
        db.session.add(review)
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent submission for the same order.
        db.session.rollback()
        return jsonify({"ok": False, "message": _ALREADY_REVIEWED}), 400

    current_app.logger.info("review_created order_id=%s reviewer_id=%s rating=%s", order.id, u.id, review.rating)
    return jsonify({"ok": True, "review": review.to_dict(include_order=True)}), 201
