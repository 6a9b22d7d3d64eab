from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError

from brocante.extensions import db
from brocante.models import Listing, Order
from brocante.schemas import OrderCreateBody, OrderUpdateBody, parse_body
from brocante.services.order_lifecycle import (
    OrderRuleError,
    order_timeline,
    party_of,
    place_order,
    transition_order,
)
from brocante.utils.auth import require_user

orders_bp = Blueprint("orders_bp", __name__, url_prefix="/api/orders")


def _rule_error(e: OrderRuleError):
    return jsonify({"ok": False, "message": e.message}), e.status_code


def _order_for_party(order_id: int, user):
    order = db.session.get(Order, order_id)
    if not order:
        return None, (jsonify({"ok": False, "message": "Order not found"}), 404)
    if party_of(order, user) is None:
        return None, (jsonify({"ok": False, "message": "You are not allowed to view this order"}), 403)
    return order, None


@orders_bp.get("")
def my_orders():
    u, err = require_user()
    if err:
        return err
    role = (request.args.get("role") or "buyer").strip().lower()
    q = Order.query
    if role == "seller":
        q = q.filter(Order.seller_id == int(u.id))
    else:
        q = q.filter(Order.buyer_id == int(u.id))
    rows = q.order_by(Order.created_at.desc(), Order.id.desc()).all()
    return jsonify({"ok": True, "role": "seller" if role == "seller" else "buyer", "items": [o.to_dict() for o in rows]}), 200


@orders_bp.post("")
def create_order():
    u, err = require_user()
    if err:
        return err
    data, err = parse_body(OrderCreateBody)
    if err:
        return err

    listing = db.session.get(Listing, int(data.listing_id))
    if not listing:
        return jsonify({"ok": False, "message": "Listing not found"}), 404

    try:
        order = place_order(
            listing,
            u,
            shipping_method=data.shipping_method,
            shipping_address=data.shipping_address,
        )
    except OrderRuleError as e:
        return _rule_error(e)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("order_create_failed listing_id=%s buyer_id=%s", listing.id, u.id)
        return jsonify({"ok": False, "message": "Failed to create order"}), 500

    current_app.logger.info(
        "order_created order_id=%s listing_id=%s buyer_id=%s seller_id=%s total=%s",
        order.id,
        order.listing_id,
        order.buyer_id,
        order.seller_id,
        order.total_amount,
    )
    return jsonify({"ok": True, "order": order.to_dict()}), 201


@orders_bp.get("/<int:order_id>")
def get_order(order_id: int):
    u, err = require_user()
    if err:
        return err
    order, err = _order_for_party(order_id, u)
    if err:
        return err
    return jsonify({"ok": True, "order": order.to_dict()}), 200


@orders_bp.patch("/<int:order_id>")
def update_order(order_id: int):
    u, err = require_user()
    if err:
        return err
    order = db.session.get(Order, order_id)
    if not order:
        return jsonify({"ok": False, "message": "Order not found"}), 404
    if party_of(order, u) is None:
        return jsonify({"ok": False, "message": "You are not allowed to update this order"}), 403
    data, err = parse_body(OrderUpdateBody)
    if err:
        return err

    from_status = order.status
    try:
        transition_order(order, data.status, actor=u)
    except OrderRuleError as e:
        db.session.rollback()
        return _rule_error(e)

    current_app.logger.info(
        "order_transition order_id=%s %s->%s payment=%s actor_id=%s",
        order.id,
        from_status,
        order.status,
        order.payment_status,
        u.id,
    )
    return jsonify({"ok": True, "order": order.to_dict()}), 200


@orders_bp.get("/<int:order_id>/timeline")
def timeline(order_id: int):
    u, err = require_user()
    if err:
        return err
    order, err = _order_for_party(order_id, u)
    if err:
        return err
    rows = order_timeline(order)
    return jsonify({"ok": True, "order_id": order.id, "items": [r.to_dict() for r in rows]}), 200
