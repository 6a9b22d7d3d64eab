from __future__ import annotations

from datetime import datetime

from brocante.extensions import db
from brocante.models import (
    Listing,
    ListingStatus,
    Order,
    OrderStatus,
    OrderTransition,
    PaymentStatus,
    ShippingMethod,
    User,
)


SHIPPING_COSTS = {
    ShippingMethod.STANDARD: 2.0,
    ShippingMethod.EXPRESS: 5.0,
}

# Forward-only status moves. DISPUTED and CANCELLED are never entered or left here.
ALLOWED_TRANSITIONS = {
    OrderStatus.PAID: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
}

# Which party may request a given target status.
TRANSITION_ACTOR = {
    OrderStatus.SHIPPED: "seller",
    OrderStatus.DELIVERED: "buyer",
}

_ACTOR_DENIED = {
    "seller": "Only the seller can mark the order as shipped",
    "buyer": "Only the buyer can confirm delivery",
}


class OrderRuleError(Exception):
    """A business rule refused the operation; carries the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)


def shipping_cost(method: str) -> float:
    key = (method or "").strip().upper()
    if key not in SHIPPING_COSTS:
        raise OrderRuleError(f"Unknown shipping method {method!r}")
    return SHIPPING_COSTS[key]


def order_total(price: float, method: str) -> float:
    return round(float(price or 0.0) + shipping_cost(method), 2)


def party_of(order: Order, user: User | None) -> str | None:
    if user is None:
        return None
    uid = int(user.id)
    if uid == int(order.seller_id):
        return "seller"
    if uid == int(order.buyer_id):
        return "buyer"
    return None


def has_open_order(listing_id: int, buyer_id: int) -> bool:
    return (
        Order.query.filter(
            Order.listing_id == int(listing_id),
            Order.buyer_id == int(buyer_id),
            Order.status.in_(OrderStatus.OPEN),
        ).first()
        is not None
    )


def _record(order: Order, actor_id: int | None, from_status: str, from_payment: str) -> OrderTransition:
    row = OrderTransition(
        order_id=int(order.id),
        actor_id=actor_id,
        from_status=from_status or "",
        to_status=order.status,
        from_payment_status=from_payment or "",
        to_payment_status=order.payment_status,
        created_at=datetime.utcnow(),
    )
    db.session.add(row)
    return row


def place_order(listing: Listing, buyer: User, *, shipping_method: str, shipping_address: str) -> Order:
    """Create a paid order with funds held in escrow and mark the listing SOLD.

    Payment is simulated: there is no payment provider, so the order starts
    at PAID/HELD. The listing is claimed with a conditional update so two
    buyers racing for the same listing cannot both succeed.
    """
    if (listing.status or "") != ListingStatus.ACTIVE:
        raise OrderRuleError("This listing is no longer available")
    if int(listing.user_id) == int(buyer.id):
        raise OrderRuleError("You cannot buy your own listing")
    if has_open_order(int(listing.id), int(buyer.id)):
        raise OrderRuleError("You already have an order in progress for this listing")

    total = order_total(listing.price, shipping_method)

    claimed = Listing.query.filter(
        Listing.id == int(listing.id),
        Listing.status == ListingStatus.ACTIVE,
    ).update(
        {Listing.status: ListingStatus.SOLD, Listing.updated_at: datetime.utcnow()},
        synchronize_session="fetch",
    )
    if not claimed:
        db.session.rollback()
        raise OrderRuleError("This listing is no longer available")

    order = Order(
        listing_id=int(listing.id),
        buyer_id=int(buyer.id),
        seller_id=int(listing.user_id),
        shipping_method=shipping_method,
        shipping_address=shipping_address,
        total_amount=total,
        status=OrderStatus.PAID,
        payment_status=PaymentStatus.HELD,
    )
    db.session.add(order)
    db.session.flush()
    _record(order, int(buyer.id), "", "")
    db.session.commit()
    return order


def transition_order(order: Order, to_status: str, *, actor: User) -> OrderTransition:
    """Move ``order`` to ``to_status`` on behalf of ``actor``.

    Role gates run before the transition table so a wrong-party request is
    always a 403, whatever the current status. Delivery releases escrow.
    """
    if order is None:
        raise ValueError("order required")
    party = party_of(order, actor)
    if party is None:
        raise OrderRuleError("You are not allowed to update this order", 403)

    target = (to_status or "").strip().upper()
    required = TRANSITION_ACTOR.get(target)
    if required and party != required:
        raise OrderRuleError(_ACTOR_DENIED[required], 403)

    current = (order.status or "").strip().upper()
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise OrderRuleError(f"Cannot move order from {current} to {target}")

    from_payment = order.payment_status or ""
    order.status = target
    if target == OrderStatus.DELIVERED:
        order.payment_status = PaymentStatus.RELEASED
    row = _record(order, int(actor.id), current, from_payment)
    db.session.commit()
    return row


def order_timeline(order: Order) -> list[OrderTransition]:
    return (
        OrderTransition.query.filter_by(order_id=int(order.id))
        .order_by(OrderTransition.created_at.asc(), OrderTransition.id.asc())
        .all()
    )
