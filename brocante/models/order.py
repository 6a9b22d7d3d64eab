from datetime import datetime

from brocante.extensions import db


class OrderStatus:
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    DISPUTED = "DISPUTED"

    ALL = (PENDING, PAID, SHIPPED, DELIVERED, CANCELLED, DISPUTED)
    # An order in one of these still blocks the buyer from ordering the listing again.
    OPEN = (PENDING, PAID, SHIPPED)


class PaymentStatus:
    PENDING = "PENDING"
    HELD = "HELD"
    RELEASED = "RELEASED"
    REFUNDED = "REFUNDED"

    ALL = (PENDING, HELD, RELEASED, REFUNDED)


class ShippingMethod:
    STANDARD = "STANDARD"
    EXPRESS = "EXPRESS"

    ALL = (STANDARD, EXPRESS)


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)

    listing_id = db.Column(db.Integer, db.ForeignKey("listings.id"), nullable=False, index=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # Copied from the listing owner when the order is placed.
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    shipping_method = db.Column(db.String(16), nullable=False, default=ShippingMethod.STANDARD)
    shipping_address = db.Column(db.String(500), nullable=False)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)

    status = db.Column(db.String(16), nullable=False, default=OrderStatus.PENDING, index=True)
    payment_status = db.Column(db.String(16), nullable=False, default=PaymentStatus.PENDING, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    listing = db.relationship("Listing", foreign_keys=[listing_id], lazy="joined")
    buyer = db.relationship("User", foreign_keys=[buyer_id], lazy="joined")
    seller = db.relationship("User", foreign_keys=[seller_id], lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "listing_id": self.listing_id,
            "buyer_id": self.buyer_id,
            "seller_id": self.seller_id,
            "shipping_method": self.shipping_method,
            "shipping_address": self.shipping_address,
            "total_amount": float(self.total_amount or 0.0),
            "status": self.status,
            "payment_status": self.payment_status,
            "listing": self.listing.to_summary_dict() if self.listing else None,
            "buyer": self.buyer.to_public_dict() if self.buyer else None,
            "seller": self.seller.to_public_dict() if self.seller else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class OrderTransition(db.Model):
    __tablename__ = "order_transitions"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    actor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    from_status = db.Column(db.String(16), nullable=False, default="")
    to_status = db.Column(db.String(16), nullable=False)
    from_payment_status = db.Column(db.String(16), nullable=False, default="")
    to_payment_status = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "order_id": int(self.order_id),
            "actor_id": int(self.actor_id) if self.actor_id is not None else None,
            "from_status": self.from_status or "",
            "to_status": self.to_status or "",
            "from_payment_status": self.from_payment_status or "",
            "to_payment_status": self.to_payment_status or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
