from datetime import datetime

from brocante.extensions import db


class Review(db.Model):
    __tablename__ = "reviews"

    id = db.Column(db.Integer, primary_key=True)

    # One review per order.
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, unique=True, index=True)
    reviewer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    reviewee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    reviewer = db.relationship("User", foreign_keys=[reviewer_id], lazy="joined")
    order = db.relationship("Order", foreign_keys=[order_id])

    def to_dict(self, *, include_order: bool = False) -> dict:
        out = {
            "id": self.id,
            "order_id": self.order_id,
            "reviewer_id": self.reviewer_id,
            "reviewee_id": self.reviewee_id,
            "rating": int(self.rating),
            "comment": self.comment,
            "reviewer": self.reviewer.to_public_dict() if self.reviewer else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_order:
            order = self.order
            out["order"] = None
            if order is not None:
                out["order"] = {
                    "id": order.id,
                    "status": order.status,
                    "listing": order.listing.to_summary_dict() if order.listing else None,
                }
        return out
