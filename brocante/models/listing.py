from datetime import datetime

from brocante.extensions import db


class ListingStatus:
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"
    DELETED = "DELETED"

    ALL = (ACTIVE, SOLD, DELETED)


class ListingCondition:
    NEW = "NEW"
    LIKE_NEW = "LIKE_NEW"
    GOOD = "GOOD"
    FAIR = "FAIR"

    ALL = (NEW, LIKE_NEW, GOOD, FAIR)


class Listing(db.Model):
    __tablename__ = "listings"

    id = db.Column(db.Integer, primary_key=True)

    # Seller user id
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    price = db.Column(db.Float, nullable=False, default=0.0)

    category = db.Column(db.String(64), nullable=False, index=True)
    size = db.Column(db.String(50), nullable=True, index=True)
    brand = db.Column(db.String(100), nullable=True)
    condition = db.Column(db.String(16), nullable=False, default=ListingCondition.GOOD)

    # Comma or newline separated image URLs, as submitted by the client.
    images = db.Column(db.String(2000), nullable=False, default="")

    status = db.Column(db.String(16), nullable=False, default=ListingStatus.ACTIVE, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    seller = db.relationship("User", foreign_keys=[user_id], lazy="joined")

    def image_urls(self) -> list[str]:
        raw = (self.images or "").replace("\n", ",")
        return [part.strip() for part in raw.split(",") if part.strip()]

    def to_summary_dict(self) -> dict:
        urls = self.image_urls()
        return {
            "id": self.id,
            "title": self.title,
            "price": float(self.price or 0.0),
            "images": self.images or "",
            "image": urls[0] if urls else None,
        }

    def to_dict(self, *, include_seller: bool = True, include_private: bool = False) -> dict:
        out = {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description or "",
            "price": float(self.price or 0.0),
            "category": self.category,
            "size": self.size,
            "brand": self.brand,
            "condition": self.condition,
            "images": self.images or "",
            "image_urls": self.image_urls(),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_seller:
            seller = self.seller
            if seller is None:
                out["seller"] = None
            elif include_private:
                out["seller"] = {**seller.to_public_dict(), "email": seller.email}
            else:
                out["seller"] = seller.to_public_dict()
        return out
