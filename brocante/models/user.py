from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from brocante.extensions import db


class Role:
    USER = "USER"
    ADMIN = "ADMIN"
    SUSPENDED = "SUSPENDED"

    ALL = (USER, ADMIN, SUSPENDED)


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False, default="")
    username = db.Column(db.String(30), unique=True, index=True, nullable=True)
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)

    city = db.Column(db.String(64), nullable=True)
    image = db.Column(db.String(1024), nullable=True)

    password_hash = db.Column(db.String(255), nullable=False)

    # USER | ADMIN | SUSPENDED
    role = db.Column(db.String(16), nullable=False, default=Role.USER, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def set_password(self, raw_password: str) -> None:
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password_hash(self.password_hash, raw_password)

    @property
    def is_admin(self) -> bool:
        return (self.role or "").upper() == Role.ADMIN

    @property
    def is_active(self) -> bool:
        return (self.role or "").upper() != Role.SUSPENDED

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name or "",
            "username": self.username,
            "image": self.image,
            "city": self.city,
        }

    def to_dict(self) -> dict:
        return {
            **self.to_public_dict(),
            "email": self.email,
            "role": self.role or Role.USER,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
