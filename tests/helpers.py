from __future__ import annotations

import itertools
import os
import time
import unittest

from brocante import create_app
from brocante.extensions import db
from brocante.models import Role, User
from brocante.utils.jwt_utils import create_token

_seq = itertools.count(1)


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class ApiTestCase(unittest.TestCase):
    """Boots the app on a private in-memory SQLite database per test class."""

    @classmethod
    def setUpClass(cls):
        cls._prev_db_uri = os.getenv("SQLALCHEMY_DATABASE_URI")
        cls._prev_db_url = os.getenv("DATABASE_URL")
        db_uri = "sqlite:///:memory:"
        os.environ["SQLALCHEMY_DATABASE_URI"] = db_uri
        os.environ["DATABASE_URL"] = db_uri

        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()
        cls.client = cls.app.test_client()

    @classmethod
    def tearDownClass(cls):
        if cls._prev_db_uri is None:
            os.environ.pop("SQLALCHEMY_DATABASE_URI", None)
        else:
            os.environ["SQLALCHEMY_DATABASE_URI"] = cls._prev_db_uri
        if cls._prev_db_url is None:
            os.environ.pop("DATABASE_URL", None)
        else:
            os.environ["DATABASE_URL"] = cls._prev_db_url

    def make_user(self, *, role: str = Role.USER, name: str = "Test User", password: str = "Passw0rd!") -> tuple[int, str]:
        """Insert a user and return (user_id, bearer token)."""
        suffix = f"{time.time_ns()}-{next(_seq)}"
        with self.app.app_context():
            u = User(name=name, email=f"user-{suffix}@brocante.test", role=role)
            u.set_password(password)
            db.session.add(u)
            db.session.commit()
            uid = int(u.id)
            token = create_token(uid)
        return uid, token

    def user_email(self, user_id: int) -> str:
        with self.app.app_context():
            return db.session.get(User, user_id).email

    def create_listing(self, token: str, **overrides) -> dict:
        payload = {
            "title": "Vintage denim jacket",
            "description": "Barely worn, no stains, fits true to size.",
            "price": 40.0,
            "category": "clothing",
            "size": "M",
            "brand": "Levi's",
            "condition": "LIKE_NEW",
            "images": "https://img.example/1.jpg,https://img.example/2.jpg",
        }
        payload.update(overrides)
        res = self.client.post("/api/listings", json=payload, headers=auth(token))
        self.assertEqual(res.status_code, 201, res.get_json())
        return res.get_json()["listing"]

    def place_order(self, token: str, listing_id: int, *, method: str = "STANDARD"):
        return self.client.post(
            "/api/orders",
            json={
                "listing_id": listing_id,
                "shipping_method": method,
                "shipping_address": "12 rue des Lilas, 75011 Paris",
            },
            headers=auth(token),
        )

    def set_status(self, token: str, order_id: int, status: str):
        return self.client.patch(f"/api/orders/{order_id}", json={"status": status}, headers=auth(token))

    def delivered_order(self) -> dict:
        """Run a listing through purchase, shipping and delivery."""
        seller_id, seller_token = self.make_user(name="Seller")
        buyer_id, buyer_token = self.make_user(name="Buyer")
        listing = self.create_listing(seller_token)
        order = self.place_order(buyer_token, listing["id"]).get_json()["order"]
        self.assertEqual(self.set_status(seller_token, order["id"], "SHIPPED").status_code, 200)
        self.assertEqual(self.set_status(buyer_token, order["id"], "DELIVERED").status_code, 200)
        return {
            "order_id": order["id"],
            "listing_id": listing["id"],
            "seller_id": seller_id,
            "seller_token": seller_token,
            "buyer_id": buyer_id,
            "buyer_token": buyer_token,
        }
