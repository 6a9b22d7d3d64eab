from __future__ import annotations

import time
import unittest
from datetime import datetime, timedelta

from brocante.extensions import db
from brocante.models import PasswordResetToken, Role, User
from brocante.segments.segment_auth import _hash_token
from tests.helpers import ApiTestCase, auth


class AuthFlowTestCase(ApiTestCase):
    def _email(self, prefix: str = "auth") -> str:
        return f"{prefix}-{time.time_ns()}@brocante.test"

    def _register(self, **overrides):
        payload = {
            "name": "Camille Martin",
            "email": self._email(),
            "password": "Passw0rd!",
        }
        payload.update(overrides)
        return self.client.post("/api/auth/register", json=payload), payload

    def test_register_returns_token_and_user(self):
        res, payload = self._register(username=f"cam{time.time_ns() % 100000}", city="Lyon")
        self.assertEqual(res.status_code, 201, res.get_json())
        body = res.get_json()
        self.assertTrue(body["ok"])
        self.assertTrue(body["token"])
        self.assertEqual(body["user"]["email"], payload["email"])
        self.assertEqual(body["user"]["role"], "USER")
        self.assertEqual(body["user"]["city"], "Lyon")
        self.assertNotIn("password_hash", body["user"])

    def test_register_normalises_email_case(self):
        email = self._email("mixed")
        res, _payload = self._register(email=email.upper())
        self.assertEqual(res.status_code, 201, res.get_json())
        self.assertEqual(res.get_json()["user"]["email"], email)

    def test_register_duplicate_email_is_conflict(self):
        res, payload = self._register()
        self.assertEqual(res.status_code, 201)
        again = self.client.post("/api/auth/register", json=payload)
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.get_json()["message"], "Email already in use")

    def test_register_duplicate_username_is_conflict(self):
        username = f"dup{time.time_ns() % 1000000}"
        first, _ = self._register(username=username)
        self.assertEqual(first.status_code, 201)
        second, _ = self._register(username=username)
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.get_json()["message"], "Username already in use")

    def test_register_validation_reports_first_error(self):
        res, _ = self._register(email="not-an-email")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.get_json()["message"], "Invalid email address")

        short, _ = self._register(password="short")
        self.assertEqual(short.status_code, 400)
        self.assertIn("password", short.get_json()["message"])

    def test_login_and_me(self):
        res, payload = self._register()
        self.assertEqual(res.status_code, 201)

        login = self.client.post(
            "/api/auth/login",
            json={"email": payload["email"].upper(), "password": payload["password"]},
        )
        self.assertEqual(login.status_code, 200, login.get_json())
        token = login.get_json()["token"]

        me = self.client.get("/api/auth/me", headers=auth(token))
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.get_json()["user"]["email"], payload["email"])

    def test_login_wrong_password_is_unauthorized(self):
        res, payload = self._register()
        self.assertEqual(res.status_code, 201)
        bad = self.client.post("/api/auth/login", json={"email": payload["email"], "password": "wrong-pass"})
        self.assertEqual(bad.status_code, 401)
        self.assertEqual(bad.get_json()["message"], "Invalid credentials")

        unknown = self.client.post("/api/auth/login", json={"email": self._email("ghost"), "password": "whatever1"})
        self.assertEqual(unknown.status_code, 401)

    def test_me_requires_token(self):
        res = self.client.get("/api/auth/me")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.get_json()["message"], "Unauthorized")

    def test_suspended_user_cannot_login_or_use_token(self):
        uid, token = self.make_user()
        email = self.user_email(uid)
        with self.app.app_context():
            u = db.session.get(User, uid)
            u.role = Role.SUSPENDED
            db.session.commit()

        login = self.client.post("/api/auth/login", json={"email": email, "password": "Passw0rd!"})
        self.assertEqual(login.status_code, 403)
        self.assertEqual(login.get_json()["message"], "Account suspended")

        me = self.client.get("/api/auth/me", headers=auth(token))
        self.assertEqual(me.status_code, 403)

    def test_forgot_password_answer_does_not_reveal_accounts(self):
        uid, _token = self.make_user()
        known = self.client.post("/api/auth/forgot-password", json={"email": self.user_email(uid)})
        unknown = self.client.post("/api/auth/forgot-password", json={"email": self._email("nobody")})
        self.assertEqual(known.status_code, 200)
        self.assertEqual(unknown.status_code, 200)
        self.assertEqual(known.get_json()["message"], unknown.get_json()["message"])

        with self.app.app_context():
            self.assertEqual(PasswordResetToken.query.filter_by(user_id=uid).count(), 1)

    def test_reset_password_with_valid_token(self):
        uid, _token = self.make_user()
        email = self.user_email(uid)
        raw = f"reset-{time.time_ns()}"
        with self.app.app_context():
            now = datetime.utcnow()
            db.session.add(
                PasswordResetToken(
                    user_id=uid,
                    token_hash=_hash_token(raw),
                    created_at=now,
                    expires_at=now + timedelta(minutes=30),
                )
            )
            db.session.commit()

        res = self.client.post("/api/auth/reset-password", json={"token": raw, "password": "N3wPassword!"})
        self.assertEqual(res.status_code, 200, res.get_json())

        old = self.client.post("/api/auth/login", json={"email": email, "password": "Passw0rd!"})
        self.assertEqual(old.status_code, 401)
        new = self.client.post("/api/auth/login", json={"email": email, "password": "N3wPassword!"})
        self.assertEqual(new.status_code, 200)

        reused = self.client.post("/api/auth/reset-password", json={"token": raw, "password": "An0therPass!"})
        self.assertEqual(reused.status_code, 400)
        self.assertEqual(reused.get_json()["message"], "Invalid or expired token")

    def test_reset_password_rejects_expired_token(self):
        uid, _token = self.make_user()
        raw = f"expired-{time.time_ns()}"
        with self.app.app_context():
            now = datetime.utcnow()
            db.session.add(
                PasswordResetToken(
                    user_id=uid,
                    token_hash=_hash_token(raw),
                    created_at=now - timedelta(hours=2),
                    expires_at=now - timedelta(hours=1),
                )
            )
            db.session.commit()

        res = self.client.post("/api/auth/reset-password", json={"token": raw, "password": "N3wPassword!"})
        self.assertEqual(res.status_code, 400)


if __name__ == "__main__":
    unittest.main()
