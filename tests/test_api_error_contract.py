from __future__ import annotations

import unittest
import uuid

from tests.helpers import ApiTestCase


class ApiErrorContractTestCase(ApiTestCase):
    def test_unknown_api_route_returns_json_error_shape(self):
        res = self.client.get("/api/does-not-exist")
        self.assertEqual(res.status_code, 404)
        self.assertTrue(res.is_json)
        body = res.get_json(force=True) or {}
        self.assertFalse(bool(body.get("ok", True)))
        self.assertTrue(str(body.get("error") or "").strip())
        self.assertTrue(str(body.get("message") or "").strip())
        self.assertEqual(int(body.get("status") or 0), 404)
        self.assertTrue(str(body.get("trace_id") or "").strip())

    def test_wrong_method_is_json_405(self):
        res = self.client.put("/api/listings")
        self.assertEqual(res.status_code, 405)
        self.assertEqual(int(res.get_json().get("status") or 0), 405)

    def test_generates_request_id_when_missing(self):
        res = self.client.get("/api/health")
        self.assertEqual(res.status_code, 200)
        rid = (res.headers.get("X-Request-ID") or "").strip()
        self.assertTrue(rid)
        uuid.UUID(rid)

    def test_echoes_request_id_when_provided(self):
        incoming = "rid-test-123"
        res = self.client.get("/api/health", headers={"X-Request-ID": incoming})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.headers.get("X-Request-ID"), incoming)

    def test_handler_error_payload_includes_trace_id(self):
        res = self.client.post("/api/listings", json={"title": "Missing auth"})
        self.assertEqual(res.status_code, 401)
        body = res.get_json(force=True)
        self.assertIsInstance(body, dict)
        self.assertFalse(body.get("ok"))
        self.assertEqual((body.get("trace_id") or "").strip(), (res.headers.get("X-Request-ID") or "").strip())

    def test_garbage_bearer_token_is_unauthorized(self):
        res = self.client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(res.status_code, 401)

    def test_site_root_is_not_an_api_route(self):
        res = self.client.get("/")
        self.assertEqual(res.status_code, 404)

    def test_health_reports_database(self):
        body = self.client.get("/api/health").get_json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["db"], "ok")
        self.assertEqual(body["service"], "brocante-backend")


if __name__ == "__main__":
    unittest.main()
