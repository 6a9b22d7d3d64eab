from __future__ import annotations

import importlib
import unittest


class ImportsBootTestCase(unittest.TestCase):
    def test_import_create_app(self):
        module = importlib.import_module("brocante")
        create_app = getattr(module, "create_app", None)
        self.assertTrue(callable(create_app))

    def test_import_main_app(self):
        module = importlib.import_module("main")
        app = getattr(module, "app", None)
        self.assertIsNotNone(app)

    def test_all_segments_register_under_api(self):
        module = importlib.import_module("main")
        rules = {rule.rule for rule in module.app.url_map.iter_rules()}
        for expected in (
            "/api/auth/login",
            "/api/profile",
            "/api/listings",
            "/api/orders/<int:order_id>",
            "/api/reviews",
            "/api/conversations/<int:conversation_id>/messages",
            "/api/admin/stats",
        ):
            self.assertIn(expected, rules)


if __name__ == "__main__":
    unittest.main()
