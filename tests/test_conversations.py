from __future__ import annotations

import unittest

from tests.helpers import ApiTestCase, auth


class ConversationsTestCase(ApiTestCase):
    def _start(self, token: str, listing_id: int, seller_id: int):
        return self.client.post(
            "/api/conversations",
            json={"listing_id": listing_id, "seller_id": seller_id},
            headers=auth(token),
        )

    def _send(self, token: str, conversation_id: int, content: str):
        return self.client.post(
            f"/api/conversations/{conversation_id}/messages",
            json={"content": content},
            headers=auth(token),
        )

    def _pair(self):
        seller_id, seller_token = self.make_user(name="Seller")
        buyer_id, buyer_token = self.make_user(name="Buyer")
        listing = self.create_listing(seller_token)
        return seller_id, seller_token, buyer_id, buyer_token, listing

    def test_start_conversation_is_idempotent(self):
        seller_id, _seller_token, buyer_id, buyer_token, listing = self._pair()
        first = self._start(buyer_token, listing["id"], seller_id)
        self.assertEqual(first.status_code, 201, first.get_json())
        conv = first.get_json()["conversation"]
        self.assertEqual(conv["listing"]["id"], listing["id"])
        self.assertEqual(conv["other_participant"]["id"], seller_id)
        self.assertEqual({p["id"] for p in conv["participants"]}, {seller_id, buyer_id})

        second = self._start(buyer_token, listing["id"], seller_id)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second.get_json()["conversation"]["id"], conv["id"])

    def test_cannot_message_yourself(self):
        seller_id, seller_token, _buyer_id, _buyer_token, listing = self._pair()
        res = self._start(seller_token, listing["id"], seller_id)
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.get_json()["message"], "You cannot message yourself")

    def test_start_with_unknown_listing_or_seller(self):
        seller_id, _seller_token, _buyer_id, buyer_token, listing = self._pair()
        self.assertEqual(self._start(buyer_token, 999999, seller_id).status_code, 404)
        missing_seller = self._start(buyer_token, listing["id"], 999999)
        self.assertEqual(missing_seller.status_code, 404)
        self.assertEqual(missing_seller.get_json()["message"], "Seller not found")

    def test_messages_flow_and_read_marking(self):
        seller_id, seller_token, buyer_id, buyer_token, listing = self._pair()
        conv_id = self._start(buyer_token, listing["id"], seller_id).get_json()["conversation"]["id"]

        sent = self._send(buyer_token, conv_id, "Is this still available?")
        self.assertEqual(sent.status_code, 201, sent.get_json())
        msg = sent.get_json()["message"]
        self.assertEqual(msg["sender_id"], buyer_id)
        self.assertEqual(msg["listing_id"], listing["id"])
        self.assertFalse(msg["read"])
        self.assertEqual(self._send(buyer_token, conv_id, "I can pick it up today.").status_code, 201)

        inbox = self.client.get("/api/conversations", headers=auth(seller_token)).get_json()["items"]
        entry = next(c for c in inbox if c["id"] == conv_id)
        self.assertEqual(entry["unread_count"], 2)
        self.assertEqual(entry["last_message"]["content"], "I can pick it up today.")
        self.assertEqual(entry["other_participant"]["id"], buyer_id)

        # The sender's own messages never count as unread for them.
        buyer_inbox = self.client.get("/api/conversations", headers=auth(buyer_token)).get_json()["items"]
        self.assertEqual(next(c for c in buyer_inbox if c["id"] == conv_id)["unread_count"], 0)

        listed = self.client.get(f"/api/conversations/{conv_id}/messages", headers=auth(seller_token))
        self.assertEqual(listed.status_code, 200)
        items = listed.get_json()["items"]
        self.assertEqual([m["content"] for m in items], ["Is this still available?", "I can pick it up today."])
        self.assertFalse(items[0]["read"])

        inbox = self.client.get("/api/conversations", headers=auth(seller_token)).get_json()["items"]
        self.assertEqual(next(c for c in inbox if c["id"] == conv_id)["unread_count"], 0)

        again = self.client.get(f"/api/conversations/{conv_id}/messages", headers=auth(seller_token))
        self.assertTrue(all(m["read"] for m in again.get_json()["items"]))

    def test_outsider_cannot_read_or_post(self):
        seller_id, _seller_token, _buyer_id, buyer_token, listing = self._pair()
        conv_id = self._start(buyer_token, listing["id"], seller_id).get_json()["conversation"]["id"]
        _uid, stranger_token = self.make_user()

        view = self.client.get(f"/api/conversations/{conv_id}/messages", headers=auth(stranger_token))
        self.assertEqual(view.status_code, 403)
        post = self._send(stranger_token, conv_id, "Hello?")
        self.assertEqual(post.status_code, 403)
        missing = self.client.get("/api/conversations/999999/messages", headers=auth(buyer_token))
        self.assertEqual(missing.status_code, 404)

    def test_empty_message_rejected(self):
        seller_id, _seller_token, _buyer_id, buyer_token, listing = self._pair()
        conv_id = self._start(buyer_token, listing["id"], seller_id).get_json()["conversation"]["id"]
        res = self._send(buyer_token, conv_id, "   ")
        self.assertEqual(res.status_code, 400)

    def test_inbox_orders_by_latest_activity(self):
        seller_id, seller_token, _buyer_id, buyer_token, listing = self._pair()
        other_listing = self.create_listing(seller_token, title="Leather belt")
        older = self._start(buyer_token, listing["id"], seller_id).get_json()["conversation"]["id"]
        newer = self._start(buyer_token, other_listing["id"], seller_id).get_json()["conversation"]["id"]
        self.assertEqual(self._send(buyer_token, older, "Bumping the first one").status_code, 201)

        inbox = self.client.get("/api/conversations", headers=auth(buyer_token)).get_json()["items"]
        ids = [c["id"] for c in inbox]
        self.assertLess(ids.index(older), ids.index(newer))

    def test_conversations_require_auth(self):
        self.assertEqual(self.client.get("/api/conversations").status_code, 401)


if __name__ == "__main__":
    unittest.main()
