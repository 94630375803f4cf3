import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from backend.app import create_app
from backend.billing import InMemoryBillingProvider, StripeBillingProvider
from backend.config import Settings
from backend.conversation import SignedUrlError
from backend.dependencies import (
    get_auth_client,
    get_billing_provider,
    get_db_client,
    reset_state,
)
from models.gemini import GeminiInvalidResponseException
from shared.types import PaymentStatus

CHECKOUT_BODY = {
    "planId": "premium",
    "planName": "Premium",
    "price": 19,
    "paymentId": "p1",
}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        reset_state()
        self.app = create_app()
        self.billing = InMemoryBillingProvider()
        self.app.dependency_overrides[get_billing_provider] = lambda: self.billing
        self.client = TestClient(self.app)
        self.session = get_auth_client().sign_in("ada@example.com", "Ada")
        self.headers = {"Authorization": f"Bearer {self.session.access_token}"}

    def tearDown(self):
        self.app.dependency_overrides.clear()
        reset_state()


class CheckoutApiTests(ApiTestCase):
    def test_checkout_without_token_uses_demo_identity(self):
        response = self.client.post("/api/create-checkout", json=CHECKOUT_BODY)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["access-control-allow-origin"], "*")
        self.assertTrue(response.json()["url"].startswith(self.billing.base_url))

        self.assertIn("demo@example.com", self.billing.customers)
        session = self.billing.sessions[-1]
        self.assertIn("payment_id=p1", session["success_url"])
        self.assertIn("session_id={CHECKOUT_SESSION_ID}", session["success_url"])
        self.assertIn("payment_id=p1", session["cancel_url"])
        self.assertEqual(session["metadata"]["user_id"], "demo-user")
        self.assertEqual(session["metadata"]["plan_id"], "premium")
        line_item = session["line_items"][0]
        self.assertEqual(line_item["price_data"]["unit_amount"], 1900)
        self.assertEqual(line_item["price_data"]["recurring"], {"interval": "month"})
        self.assertEqual(line_item["price_data"]["product_data"]["name"], "Premium Plan")

    def test_checkout_reuses_existing_customer(self):
        self.client.post("/api/create-checkout", json=CHECKOUT_BODY)
        self.client.post("/api/create-checkout", json={**CHECKOUT_BODY, "paymentId": "p2"})
        self.assertEqual(len(self.billing.customers), 1)
        first, second = self.billing.sessions
        self.assertEqual(first["customer"], second["customer"])

    def test_checkout_with_token_uses_signed_in_user(self):
        response = self.client.post(
            "/api/create-checkout", json=CHECKOUT_BODY, headers=self.headers
        )
        self.assertEqual(response.status_code, 200)
        customer = self.billing.customers["ada@example.com"]
        self.assertEqual(
            self.billing.customer_metadata[customer.id],
            {"supabase_user_id": self.session.user_id},
        )
        self.assertEqual(
            self.billing.sessions[-1]["metadata"]["user_id"], self.session.user_id
        )

    def test_checkout_bearer_null_falls_back_to_demo(self):
        response = self.client.post(
            "/api/create-checkout",
            json=CHECKOUT_BODY,
            headers={"Authorization": "Bearer null"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.billing.sessions[-1]["metadata"]["user_id"], "demo-user")

    def test_checkout_uses_request_origin(self):
        self.client.post(
            "/api/create-checkout",
            json=CHECKOUT_BODY,
            headers={"Origin": "https://wellness.example"},
        )
        session = self.billing.sessions[-1]
        self.assertTrue(
            session["success_url"].startswith("https://wellness.example/payment-success?")
        )
        self.assertEqual(
            session["cancel_url"], "https://wellness.example/payment-cancel?payment_id=p1"
        )

    def test_checkout_preflight(self):
        response = self.client.options("/api/create-checkout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, b"")
        self.assertEqual(response.headers["access-control-allow-origin"], "*")
        self.assertIn("authorization", response.headers["access-control-allow-headers"])

    def test_checkout_missing_stripe_key_is_500(self):
        self.app.dependency_overrides[get_billing_provider] = (
            lambda: StripeBillingProvider(api_key=None)
        )
        response = self.client.post("/api/create-checkout", json=CHECKOUT_BODY)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Stripe key not configured"})
        self.assertEqual(response.headers["access-control-allow-origin"], "*")

    def test_checkout_malformed_body_is_500(self):
        response = self.client.post("/api/create-checkout", json={"planId": "x"})
        self.assertEqual(response.status_code, 500)
        self.assertIn("error", response.json())
        self.assertEqual(self.billing.sessions, [])


class PaymentCallbackApiTests(ApiTestCase):
    def test_success_marks_payment_completed(self):
        db = get_db_client()
        record = db.create_payment("u1", 1900, "Premium")

        response = self.client.get(
            "/api/payment-success",
            params={"session_id": "sess_1", "payment_id": record.id},
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["updated"])
        self.assertEqual(response.json()["status"], "completed")

        stored = db.get_payment(record.id)
        self.assertEqual(stored.status, PaymentStatus.COMPLETED)
        self.assertEqual(stored.stripe_session_id, "sess_1")

    def test_cancel_marks_payment_cancelled(self):
        db = get_db_client()
        record = db.create_payment("u1", 900, "Starter")

        response = self.client.get(
            "/api/payment-cancel", params={"payment_id": record.id}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(db.get_payment(record.id).status, PaymentStatus.CANCELLED)
        self.assertIsNone(db.get_payment(record.id).stripe_session_id)

    def test_callback_without_payment_id_renders(self):
        response = self.client.get("/api/payment-cancel")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["updated"])

    def test_callback_store_failure_still_renders(self):
        db = get_db_client()
        record = db.create_payment("u1", 900, "Starter")
        with patch.object(db, "update_payment_status", side_effect=RuntimeError("down")):
            response = self.client.get(
                "/api/payment-success",
                params={"session_id": "sess_1", "payment_id": record.id},
            )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["updated"])
        self.assertEqual(db.get_payment(record.id).status, PaymentStatus.PENDING)


class PurchaseApiTests(ApiTestCase):
    def test_list_plans(self):
        response = self.client.get("/api/plans")
        self.assertEqual(response.status_code, 200)
        plans = {p["id"]: p for p in response.json()["plans"]}
        self.assertEqual(plans["starter"]["price"], 9)
        self.assertEqual(plans["premium"]["price"], 19)
        self.assertTrue(plans["premium"]["popular"])
        self.assertEqual(plans["ultimate"]["price"], 39)

    def test_purchase_requires_session(self):
        response = self.client.post("/api/purchase", json={"planId": "premium"})
        self.assertEqual(response.status_code, 401)

    def test_purchase_creates_pending_record_and_checkout(self):
        response = self.client.post(
            "/api/purchase", json={"planId": "premium"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 200)
        payment_id = response.json()["paymentId"]

        record = get_db_client().get_payment(payment_id)
        self.assertEqual(record.status, PaymentStatus.PENDING)
        self.assertEqual(record.amount, 1900)
        self.assertEqual(record.currency, "usd")
        self.assertEqual(record.plan_name, "Premium")
        self.assertEqual(record.user_id, self.session.user_id)
        self.assertIn(f"payment_id={payment_id}", self.billing.sessions[-1]["cancel_url"])

    def test_purchase_unknown_plan(self):
        response = self.client.post(
            "/api/purchase", json={"planId": "platinum"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 404)

    def test_purchase_checkout_failure_leaves_record_pending(self):
        self.app.dependency_overrides[get_billing_provider] = (
            lambda: StripeBillingProvider(api_key=None)
        )
        response = self.client.post(
            "/api/purchase", json={"planId": "starter"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 502)
        records = list(get_db_client().payments.values())
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].status, PaymentStatus.PENDING)

    def test_purchase_store_failure_is_502(self):
        db = get_db_client()
        with patch.object(db, "create_payment", side_effect=RuntimeError("db down")):
            response = self.client.post(
                "/api/purchase", json={"planId": "premium"}, headers=self.headers
            )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(
            response.json()["detail"], "Something went wrong. Please try again."
        )
        self.assertEqual(self.billing.sessions, [])

    def test_purchase_verifies_token_once(self):
        auth = get_auth_client()
        with patch.object(auth, "get_session", wraps=auth.get_session) as get_session:
            response = self.client.post(
                "/api/purchase", json={"planId": "starter"}, headers=self.headers
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(get_session.call_count, 1)
        self.assertIn("ada@example.com", self.billing.customers)
        self.assertEqual(
            self.billing.sessions[-1]["metadata"]["user_id"], self.session.user_id
        )


class JournalApiTests(ApiTestCase):
    def test_journal_requires_session(self):
        response = self.client.get("/api/journal/entries")
        self.assertEqual(response.status_code, 401)

    def test_list_starts_with_sample_entries(self):
        response = self.client.get("/api/journal/entries", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total"], 3)

    def test_create_entry_appears_first(self):
        response = self.client.post(
            "/api/journal/entries",
            json={"title": "Morning", "content": "Felt good", "tags": [], "mood": "😊"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 201)
        entry_id = response.json()["id"]

        entries = self.client.get(
            "/api/journal/entries", headers=self.headers
        ).json()["entries"]
        self.assertEqual(entries[0]["id"], entry_id)
        self.assertEqual(len(entries), 4)

    def test_create_blank_entry_is_rejected(self):
        response = self.client.post(
            "/api/journal/entries",
            json={"title": "  ", "content": "Felt good"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 400)

    def test_filter_by_text_tags_and_date(self):
        by_text = self.client.get(
            "/api/journal/entries", params={"q": "BUBBLE"}, headers=self.headers
        ).json()
        self.assertEqual([e["title"] for e in by_text["entries"]], ["Weekend Self-Care"])

        by_tag = self.client.get(
            "/api/journal/entries",
            params={"tags": ["#family", "#nothing"]},
            headers=self.headers,
        ).json()
        self.assertEqual([e["title"] for e in by_tag["entries"]], ["Balancing Act"])

        by_date = self.client.get(
            "/api/journal/entries", params={"date": "2024-12-04"}, headers=self.headers
        ).json()
        self.assertEqual([e["title"] for e in by_date["entries"]], ["Morning Reflections"])

    def test_update_and_delete(self):
        response = self.client.patch(
            "/api/journal/entries/2", json={"mood": "💪"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["mood"], "💪")
        self.assertEqual(response.json()["title"], "Balancing Act")

        missing = self.client.patch(
            "/api/journal/entries/nope", json={"mood": "💪"}, headers=self.headers
        )
        self.assertEqual(missing.status_code, 404)

        self.assertEqual(
            self.client.delete("/api/journal/entries/2", headers=self.headers).status_code,
            204,
        )
        self.assertEqual(
            self.client.delete("/api/journal/entries/2", headers=self.headers).status_code,
            204,
        )
        total = self.client.get("/api/journal/entries", headers=self.headers).json()["total"]
        self.assertEqual(total, 2)

    def test_journals_are_per_user(self):
        other = get_auth_client().sign_in("bo@example.com", "Bo")
        self.client.delete("/api/journal/entries/1", headers=self.headers)
        response = self.client.get(
            "/api/journal/entries",
            headers={"Authorization": f"Bearer {other.access_token}"},
        )
        self.assertEqual(response.json()["total"], 3)

    def test_draft_applies_template_then_prompt(self):
        response = self.client.post(
            "/api/journal/draft",
            json={"template": "Gratitude", "prompt": "Today's win..."},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["title"], "Gratitude")
        self.assertTrue(response.json()["content"].endswith("\n\nToday's win..."))

    def test_aids(self):
        aids = self.client.get("/api/journal/aids").json()
        self.assertEqual(aids["tags"], ["#work", "#family", "#selfcare"])
        self.assertEqual(aids["default_mood"], "😊")
        self.assertEqual(len(aids["templates"]), 3)


class VideoApiTests(ApiTestCase):
    def test_add_and_like_comment(self):
        response = self.client.post(
            "/api/videos/2/comments", json={"text": " Lovely flow "}, headers=self.headers
        )
        self.assertEqual(response.status_code, 201)
        comment = response.json()
        self.assertEqual(comment["user_name"], "Ada")
        self.assertEqual(comment["text"], "Lovely flow")
        self.assertEqual(comment["likes"], 0)
        self.assertEqual(comment["relative_time"], "Today")

        liked = self.client.post(
            f"/api/comments/{comment['id']}/like", headers=self.headers
        ).json()
        self.assertEqual(liked["likes"], 1)

        listed = self.client.get("/api/videos/2/comments", headers=self.headers).json()
        self.assertEqual([c["id"] for c in listed["comments"]], [comment["id"]])

    def test_blank_comment_and_unknown_video(self):
        blank = self.client.post(
            "/api/videos/1/comments", json={"text": "   "}, headers=self.headers
        )
        self.assertEqual(blank.status_code, 400)
        unknown = self.client.get("/api/videos/99/comments", headers=self.headers)
        self.assertEqual(unknown.status_code, 404)

    @patch("models.gemini.call_predict")
    def test_summarize_comments(self, mock_predict):
        mock_predict.return_value = "Viewers feel calmer and more centered."
        response = self.client.post("/api/videos/1/summary", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["comment_count"], 2)
        self.assertEqual(
            response.json()["summary"], "Viewers feel calmer and more centered."
        )
        prompt = mock_predict.call_args[0][0]
        self.assertIn('Sarah M.: "', prompt)
        self.assertIn('Emma L.: "', prompt)

    def test_summarize_without_comments(self):
        response = self.client.post("/api/videos/3/summary", headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["detail"], "There are no comments to summarize."
        )

    @patch("models.gemini.call_predict")
    def test_summarize_invalid_model_response(self, mock_predict):
        mock_predict.side_effect = GeminiInvalidResponseException()
        response = self.client.post("/api/videos/1/summary", headers=self.headers)
        self.assertEqual(response.status_code, 502)

    @patch("models.gemini.call_predict")
    def test_summarize_unexpected_failure_is_502(self, mock_predict):
        mock_predict.side_effect = ValueError("Missing key inputs argument!")
        response = self.client.post("/api/videos/1/summary", headers=self.headers)
        self.assertEqual(response.status_code, 502)
        self.assertEqual(
            response.json()["detail"], "Could not generate summary. Please try again."
        )


class AssistantApiTests(ApiTestCase):
    def test_transcript_from_events(self):
        self.client.post(
            "/api/assistant/events", json={"type": "connect"}, headers=self.headers
        )
        self.client.post(
            "/api/assistant/events",
            json={"type": "message", "source": "user", "message": "Hi"},
            headers=self.headers,
        )
        response = self.client.post(
            "/api/assistant/events",
            json={"type": "message", "source": "ai", "message": "Hello, Ada"},
            headers=self.headers,
        )
        transcript = response.json()
        self.assertTrue(transcript["connected"])
        self.assertEqual(
            [(m["role"], m["content"]) for m in transcript["messages"]],
            [("user", "Hi"), ("assistant", "Hello, Ada")],
        )

        self.assertEqual(
            self.client.delete("/api/assistant/transcript", headers=self.headers).status_code,
            204,
        )
        cleared = self.client.get("/api/assistant/transcript", headers=self.headers).json()
        self.assertEqual(cleared["messages"], [])

    @patch("backend.routes.fetch_signed_url")
    def test_signed_url(self, mock_fetch):
        mock_fetch.return_value = "wss://api.elevenlabs.io/v1/convai/conversation?token=t"
        response = self.client.get("/api/assistant/signed-url", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["signed_url"], mock_fetch.return_value)

    @patch("backend.routes.fetch_signed_url")
    def test_signed_url_failure(self, mock_fetch):
        mock_fetch.side_effect = SignedUrlError("no key")
        response = self.client.get("/api/assistant/signed-url", headers=self.headers)
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "Failed to get signed URL")

    def test_me(self):
        response = self.client.get("/api/me", headers=self.headers)
        self.assertEqual(response.json()["name"], "Ada")
        self.assertEqual(self.client.get("/api/me").status_code, 401)



class BillingProviderWiringTests(unittest.TestCase):
    def tearDown(self):
        reset_state()

    @patch("backend.dependencies.get_settings")
    def test_in_memory_backends_never_use_stripe(self, mock_settings):
        mock_settings.return_value = Settings(use_in_memory_backends=True)
        provider = get_billing_provider()
        self.assertIsInstance(provider, InMemoryBillingProvider)
        self.assertIs(get_billing_provider(), provider)

    @patch("backend.dependencies.get_settings")
    def test_stripe_provider_reads_key(self, mock_settings):
        mock_settings.return_value = Settings(
            stripe_secret_key="sk_test_1", use_in_memory_backends=False
        )
        provider = get_billing_provider()
        self.assertIsInstance(provider, StripeBillingProvider)
        self.assertEqual(provider.api_key, "sk_test_1")


if __name__ == "__main__":
    unittest.main()
