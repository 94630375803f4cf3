import unittest

from backend.db import InMemoryDbClient, InvalidPaymentTransition, PostgresDbClient
from shared.types import PaymentStatus


class PaymentStoreContract:
    """Shared checks run against every DbClient implementation."""

    db = None

    def test_create_payment_is_pending(self):
        record = self.db.create_payment("u-1", 1900, "Premium")
        self.assertEqual(record.status, PaymentStatus.PENDING)
        self.assertEqual(record.currency, "usd")
        self.assertIsNone(record.stripe_session_id)
        fetched = self.db.get_payment(record.id)
        self.assertEqual(fetched.id, record.id)
        self.assertEqual(fetched.amount, 1900)
        self.assertEqual(fetched.plan_name, "Premium")

    def test_complete_payment_stores_session(self):
        record = self.db.create_payment("u-1", 900, "Starter")
        updated = self.db.update_payment_status(
            record.id, PaymentStatus.COMPLETED, stripe_session_id="sess_1"
        )
        self.assertTrue(updated)
        fetched = self.db.get_payment(record.id)
        self.assertEqual(fetched.status, PaymentStatus.COMPLETED)
        self.assertEqual(fetched.stripe_session_id, "sess_1")

    def test_cancel_payment(self):
        record = self.db.create_payment("u-1", 3900, "Ultimate")
        self.db.update_payment_status(record.id, PaymentStatus.CANCELLED)
        self.assertEqual(
            self.db.get_payment(record.id).status, PaymentStatus.CANCELLED
        )

    def test_cannot_return_to_pending(self):
        record = self.db.create_payment("u-1", 900, "Starter")
        self.db.update_payment_status(record.id, PaymentStatus.CANCELLED)
        with self.assertRaises(InvalidPaymentTransition):
            self.db.update_payment_status(record.id, PaymentStatus.PENDING)
        self.assertEqual(
            self.db.get_payment(record.id).status, PaymentStatus.CANCELLED
        )

    def test_last_write_wins_between_terminal_states(self):
        record = self.db.create_payment("u-1", 900, "Starter")
        self.db.update_payment_status(record.id, PaymentStatus.CANCELLED)
        self.db.update_payment_status(
            record.id, PaymentStatus.COMPLETED, stripe_session_id="sess_2"
        )
        self.assertEqual(
            self.db.get_payment(record.id).status, PaymentStatus.COMPLETED
        )

    def test_unknown_payment(self):
        self.assertIsNone(self.db.get_payment("missing"))
        self.assertFalse(
            self.db.update_payment_status("missing", PaymentStatus.COMPLETED)
        )


class PostgresDbClientTests(PaymentStoreContract, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    @classmethod
    def setUpClass(cls):
        cls.db = PostgresDbClient("sqlite+pysqlite:///:memory:")

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            PostgresDbClient("")


class InMemoryDbClientTests(PaymentStoreContract, unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()


if __name__ == "__main__":
    unittest.main()
