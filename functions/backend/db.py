"""
Payment record storage for Postgres (Supabase) and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, Float, Integer, String, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.constants import CURRENCY
from shared.types import PaymentStatus

logger = logging.getLogger(__name__)


class InvalidPaymentTransition(ValueError):
    """Raised when a record would be moved back to pending."""


class DbClient(Protocol):
    """Interface for payment record access."""

    def create_payment(
        self,
        user_id: str,
        amount: int,
        plan_name: str,
        currency: str = CURRENCY,
    ) -> "PaymentRecord":
        ...

    def get_payment(self, payment_id: str) -> Optional["PaymentRecord"]:
        ...

    def update_payment_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        *,
        stripe_session_id: Optional[str] = None,
    ) -> bool:
        ...


@dataclass
class PaymentRecord:
    id: str
    user_id: str
    amount: int
    currency: str
    plan_name: str
    status: PaymentStatus = PaymentStatus.PENDING
    stripe_session_id: Optional[str] = None
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": self.amount,
            "currency": self.currency,
            "plan_name": self.plan_name,
            "status": self.status.value,
            "stripe_session_id": self.stripe_session_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def _check_target_status(status: PaymentStatus) -> None:
    # Only pending -> completed | cancelled is valid; terminal -> terminal is
    # last-write-wins.
    if not status.is_terminal:
        raise InvalidPaymentTransition(f"Cannot move a payment to {status.value}")


class InMemoryDbClient:
    """Simple in-memory payment store for development and tests."""

    def __init__(self):
        self.payments: Dict[str, PaymentRecord] = {}

    def create_payment(
        self,
        user_id: str,
        amount: int,
        plan_name: str,
        currency: str = CURRENCY,
    ) -> PaymentRecord:
        record = PaymentRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            amount=amount,
            currency=currency,
            plan_name=plan_name,
        )
        self.payments[record.id] = record
        return record

    def get_payment(self, payment_id: str) -> Optional[PaymentRecord]:
        return self.payments.get(payment_id)

    def update_payment_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        *,
        stripe_session_id: Optional[str] = None,
    ) -> bool:
        _check_target_status(status)
        record = self.payments.get(payment_id)
        if not record:
            return False
        record.status = status
        if stripe_session_id is not None:
            record.stripe_session_id = stripe_session_id
        record.updated_at = time.time()
        return True

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.payments.clear()


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., the
    Supabase Postgres URL, or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_record(self, row: "PaymentRow") -> PaymentRecord:
        return PaymentRecord(
            id=row.id,
            user_id=row.user_id,
            amount=row.amount,
            currency=row.currency,
            plan_name=row.plan_name,
            status=PaymentStatus(row.status),
            stripe_session_id=row.stripe_session_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def create_payment(
        self,
        user_id: str,
        amount: int,
        plan_name: str,
        currency: str = CURRENCY,
    ) -> PaymentRecord:
        now = time.time()
        with self.Session() as session:
            row = PaymentRow(
                id=str(uuid.uuid4()),
                user_id=user_id,
                amount=amount,
                currency=currency,
                plan_name=plan_name,
                status=PaymentStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def get_payment(self, payment_id: str) -> Optional[PaymentRecord]:
        with self.Session() as session:
            row = session.get(PaymentRow, payment_id)
            if not row:
                return None
            return self._to_record(row)

    def update_payment_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        *,
        stripe_session_id: Optional[str] = None,
    ) -> bool:
        _check_target_status(status)
        with self.Session() as session:
            row = session.get(PaymentRow, payment_id)
            if not row:
                logger.warning("Payment %s not found; nothing updated", payment_id)
                return False
            row.status = status.value
            if stripe_session_id is not None:
                row.stripe_session_id = stripe_session_id
            row.updated_at = time.time()
            session.commit()
            return True


Base = declarative_base()


class PaymentRow(Base):
    __tablename__ = "payments"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    currency = Column(String, nullable=False, default=CURRENCY)
    plan_name = Column(String, nullable=False)
    status = Column(String, nullable=False, index=True)
    stripe_session_id = Column(String, nullable=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
