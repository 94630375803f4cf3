"""
Checkout session issuer backed by Stripe.

Resolves the caller, finds or creates the Stripe customer and opens a
monthly subscription Checkout Session for a single plan.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import stripe

from backend.auth import AuthClient, AuthServiceError, parse_bearer
from shared.constants import CURRENCY, DEMO_USER_EMAIL, DEMO_USER_ID

logger = logging.getLogger(__name__)

# Stripe substitutes the real session id into this placeholder on redirect.
CHECKOUT_SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


class BillingError(Exception):
    pass


class BillingConfigurationError(BillingError):
    pass


class BillingResponseError(BillingError):
    """The provider answered, but not with the fields we need."""


@dataclass(frozen=True)
class CheckoutRequest:
    plan_id: str
    plan_name: str
    price: int
    payment_id: str


@dataclass(frozen=True)
class Identity:
    email: str
    user_id: str
    is_demo: bool = False


@dataclass(frozen=True)
class BillingCustomer:
    id: str
    email: str


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


class BillingProvider(Protocol):
    def find_customer(self, email: str) -> Optional[BillingCustomer]:
        ...

    def create_customer(self, email: str, user_id: str) -> BillingCustomer:
        ...

    def create_checkout_session(self, params: dict) -> CheckoutSession:
        ...


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class StripeBillingProvider:
    """Stripe API calls, authenticated per call with the configured secret key."""

    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    def _key(self) -> str:
        if not self.api_key:
            raise BillingConfigurationError("Stripe key not configured")
        return self.api_key

    def find_customer(self, email: str) -> Optional[BillingCustomer]:
        key = self._key()
        try:
            result = stripe.Customer.list(email=email, limit=1, api_key=key)
        except stripe.StripeError as e:
            raise BillingError(f"Stripe error: {e}") from e
        data = _field(result, "data") or []
        if not data:
            return None
        customer_id = _field(data[0], "id")
        if not customer_id:
            raise BillingResponseError("Stripe customer has no id")
        return BillingCustomer(id=customer_id, email=email)

    def create_customer(self, email: str, user_id: str) -> BillingCustomer:
        key = self._key()
        try:
            customer = stripe.Customer.create(
                email=email,
                metadata={"supabase_user_id": user_id},
                api_key=key,
            )
        except stripe.StripeError as e:
            raise BillingError(f"Stripe error: {e}") from e
        customer_id = _field(customer, "id")
        if not customer_id:
            raise BillingResponseError("Stripe customer has no id")
        return BillingCustomer(id=customer_id, email=email)

    def create_checkout_session(self, params: dict) -> CheckoutSession:
        key = self._key()
        try:
            session = stripe.checkout.Session.create(api_key=key, **params)
        except stripe.StripeError as e:
            raise BillingError(f"Stripe error: {e}") from e
        session_id = _field(session, "id")
        url = _field(session, "url")
        if not session_id or not url:
            raise BillingResponseError("Stripe did not return a checkout URL")
        return CheckoutSession(id=session_id, url=url)


@dataclass
class InMemoryBillingProvider:
    """Records customers and sessions instead of calling Stripe."""

    base_url: str = "https://checkout.example.test/pay"
    customers: Dict[str, BillingCustomer] = field(default_factory=dict)
    customer_metadata: Dict[str, dict] = field(default_factory=dict)
    sessions: List[dict] = field(default_factory=list)

    def find_customer(self, email: str) -> Optional[BillingCustomer]:
        return self.customers.get(email)

    def create_customer(self, email: str, user_id: str) -> BillingCustomer:
        customer = BillingCustomer(id=f"cus_{uuid.uuid4().hex[:14]}", email=email)
        self.customers[email] = customer
        self.customer_metadata[customer.id] = {"supabase_user_id": user_id}
        return customer

    def create_checkout_session(self, params: dict) -> CheckoutSession:
        session_id = f"cs_test_{uuid.uuid4().hex}"
        self.sessions.append({"id": session_id, **params})
        return CheckoutSession(id=session_id, url=f"{self.base_url}/{session_id}")

    def reset(self) -> None:
        self.customers.clear()
        self.customer_metadata.clear()
        self.sessions.clear()


def resolve_identity(
    authorization: Optional[str], auth: Optional[AuthClient]
) -> Identity:
    """
    Uses the bearer token's user when it verifies. Anything else falls back
    to the shared demo identity, which is still charged for real.
    """
    token = parse_bearer(authorization)
    if token and auth is not None:
        try:
            session = auth.get_session(token)
        except AuthServiceError:
            logger.exception("Auth service unavailable while resolving checkout user")
            session = None
        if session:
            return Identity(
                email=session.email or DEMO_USER_EMAIL, user_id=session.user_id
            )
    logger.warning("Checkout without a verified user; using demo identity")
    return Identity(email=DEMO_USER_EMAIL, user_id=DEMO_USER_ID, is_demo=True)


def resolve_customer(provider: BillingProvider, identity: Identity) -> BillingCustomer:
    existing = provider.find_customer(identity.email)
    if existing:
        return existing
    return provider.create_customer(identity.email, identity.user_id)


def success_url(origin: str, payment_id: str) -> str:
    return (
        f"{origin}/payment-success?session_id={CHECKOUT_SESSION_ID_PLACEHOLDER}"
        f"&payment_id={payment_id}"
    )


def cancel_url(origin: str, payment_id: str) -> str:
    return f"{origin}/payment-cancel?payment_id={payment_id}"


def build_session_params(
    request: CheckoutRequest, customer_id: str, user_id: str, origin: str
) -> dict:
    return {
        "customer": customer_id,
        "payment_method_types": ["card"],
        "line_items": [
            {
                "price_data": {
                    "currency": CURRENCY,
                    "product_data": {
                        "name": f"{request.plan_name} Plan",
                        "description": (
                            f"Monthly subscription to the {request.plan_name} "
                            "wellness plan"
                        ),
                    },
                    "unit_amount": request.price * 100,
                    "recurring": {"interval": "month"},
                },
                "quantity": 1,
            }
        ],
        "mode": "subscription",
        "success_url": success_url(origin, request.payment_id),
        "cancel_url": cancel_url(origin, request.payment_id),
        "metadata": {
            "payment_id": request.payment_id,
            "plan_id": request.plan_id,
            "user_id": user_id,
        },
    }


def create_checkout_session(
    request: CheckoutRequest,
    *,
    provider: BillingProvider,
    auth: Optional[AuthClient] = None,
    authorization: Optional[str] = None,
    origin: str,
    identity: Optional[Identity] = None,
) -> CheckoutSession:
    """
    Single attempt; any failure propagates and the payment record stays pending.

    Callers that already hold a verified identity pass it in; otherwise it is
    resolved from the bearer header.
    """
    logger.info(
        "Creating checkout session for plan=%s price=%s payment=%s",
        request.plan_id,
        request.price,
        request.payment_id,
    )
    if identity is None:
        identity = resolve_identity(authorization, auth)
    customer = resolve_customer(provider, identity)
    params = build_session_params(request, customer.id, identity.user_id, origin)
    session = provider.create_checkout_session(params)
    logger.info("Checkout session created: %s", session.id)
    return session
