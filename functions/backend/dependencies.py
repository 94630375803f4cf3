"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import Depends, Header, HTTPException

from backend.auth import (
    AuthClient,
    AuthServiceError,
    InMemoryAuthClient,
    Session,
    SupabaseAuthClient,
    parse_bearer,
)
from backend.billing import (
    BillingProvider,
    InMemoryBillingProvider,
    StripeBillingProvider,
)
from backend.comments import CommentStore, sample_comments
from backend.config import get_settings
from backend.conversation import Conversation
from backend.db import DbClient, InMemoryDbClient, PostgresDbClient
from backend.journal import JournalStore, sample_entries

_db_client: DbClient | None = None
_auth_client: AuthClient | None = None
_comment_store: CommentStore | None = None
_billing_provider: InMemoryBillingProvider | None = None
# Keyed by user_id and never evicted; state lives only as long as the process.
_journal_stores: Dict[str, JournalStore] = {}
_conversations: Dict[str, Conversation] = {}


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so payment state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if (
        settings.use_in_memory_backends
        or not settings.supabase_url
        or not settings.supabase_anon_key
    ):
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = SupabaseAuthClient(
            settings.supabase_url, settings.supabase_anon_key
        )
    return _auth_client


def get_billing_provider() -> BillingProvider:
    """
    Built per request so the Stripe key is read at request time; a missing key
    only fails the checkout call that needs it. With in-memory backends the
    provider is a shared recorder and Stripe is never called.
    """
    global _billing_provider
    settings = get_settings()
    if settings.use_in_memory_backends:
        if _billing_provider is None:
            _billing_provider = InMemoryBillingProvider()
        return _billing_provider
    return StripeBillingProvider(api_key=settings.stripe_secret_key)


def get_comment_store() -> CommentStore:
    global _comment_store
    if _comment_store is None:
        _comment_store = CommentStore(sample_comments())
    return _comment_store


def get_optional_session(
    authorization: Optional[str] = Header(default=None),
    auth: AuthClient = Depends(get_auth_client),
) -> Optional[Session]:
    token = parse_bearer(authorization)
    if not token:
        return None
    try:
        return auth.get_session(token)
    except AuthServiceError:
        raise HTTPException(status_code=503, detail="Auth service unavailable")


def require_session(
    session: Optional[Session] = Depends(get_optional_session),
) -> Session:
    if session is None:
        raise HTTPException(status_code=401, detail="Please sign in")
    return session


def get_journal_store(session: Session = Depends(require_session)) -> JournalStore:
    """One journal per signed-in user, seeded with the sample entries."""
    store = _journal_stores.get(session.user_id)
    if store is None:
        store = JournalStore(sample_entries())
        _journal_stores[session.user_id] = store
    return store


def get_conversation(session: Session = Depends(require_session)) -> Conversation:
    conversation = _conversations.get(session.user_id)
    if conversation is None:
        conversation = Conversation()
        _conversations[session.user_id] = conversation
    return conversation


def reset_state() -> None:
    """Drop every per-process store (useful in tests)."""
    global _db_client, _auth_client, _comment_store, _billing_provider
    _db_client = None
    _billing_provider = None
    _auth_client = None
    _comment_store = None
    _journal_stores.clear()
    _conversations.clear()
