"""
HTTP routes for the wellness backend API.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from backend import billing
from backend.auth import AuthClient, Session
from backend.billing import BillingError, BillingProvider, CheckoutRequest, Identity
from backend.comments import (
    Comment,
    CommentNotFoundError,
    CommentStore,
    CommentValidationError,
    NoCommentsError,
    relative_day,
    summarize_comments,
)
from backend.config import get_settings
from backend.conversation import Conversation, SignedUrlError, fetch_signed_url
from backend.db import DbClient
from backend.dependencies import (
    get_auth_client,
    get_billing_provider,
    get_comment_store,
    get_conversation,
    get_db_client,
    get_journal_store,
    require_session,
)
from backend.journal import (
    EntryNotFoundError,
    JournalEntry,
    JournalStore,
    JournalValidationError,
    apply_prompt,
    apply_template,
)
from backend.schemas import (
    CheckoutPayload,
    CheckoutResponse,
    CommentPayload,
    CommentResponse,
    CommentSummaryResponse,
    ConversationEventPayload,
    DraftRequest,
    DraftResponse,
    JournalAidsResponse,
    JournalEntryPayload,
    JournalEntryResponse,
    JournalEntryUpdate,
    JournalTemplateResponse,
    ListCommentsResponse,
    ListEntriesResponse,
    ListPlansResponse,
    ListVideosResponse,
    MessageResponse,
    PaymentCallbackResponse,
    PlanResponse,
    PurchaseRequest,
    PurchaseResponse,
    SessionResponse,
    SignedUrlResponse,
    TranscriptResponse,
    VideoResponse,
)
from shared.constants import (
    CURRENCY,
    DEFAULT_MOOD,
    DEMO_USER_EMAIL,
    JOURNAL_MOODS,
    JOURNAL_PROMPTS,
    JOURNAL_TAGS,
    JOURNAL_TEMPLATES,
    PRICING_PLANS,
    VIDEOS,
    find_plan,
    find_video,
)
from shared.types import PaymentStatus

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _origin(request: Request) -> str:
    return request.headers.get("origin") or get_settings().default_origin


# --- Checkout & payments ---------------------------------------------------


@router.options("/create-checkout")
def create_checkout_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/create-checkout", response_model=None)
async def create_checkout(
    request: Request,
    provider: BillingProvider = Depends(get_billing_provider),
    auth: AuthClient = Depends(get_auth_client),
):
    """
    Opens a Stripe subscription checkout and returns its URL. Every failure,
    including a missing Stripe key or a malformed body, is a 500 with an
    `error` message; nothing is retried.
    """
    try:
        payload = CheckoutPayload.model_validate(await request.json())
        session = await run_in_threadpool(
            billing.create_checkout_session,
            CheckoutRequest(
                plan_id=payload.planId,
                plan_name=payload.planName,
                price=payload.price,
                payment_id=payload.paymentId,
            ),
            provider=provider,
            auth=auth,
            authorization=request.headers.get("authorization"),
            origin=_origin(request),
        )
    except Exception as e:
        logger.exception("Error creating checkout session")
        return JSONResponse(
            {"error": str(e) or "Unknown error"},
            status_code=500,
            headers=CORS_HEADERS,
        )
    return JSONResponse(
        CheckoutResponse(url=session.url).model_dump(),
        status_code=200,
        headers=CORS_HEADERS,
    )


def _mark_payment(
    db: DbClient,
    payment_id: Optional[str],
    status: PaymentStatus,
    stripe_session_id: Optional[str] = None,
) -> bool:
    """One best-effort update; failures are logged and never block the page."""
    if not payment_id:
        return False
    try:
        updated = db.update_payment_status(
            payment_id, status, stripe_session_id=stripe_session_id
        )
    except Exception:
        logger.exception("Error updating payment %s", payment_id)
        return False
    if updated:
        logger.info("Payment %s marked %s", payment_id, status.value)
    return updated


@router.get("/payment-success", response_model=PaymentCallbackResponse)
def payment_success(
    session_id: Optional[str] = Query(default=None),
    payment_id: Optional[str] = Query(default=None),
    db: DbClient = Depends(get_db_client),
):
    updated = _mark_payment(
        db, payment_id, PaymentStatus.COMPLETED, stripe_session_id=session_id
    )
    return PaymentCallbackResponse(
        status="completed",
        payment_id=payment_id,
        updated=updated,
        title="Payment Successful!",
        message="Thank you for your purchase. Your wellness journey begins now.",
        links={"Start Journaling": "/journal", "Back to Home": "/"},
    )


@router.get("/payment-cancel", response_model=PaymentCallbackResponse)
def payment_cancel(
    payment_id: Optional[str] = Query(default=None),
    db: DbClient = Depends(get_db_client),
):
    updated = _mark_payment(db, payment_id, PaymentStatus.CANCELLED)
    return PaymentCallbackResponse(
        status="cancelled",
        payment_id=payment_id,
        updated=updated,
        title="Payment Cancelled",
        message="Your payment was not completed. No charges were made to your account.",
        links={"Try Again": "/pricing", "Back to Home": "/"},
    )


@router.get("/plans", response_model=ListPlansResponse)
def list_plans():
    return ListPlansResponse(
        plans=[
            PlanResponse(
                id=plan.id,
                name=plan.name,
                price=plan.price,
                description=plan.description,
                features=list(plan.features),
                popular=plan.popular,
            )
            for plan in PRICING_PLANS
        ],
        currency=CURRENCY,
    )


@router.post("/purchase", response_model=PurchaseResponse)
def purchase(
    payload: PurchaseRequest,
    request: Request,
    session: Session = Depends(require_session),
    db: DbClient = Depends(get_db_client),
    provider: BillingProvider = Depends(get_billing_provider),
):
    """
    Records a pending payment for the signed-in user, then opens checkout.
    A failed checkout leaves the record pending.
    """
    plan = find_plan(payload.planId)
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")

    try:
        record = db.create_payment(
            user_id=session.user_id,
            amount=plan.amount_minor_units,
            plan_name=plan.name,
        )
    except Exception:
        logger.exception("Error recording payment for user %s", session.user_id)
        raise HTTPException(
            status_code=502, detail="Something went wrong. Please try again."
        )
    try:
        checkout = billing.create_checkout_session(
            CheckoutRequest(
                plan_id=plan.id,
                plan_name=plan.name,
                price=plan.price,
                payment_id=record.id,
            ),
            provider=provider,
            origin=_origin(request),
            identity=Identity(
                email=session.email or DEMO_USER_EMAIL, user_id=session.user_id
            ),
        )
    except BillingError as e:
        logger.exception("Payment error for %s", record.id)
        raise HTTPException(
            status_code=502,
            detail=str(e) or "Something went wrong. Please try again.",
        )
    return PurchaseResponse(url=checkout.url, paymentId=record.id)


# --- Session ---------------------------------------------------------------


@router.get("/me", response_model=SessionResponse)
def me(session: Session = Depends(require_session)):
    return SessionResponse(
        user_id=session.user_id, email=session.email, name=session.name
    )


# --- Journal ---------------------------------------------------------------


def _entry_response(entry: JournalEntry) -> JournalEntryResponse:
    return JournalEntryResponse(
        id=entry.id,
        title=entry.title,
        content=entry.content,
        date=entry.date,
        tags=list(entry.tags),
        mood=entry.mood,
    )


@router.get("/journal/entries", response_model=ListEntriesResponse)
def list_entries(
    q: str = Query(default=""),
    tags: list[str] = Query(default=[]),
    on_date: Optional[date] = Query(default=None, alias="date"),
    store: JournalStore = Depends(get_journal_store),
):
    entries = store.filter(q, tags, on_date)
    return ListEntriesResponse(
        entries=[_entry_response(e) for e in entries], total=len(entries)
    )


@router.post(
    "/journal/entries", response_model=JournalEntryResponse, status_code=201
)
def create_entry(
    payload: JournalEntryPayload,
    store: JournalStore = Depends(get_journal_store),
):
    try:
        entry = store.create(
            payload.title, payload.content, payload.tags, payload.mood
        )
    except JournalValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _entry_response(entry)


@router.patch("/journal/entries/{entry_id}", response_model=JournalEntryResponse)
def update_entry(
    entry_id: str,
    payload: JournalEntryUpdate,
    store: JournalStore = Depends(get_journal_store),
):
    try:
        entry = store.update(
            entry_id,
            title=payload.title,
            content=payload.content,
            tags=payload.tags,
            mood=payload.mood,
        )
    except EntryNotFoundError:
        raise HTTPException(status_code=404, detail="Entry not found")
    except JournalValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _entry_response(entry)


@router.delete("/journal/entries/{entry_id}", status_code=204)
def delete_entry(entry_id: str, store: JournalStore = Depends(get_journal_store)):
    store.delete(entry_id)
    return Response(status_code=204)


@router.get("/journal/aids", response_model=JournalAidsResponse)
def journal_aids():
    return JournalAidsResponse(
        tags=list(JOURNAL_TAGS),
        moods=list(JOURNAL_MOODS),
        default_mood=DEFAULT_MOOD,
        prompts=list(JOURNAL_PROMPTS),
        templates=[
            JournalTemplateResponse(name=t.name, content=t.content)
            for t in JOURNAL_TEMPLATES
        ],
    )


@router.post("/journal/draft", response_model=DraftResponse)
def journal_draft(payload: DraftRequest):
    """Applies a template and/or a writing prompt to a draft."""
    title, content = payload.title, payload.content
    if payload.template:
        try:
            title, content = apply_template(payload.template)
        except LookupError:
            raise HTTPException(status_code=404, detail="Template not found")
    if payload.prompt:
        content = apply_prompt(content, payload.prompt)
    return DraftResponse(title=title, content=content)


# --- Videos & comments -----------------------------------------------------


def _comment_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        video_id=comment.video_id,
        user_name=comment.user_name,
        text=comment.text,
        timestamp=comment.timestamp,
        likes=comment.likes,
        relative_time=relative_day(comment.timestamp),
    )


def _require_video(video_id: str) -> None:
    if find_video(video_id) is None:
        raise HTTPException(status_code=404, detail="Video not found")


@router.get("/videos", response_model=ListVideosResponse)
def list_videos(session: Session = Depends(require_session)):
    return ListVideosResponse(
        videos=[
            VideoResponse(
                id=v.id,
                title=v.title,
                description=v.description,
                youtube_id=v.youtube_id,
                duration=v.duration,
                category=v.category,
            )
            for v in VIDEOS
        ]
    )


@router.get("/videos/{video_id}/comments", response_model=ListCommentsResponse)
def list_comments(
    video_id: str,
    session: Session = Depends(require_session),
    store: CommentStore = Depends(get_comment_store),
):
    _require_video(video_id)
    return ListCommentsResponse(
        video_id=video_id,
        comments=[_comment_response(c) for c in store.for_video(video_id)],
    )


@router.post(
    "/videos/{video_id}/comments", response_model=CommentResponse, status_code=201
)
def add_comment(
    video_id: str,
    payload: CommentPayload,
    session: Session = Depends(require_session),
    store: CommentStore = Depends(get_comment_store),
):
    _require_video(video_id)
    try:
        comment = store.add(video_id, session.name, payload.text)
    except CommentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _comment_response(comment)


@router.post("/comments/{comment_id}/like", response_model=CommentResponse)
def like_comment(
    comment_id: str,
    session: Session = Depends(require_session),
    store: CommentStore = Depends(get_comment_store),
):
    try:
        comment = store.like(comment_id)
    except CommentNotFoundError:
        raise HTTPException(status_code=404, detail="Comment not found")
    return _comment_response(comment)


@router.post("/videos/{video_id}/summary", response_model=CommentSummaryResponse)
def summarize_video_comments(
    video_id: str,
    session: Session = Depends(require_session),
    store: CommentStore = Depends(get_comment_store),
):
    _require_video(video_id)
    try:
        result = summarize_comments(
            store.for_video(video_id), api_key=get_settings().gemini_api_key
        )
    except NoCommentsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Summarization error for video %s", video_id)
        raise HTTPException(
            status_code=502,
            detail="Could not generate summary. Please try again.",
        )
    return CommentSummaryResponse(
        video_id=result.video_id,
        summary=result.summary,
        comment_count=result.comment_count,
    )


# --- Voice assistant -------------------------------------------------------


def _transcript(conversation: Conversation) -> TranscriptResponse:
    return TranscriptResponse(
        connected=conversation.connected,
        messages=[
            MessageResponse(
                role=m.role.value, content=m.content, timestamp=m.timestamp
            )
            for m in conversation.messages
        ],
        last_error=conversation.last_error,
    )


@router.get("/assistant/signed-url", response_model=SignedUrlResponse)
def assistant_signed_url(session: Session = Depends(require_session)):
    settings = get_settings()
    try:
        signed_url = fetch_signed_url(
            settings.elevenlabs_agent_id, settings.elevenlabs_api_key
        )
    except SignedUrlError:
        logger.exception("Error starting conversation")
        raise HTTPException(status_code=502, detail="Failed to get signed URL")
    return SignedUrlResponse(signed_url=signed_url)


@router.post("/assistant/events", response_model=TranscriptResponse)
def assistant_event(
    payload: ConversationEventPayload,
    conversation: Conversation = Depends(get_conversation),
):
    conversation.dispatch(
        payload.type, payload.model_dump(exclude={"type"}, exclude_none=True)
    )
    return _transcript(conversation)


@router.get("/assistant/transcript", response_model=TranscriptResponse)
def assistant_transcript(conversation: Conversation = Depends(get_conversation)):
    return _transcript(conversation)


@router.delete("/assistant/transcript", status_code=204)
def end_conversation(conversation: Conversation = Depends(get_conversation)):
    conversation.end()
    return Response(status_code=204)
