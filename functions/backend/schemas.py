"""
Pydantic schemas for the wellness FastAPI backend.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from shared.constants import (
    DEFAULT_MOOD,
    MAX_COMMENT_LENGTH,
    MAX_CONTENT_LENGTH,
    MAX_TITLE_LENGTH,
)


class CheckoutPayload(BaseModel):
    planId: str = Field(..., max_length=64)
    planName: str = Field(..., max_length=128)
    price: int = Field(..., ge=0)
    paymentId: str = Field(..., max_length=64)


class CheckoutResponse(BaseModel):
    url: str


class PaymentCallbackResponse(BaseModel):
    status: Literal["completed", "cancelled"]
    payment_id: Optional[str] = None
    updated: bool
    title: str
    message: str
    links: dict[str, str]


class PlanResponse(BaseModel):
    id: str
    name: str
    price: int
    description: str
    features: list[str]
    popular: bool = False


class ListPlansResponse(BaseModel):
    plans: list[PlanResponse]
    currency: str


class PurchaseRequest(BaseModel):
    planId: str = Field(..., max_length=64)


class PurchaseResponse(BaseModel):
    url: str
    paymentId: str


class JournalEntryPayload(BaseModel):
    title: str = Field(..., max_length=MAX_TITLE_LENGTH)
    content: str = Field(..., max_length=MAX_CONTENT_LENGTH)
    tags: list[str] = Field(default_factory=list)
    mood: str = DEFAULT_MOOD


class JournalEntryUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=MAX_TITLE_LENGTH)
    content: Optional[str] = Field(default=None, max_length=MAX_CONTENT_LENGTH)
    tags: Optional[list[str]] = None
    mood: Optional[str] = None


class JournalEntryResponse(BaseModel):
    id: str
    title: str
    content: str
    date: datetime
    tags: list[str]
    mood: str


class ListEntriesResponse(BaseModel):
    entries: list[JournalEntryResponse]
    total: int


class JournalTemplateResponse(BaseModel):
    name: str
    content: str


class JournalAidsResponse(BaseModel):
    tags: list[str]
    moods: list[str]
    default_mood: str
    prompts: list[str]
    templates: list[JournalTemplateResponse]


class VideoResponse(BaseModel):
    id: str
    title: str
    description: str
    youtube_id: str
    duration: str
    category: str


class ListVideosResponse(BaseModel):
    videos: list[VideoResponse]


class CommentPayload(BaseModel):
    text: str = Field(..., max_length=MAX_COMMENT_LENGTH)


class CommentResponse(BaseModel):
    id: str
    video_id: str
    user_name: str
    text: str
    timestamp: datetime
    likes: int
    relative_time: str


class ListCommentsResponse(BaseModel):
    video_id: str
    comments: list[CommentResponse]


class CommentSummaryResponse(BaseModel):
    video_id: str
    summary: str
    comment_count: int


class SignedUrlResponse(BaseModel):
    signed_url: str


class ConversationEventPayload(BaseModel):
    type: Literal["connect", "disconnect", "message", "error"]
    message: Optional[str] = None
    source: Optional[str] = None
    error: Optional[str] = None


class MessageResponse(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class TranscriptResponse(BaseModel):
    connected: bool
    messages: list[MessageResponse]
    last_error: Optional[str] = None


class DraftRequest(BaseModel):
    title: str = ""
    content: str = ""
    template: Optional[str] = None
    prompt: Optional[str] = None


class DraftResponse(BaseModel):
    title: str
    content: str


class SessionResponse(BaseModel):
    user_id: str
    email: str
    name: str
