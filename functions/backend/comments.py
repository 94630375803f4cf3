"""
Video comments: add, like, list and AI summaries.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from models import gemini, prompts
from shared.constants import MAX_COMMENT_LENGTH

logger = logging.getLogger(__name__)


class CommentValidationError(ValueError):
    pass


class CommentNotFoundError(LookupError):
    pass


class NoCommentsError(LookupError):
    pass


@dataclass
class Comment:
    id: str
    video_id: str
    user_name: str
    text: str
    timestamp: datetime
    likes: int = 0

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "video_id": self.video_id,
            "user_name": self.user_name,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
            "likes": self.likes,
        }


@dataclass
class CommentSummary:
    video_id: str
    summary: str
    comment_count: int
    elapsed_seconds: float


class CommentStore:
    """In-memory comments, newest first."""

    def __init__(self, comments: Optional[list[Comment]] = None):
        self.comments: list[Comment] = list(comments or [])

    def for_video(self, video_id: str) -> list[Comment]:
        return [c for c in self.comments if c.video_id == video_id]

    def add(self, video_id: str, user_name: str, text: str) -> Comment:
        text = (text or "").strip()
        if not text:
            raise CommentValidationError("Comment text is required")
        if len(text) > MAX_COMMENT_LENGTH:
            raise CommentValidationError("Comment is too long")
        comment = Comment(
            id=uuid.uuid4().hex,
            video_id=video_id,
            user_name=user_name,
            text=text,
            timestamp=datetime.now(),
        )
        self.comments.insert(0, comment)
        return comment

    def like(self, comment_id: str) -> Comment:
        for comment in self.comments:
            if comment.id == comment_id:
                comment.likes += 1
                return comment
        raise CommentNotFoundError(comment_id)

    def reset(self, comments: Optional[list[Comment]] = None) -> None:
        self.comments = list(comments or [])


def summarize_comments(
    comments: list[Comment],
    *,
    api_key: str | None = None,
    predict: Optional[Callable[..., str]] = None,
) -> CommentSummary:
    """
    Asks Gemini for a short summary of a video's comments.

    Raises:
        NoCommentsError: if there is nothing to summarize.
        GeminiInvalidResponseException: if the model returns no text.
    """
    if not comments:
        raise NoCommentsError("There are no comments to summarize.")

    video_id = comments[0].video_id
    prompt = prompts.make_comment_summary_prompt(
        (c.user_name, c.text) for c in comments
    )
    start_time = time.time()
    text = (predict or gemini.call_predict)(prompt, api_key=api_key)
    elapsed = time.time() - start_time
    logger.info(
        "Summarized %d comments for video %s in %.2fs", len(comments), video_id, elapsed
    )
    if not text or not text.strip():
        raise gemini.GeminiInvalidResponseException()
    return CommentSummary(
        video_id=video_id,
        summary=text.strip(),
        comment_count=len(comments),
        elapsed_seconds=elapsed,
    )


def sample_comments(now: Optional[datetime] = None) -> list[Comment]:
    now = now or datetime.now()
    return [
        Comment(
            id="1",
            video_id="1",
            user_name="Sarah M.",
            text=(
                "This meditation changed my mornings completely. "
                "I feel so much more centered now. 🙏"
            ),
            timestamp=now - timedelta(days=1),
            likes=12,
        ),
        Comment(
            id="2",
            video_id="1",
            user_name="Emma L.",
            text=(
                "Beautiful guidance. The breathwork section was particularly "
                "powerful for me."
            ),
            timestamp=now - timedelta(days=2),
            likes=8,
        ),
    ]


def relative_day(timestamp: datetime, now: Optional[datetime] = None) -> str:
    days = ((now or datetime.now()) - timestamp).days
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    return f"{days} days ago"
