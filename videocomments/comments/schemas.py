"""Pydantic schemas for the comment API.

Request/Response models with validation for:
- Comment and reply creation
- Ranked, cursor-paginated listings
- Counter mutations
- The pagination cursor codec
"""

import base64
import json
from datetime import UTC, datetime
from typing import NamedTuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import InvalidCursorError
from .models import Comment, Reply
from .ranking import RankedComment, RankedReply


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Request to create a new top-level comment."""

    video_id: str = Field(..., min_length=1, max_length=200)
    user_id: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        v = v.strip()
        if not v:
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


class CreateReplyRequest(BaseModel):
    """Request to reply to a comment."""

    user_id: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        v = v.strip()
        if not v:
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(BaseModel):
    """Response for a single comment."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    video_id: str
    user_id: str
    content: str
    likes: int = 0
    dislikes: int = 0
    reply_count: int = 0
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            video_id=comment.video_id,
            user_id=comment.user_id,
            content=comment.content,
            likes=comment.likes,
            dislikes=comment.dislikes,
            reply_count=comment.reply_count,
            created_at=comment.created_at,
        )


class ReplyResponse(BaseModel):
    """Response for a single reply."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    comment_id: UUID
    user_id: str
    content: str
    likes: int = 0
    dislikes: int = 0
    created_at: datetime

    @classmethod
    def from_reply(cls, reply: Reply) -> "ReplyResponse":
        return cls(
            id=reply.id,
            comment_id=reply.comment_id,
            user_id=reply.user_id,
            content=reply.content,
            likes=reply.likes,
            dislikes=reply.dislikes,
            created_at=reply.created_at,
        )


class RankedReplyResponse(ReplyResponse):
    """Reply with its display score and age label."""

    score: float
    net_score: int
    age_label: str

    @classmethod
    def from_ranked(cls, entry: RankedReply) -> "RankedReplyResponse":
        reply = entry.reply
        return cls(
            id=reply.id,
            comment_id=reply.comment_id,
            user_id=reply.user_id,
            content=reply.content,
            likes=reply.likes,
            dislikes=reply.dislikes,
            created_at=reply.created_at,
            score=entry.score,
            net_score=entry.net_score,
            age_label=entry.age_label,
        )


class RankedCommentResponse(CommentResponse):
    """Comment with its display score, age label and, when nested, replies."""

    score: float
    net_score: int
    age_label: str
    replies: list[RankedReplyResponse] | None = None

    @classmethod
    def from_ranked(cls, entry: RankedComment) -> "RankedCommentResponse":
        comment = entry.comment
        replies = None
        if entry.replies is not None:
            replies = [RankedReplyResponse.from_ranked(r) for r in entry.replies]
        return cls(
            id=comment.id,
            video_id=comment.video_id,
            user_id=comment.user_id,
            content=comment.content,
            likes=comment.likes,
            dislikes=comment.dislikes,
            reply_count=comment.reply_count,
            created_at=comment.created_at,
            score=entry.score,
            net_score=entry.net_score,
            age_label=entry.age_label,
            replies=replies,
        )


class CommentListResponse(BaseModel):
    """Cursor-paginated page of comments."""

    items: list[RankedCommentResponse]
    next_cursor: str | None = None
    has_more: bool
    total_estimated: int | None = None


class ReplyListResponse(BaseModel):
    """Cursor-paginated page of replies."""

    items: list[RankedReplyResponse]
    next_cursor: str | None = None
    has_more: bool
    total_estimated: int | None = None


class CounterResponse(BaseModel):
    """Result of a like/dislike mutation."""

    message: str
    count: int


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str


# ==============================================================================
# Cursor Codec
# ==============================================================================
# Cursor format: urlsafe base64 of {"created_at": <iso-8601>, "id": <uuid>}.
# There is no version field: changing this shape invalidates every cursor
# clients currently hold.


class CursorInfo(NamedTuple):
    """Decoded position of the last chronologically returned entry."""

    created_at: datetime
    id: UUID


def encode_cursor(created_at: datetime, entry_id: UUID) -> str:
    """Encode pagination cursor."""
    data = {
        "created_at": created_at.isoformat(),
        "id": str(entry_id),
    }
    json_str = json.dumps(data, separators=(",", ":"))
    return base64.urlsafe_b64encode(json_str.encode()).decode()


def decode_cursor(cursor: str) -> CursorInfo:
    """Decode pagination cursor.

    Raises:
        InvalidCursorError: for anything that is not a cursor produced by
            ``encode_cursor``. No other exception type escapes.
    """
    if not isinstance(cursor, str) or not cursor:
        raise InvalidCursorError

    # Tolerate clients that strip base64 padding from query strings
    padded = cursor + "=" * (-len(cursor) % 4)

    try:
        raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
        data = json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise InvalidCursorError from e

    if not isinstance(data, dict):
        raise InvalidCursorError

    created_at = data.get("created_at")
    entry_id = data.get("id")
    if not isinstance(created_at, str) or not isinstance(entry_id, str):
        raise InvalidCursorError

    try:
        position = datetime.fromisoformat(created_at)
        seek_id = UUID(entry_id)
    except ValueError as e:
        raise InvalidCursorError from e

    if position.tzinfo is None:
        position = position.replace(tzinfo=UTC)
    return CursorInfo(position, seek_id)
