"""Database models for video comments and replies.

Cassandra table definitions for:
- comments / replies: primary tables, one row per entity keyed by id
- comments_by_video_time / replies_by_comment_time: time-index projections

Architecture: manual denormalization
- The store has no joins and no cross-table transactions, so every comment
  and reply is written twice: once by id (point lookups, counter reads) and
  once into a per-parent time index clustered (created_at DESC, id DESC)
  that serves every chronological listing.
- Projection rows carry a copy of every mutable field and must be updated
  alongside the primary row. Nothing repairs a divergence automatically.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class CounterField(str, Enum):
    """Counters maintained on both the primary row and its projection."""

    LIKES = "likes"
    DISLIKES = "dislikes"
    REPLY_COUNT = "reply_count"


class SortOrder(str, Enum):
    """Display order of a page."""

    RANKED = "ranked"
    CHRONOLOGICAL = "chronological"


class ListingType(str, Enum):
    """Shape of a video comment listing."""

    TOP = "top"
    NESTED = "nested"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Primary comments table - O(1) lookup by id
COMMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    id UUID PRIMARY KEY,
    video_id TEXT,
    user_id TEXT,
    content TEXT,
    likes BIGINT,
    dislikes BIGINT,
    created_at TIMESTAMP,
    reply_count BIGINT
)
"""

# Primary replies table
REPLIES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.replies (
    id UUID PRIMARY KEY,
    comment_id UUID,
    user_id TEXT,
    content TEXT,
    likes BIGINT,
    dislikes BIGINT,
    created_at TIMESTAMP
)
"""

# Time index for comments of a video
# The id clustering column breaks ties between equal timestamps
COMMENTS_BY_VIDEO_TIME_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_video_time (
    video_id TEXT,
    created_at TIMESTAMP,
    id UUID,
    user_id TEXT,
    content TEXT,
    likes BIGINT,
    dislikes BIGINT,
    reply_count BIGINT,
    PRIMARY KEY ((video_id), created_at, id)
) WITH CLUSTERING ORDER BY (created_at DESC, id DESC)
"""

# Time index for replies of a comment
REPLIES_BY_COMMENT_TIME_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.replies_by_comment_time (
    comment_id UUID,
    created_at TIMESTAMP,
    id UUID,
    user_id TEXT,
    content TEXT,
    likes BIGINT,
    dislikes BIGINT,
    PRIMARY KEY ((comment_id), created_at, id)
) WITH CLUSTERING ORDER BY (created_at DESC, id DESC)
"""

# Secondary indexes backing the estimated counts on the primary tables
COMMENTS_VIDEO_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_video_id_idx
ON {keyspace}.comments (video_id)
"""

REPLIES_COMMENT_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS replies_comment_id_idx
ON {keyspace}.replies (comment_id)
"""

# All table definitions for initialization, in creation order
COMMENTS_TABLES_CQL = [
    COMMENTS_TABLE_CQL,
    REPLIES_TABLE_CQL,
    COMMENTS_BY_VIDEO_TIME_TABLE_CQL,
    REPLIES_BY_COMMENT_TIME_TABLE_CQL,
    COMMENTS_VIDEO_INDEX_CQL,
    REPLIES_COMMENT_INDEX_CQL,
]


# ==============================================================================
# Row helpers
# ==============================================================================


def _as_count(value: Any) -> int:
    """Normalize a BIGINT counter column (may be None on old rows)."""
    return int(value) if value is not None else 0


def _as_utc(value: datetime) -> datetime:
    """The driver returns naive UTC datetimes for TIMESTAMP columns."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def utc_now_millis() -> datetime:
    """Current UTC time truncated to the store's millisecond precision.

    Truncating up front keeps the in-memory entity identical to what the
    store will hand back, so projection keys computed from either match.
    """
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Top-level comment on a video."""

    id: UUID
    video_id: str
    user_id: str
    content: str
    likes: int
    dislikes: int
    created_at: datetime
    reply_count: int

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from a primary or projection row."""
        return cls(
            id=row.id,
            video_id=row.video_id,
            user_id=row.user_id,
            content=row.content,
            likes=_as_count(row.likes),
            dislikes=_as_count(row.dislikes),
            created_at=_as_utc(row.created_at),
            reply_count=_as_count(row.reply_count),
        )


@dataclass
class Reply:
    """Reply to a comment. Replies are one level deep."""

    id: UUID
    comment_id: UUID
    user_id: str
    content: str
    likes: int
    dislikes: int
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Reply":
        """Create Reply from a primary or projection row."""
        return cls(
            id=row.id,
            comment_id=row.comment_id,
            user_id=row.user_id,
            content=row.content,
            likes=_as_count(row.likes),
            dislikes=_as_count(row.dislikes),
            created_at=_as_utc(row.created_at),
        )


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_comment(video_id: str, user_id: str, content: str) -> Comment:
    """Create a new comment with zeroed counters."""
    return Comment(
        id=uuid4(),
        video_id=video_id,
        user_id=user_id,
        content=content,
        likes=0,
        dislikes=0,
        created_at=utc_now_millis(),
        reply_count=0,
    )


def create_reply(comment_id: UUID, user_id: str, content: str) -> Reply:
    """Create a new reply with zeroed counters."""
    return Reply(
        id=uuid4(),
        comment_id=comment_id,
        user_id=user_id,
        content=content,
        likes=0,
        dislikes=0,
        created_at=utc_now_millis(),
    )
