"""Comment system service layer.

Business logic for:
- Ranked, cursor-paginated listings (top-level, replies, nested)
- Comment and reply creation with dual-table writes
- Like/dislike and reply-count mutations
- Cascading deletes

Counter mutations are read-modify-write without a compare-and-swap guard:
two concurrent increments can read the same value and one update is lost.
Decrements are clamped at zero instead of rejected.
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from redis.exceptions import RedisError

from videocomments.core.redis import comment_count_key, video_count_key

from .exceptions import (
    CommentError,
    CommentNotFoundError,
    InvalidCursorError,
    ReplyNotFoundError,
    StoreUnavailableError,
)
from .models import (
    Comment,
    CounterField,
    ListingType,
    Reply,
    SortOrder,
    create_comment,
    create_reply,
)
from .pagination import (
    assemble_comment_page,
    assemble_reply_page,
    attach_replies,
    fetch_size,
)
from .repository import CommentRepository
from .schemas import (
    CommentListResponse,
    RankedCommentResponse,
    RankedReplyResponse,
    ReplyListResponse,
    decode_cursor,
)


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = structlog.get_logger(__name__)


__all__ = [
    "CommentError",
    "CommentNotFoundError",
    "CommentService",
    "InvalidCursorError",
    "ReplyNotFoundError",
    "StoreUnavailableError",
]


class CommentService:
    """Service for comment listing and mutation."""

    # Seconds a total_estimated count stays in Redis
    COUNT_CACHE_TTL = 30

    def __init__(
        self,
        repository: CommentRepository,
        redis: "Redis | None" = None,
        count_cache_ttl: int | None = None,
    ):
        """Initialize with a repository and optional Redis count cache."""
        self.repository = repository
        self.count_cache_ttl = (
            self.COUNT_CACHE_TTL if count_cache_ttl is None else count_cache_ttl
        )
        # A zero TTL turns the count cache off
        self.redis = redis if self.count_cache_ttl > 0 else None

    # ==========================================================================
    # Estimated counts (Redis cache-aside)
    # ==========================================================================

    async def _estimated_count(
        self, cache_key: str, load: Callable[[], Awaitable[int]]
    ) -> int | None:
        """Return a cached count, loading it from the store on a miss.

        Cache and count failures are logged and ignored; the count is only an
        estimate, so a failed load yields None instead of failing the page.
        """
        if self.redis:
            try:
                cached = await self.redis.get(cache_key)
                if cached is not None:
                    return int(cached)
            except RedisError as e:
                logger.warning("count_cache_read_failed", key=cache_key, error=str(e))

        try:
            count = await load()
        except StoreUnavailableError:
            logger.warning("count_load_failed", key=cache_key)
            return None

        if self.redis:
            try:
                await self.redis.set(cache_key, count, ex=self.count_cache_ttl)
            except RedisError as e:
                logger.warning("count_cache_write_failed", key=cache_key, error=str(e))

        return count

    async def _invalidate_count(self, cache_key: str) -> None:
        if not self.redis:
            return
        try:
            await self.redis.delete(cache_key)
        except RedisError as e:
            logger.warning("count_cache_invalidate_failed", key=cache_key, error=str(e))

    # ==========================================================================
    # Listings
    # ==========================================================================

    async def get_video_comments(
        self,
        video_id: str,
        limit: int = 20,
        cursor: str | None = None,
        sort: SortOrder = SortOrder.RANKED,
        listing: ListingType = ListingType.TOP,
        replies_limit: int = 5,
        now: datetime | None = None,
    ) -> CommentListResponse:
        """Get one page of a video's comments.

        The cursor is validated before the store is touched. In nested mode
        each comment of the page gets its top ``replies_limit`` ranked replies.
        """
        seek = decode_cursor(cursor) if cursor else None
        now = now or datetime.now(UTC)

        rows = await self.repository.fetch_comments_page(
            video_id, fetch_size(limit), seek
        )
        page = assemble_comment_page(rows, limit, now, sort)

        if listing == ListingType.NESTED:
            comment_ids = [entry.comment.id for entry in page.items]
            replies = await self.repository.fetch_replies_for_comments(comment_ids)
            attach_replies(page.items, replies, replies_limit, now)

        total = await self._estimated_count(
            video_count_key(video_id),
            lambda: self.repository.count_comments(video_id),
        )

        logger.debug(
            "comments_page_served",
            video_id=video_id,
            listing=listing.value,
            sort=sort.value,
            returned=len(page.items),
            has_more=page.has_more,
            cursor=cursor,
        )

        return CommentListResponse(
            items=[RankedCommentResponse.from_ranked(entry) for entry in page.items],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
            total_estimated=total,
        )

    async def get_comment_replies(
        self,
        comment_id: UUID,
        limit: int = 10,
        cursor: str | None = None,
        sort: SortOrder = SortOrder.RANKED,
        now: datetime | None = None,
    ) -> ReplyListResponse:
        """Get one page of a comment's replies."""
        seek = decode_cursor(cursor) if cursor else None
        now = now or datetime.now(UTC)

        rows = await self.repository.fetch_replies_page(
            comment_id, fetch_size(limit), seek
        )
        page = assemble_reply_page(rows, limit, now, sort)

        total = await self._estimated_count(
            comment_count_key(str(comment_id)),
            lambda: self.repository.count_replies(comment_id),
        )

        return ReplyListResponse(
            items=[RankedReplyResponse.from_ranked(entry) for entry in page.items],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
            total_estimated=total,
        )

    # ==========================================================================
    # Creation
    # ==========================================================================

    async def create_comment(
        self, video_id: str, user_id: str, content: str
    ) -> Comment:
        """Create a comment; id and timestamp are assigned here, not by the store."""
        comment = create_comment(video_id=video_id, user_id=user_id, content=content)
        await self.repository.insert_comment(comment)
        await self._invalidate_count(video_count_key(video_id))

        logger.info("comment_created", comment_id=str(comment.id), video_id=video_id)
        return comment

    async def create_reply(self, comment_id: UUID, user_id: str, content: str) -> Reply:
        """Create a reply and bump the parent's reply count."""
        if await self.repository.get_comment(comment_id) is None:
            raise CommentNotFoundError(comment_id)

        reply = create_reply(comment_id=comment_id, user_id=user_id, content=content)
        await self.repository.insert_reply(reply)
        await self._adjust_comment_counter(comment_id, CounterField.REPLY_COUNT, 1)
        await self._invalidate_count(comment_count_key(str(comment_id)))

        logger.info("reply_created", reply_id=str(reply.id), comment_id=str(comment_id))
        return reply

    # ==========================================================================
    # Deletion
    # ==========================================================================

    async def delete_comment(self, comment_id: UUID) -> int:
        """Delete a comment and all of its replies.

        Replies go first, then the comment. Not transactional: a failure
        midway can leave orphaned replies behind.

        Returns:
            Number of replies deleted
        """
        comment = await self.repository.get_comment(comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)

        replies = await self.repository.fetch_replies_for_comments([comment_id])
        for reply in replies:
            await self.repository.delete_reply(reply)
        await self.repository.delete_comment(comment)

        await self._invalidate_count(video_count_key(comment.video_id))
        await self._invalidate_count(comment_count_key(str(comment_id)))

        logger.info(
            "comment_deleted",
            comment_id=str(comment_id),
            video_id=comment.video_id,
            replies_deleted=len(replies),
        )
        return len(replies)

    async def delete_reply(self, reply_id: UUID) -> None:
        """Delete a reply, then decrement its parent's reply count."""
        reply = await self.repository.get_reply(reply_id)
        if reply is None:
            raise ReplyNotFoundError(reply_id)

        await self.repository.delete_reply(reply)
        await self._invalidate_count(comment_count_key(str(reply.comment_id)))

        try:
            await self._adjust_comment_counter(
                reply.comment_id, CounterField.REPLY_COUNT, -1
            )
        except CommentNotFoundError:
            # Orphan left behind by an interrupted cascade; nothing to decrement
            logger.warning(
                "reply_parent_missing",
                reply_id=str(reply_id),
                comment_id=str(reply.comment_id),
            )

        logger.info("reply_deleted", reply_id=str(reply_id))

    # ==========================================================================
    # Counters
    # ==========================================================================

    async def _adjust_comment_counter(
        self, comment_id: UUID, field: CounterField, delta: int
    ) -> int:
        """Read-modify-write a comment counter, clamped at zero."""
        comment = await self.repository.get_comment(comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)

        current = getattr(comment, field.value)
        new_value = max(0, current + delta)
        if new_value != current:
            if not await self.repository.set_comment_counter(comment, field, new_value):
                # Deleted between the read and the write
                raise CommentNotFoundError(comment_id)
            logger.debug(
                "comment_counter_updated",
                comment_id=str(comment_id),
                field=field.value,
                old=current,
                new=new_value,
            )
        return new_value

    async def _adjust_reply_counter(
        self, reply_id: UUID, field: CounterField, delta: int
    ) -> int:
        """Read-modify-write a reply counter, clamped at zero."""
        reply = await self.repository.get_reply(reply_id)
        if reply is None:
            raise ReplyNotFoundError(reply_id)

        current = getattr(reply, field.value)
        new_value = max(0, current + delta)
        if new_value != current:
            if not await self.repository.set_reply_counter(reply, field, new_value):
                raise ReplyNotFoundError(reply_id)
            logger.debug(
                "reply_counter_updated",
                reply_id=str(reply_id),
                field=field.value,
                old=current,
                new=new_value,
            )
        return new_value

    async def increment_comment_likes(self, comment_id: UUID) -> int:
        """Add a like; returns the new count."""
        return await self._adjust_comment_counter(comment_id, CounterField.LIKES, 1)

    async def decrement_comment_likes(self, comment_id: UUID) -> int:
        """Remove a like, clamped at zero; returns the new count."""
        return await self._adjust_comment_counter(comment_id, CounterField.LIKES, -1)

    async def increment_comment_dislikes(self, comment_id: UUID) -> int:
        """Add a dislike; returns the new count."""
        return await self._adjust_comment_counter(comment_id, CounterField.DISLIKES, 1)

    async def decrement_comment_dislikes(self, comment_id: UUID) -> int:
        """Remove a dislike, clamped at zero; returns the new count."""
        return await self._adjust_comment_counter(comment_id, CounterField.DISLIKES, -1)

    async def increment_reply_likes(self, reply_id: UUID) -> int:
        """Add a like to a reply; returns the new count."""
        return await self._adjust_reply_counter(reply_id, CounterField.LIKES, 1)

    async def decrement_reply_likes(self, reply_id: UUID) -> int:
        """Remove a reply like, clamped at zero; returns the new count."""
        return await self._adjust_reply_counter(reply_id, CounterField.LIKES, -1)

    async def increment_reply_dislikes(self, reply_id: UUID) -> int:
        """Add a dislike to a reply; returns the new count."""
        return await self._adjust_reply_counter(reply_id, CounterField.DISLIKES, 1)

    async def decrement_reply_dislikes(self, reply_id: UUID) -> int:
        """Remove a reply dislike, clamped at zero."""
        return await self._adjust_reply_counter(reply_id, CounterField.DISLIKES, -1)
