"""Cassandra access for comments, replies and their time indexes.

This is the only module that talks to the store. It exposes:
- point get/insert/delete on the primary tables
- range scans over the time-index projections with a strict
  ``(created_at, id) < (?, ?)`` seek bound and a row limit
- best-effort counts on the primary tables
- conditional counter writes applied to a primary row and its projection

Each table write is an independent driver call. A failure between the
primary and the projection write leaves them out of sync; nothing here
retries or compensates.
"""

import asyncio
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog
from cassandra import DriverException, OperationTimedOut
from cassandra.cluster import NoHostAvailable

from .exceptions import StoreUnavailableError
from .models import Comment, CounterField, Reply
from .schemas import CursorInfo


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)

STORE_ERRORS = (DriverException, NoHostAvailable, OperationTimedOut)

COMMENT_COUNTERS = (CounterField.LIKES, CounterField.DISLIKES, CounterField.REPLY_COUNT)
REPLY_COUNTERS = (CounterField.LIKES, CounterField.DISLIKES)


class CommentRepository:
    """Primary tables plus time-index projections for comments and replies."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with a Cassandra session (cassandra-asyncio-driver)."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        ks = self.keyspace

        # Comments - primary
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {ks}.comments
            (id, video_id, user_id, content, likes, dislikes, created_at, reply_count)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {ks}.comments WHERE id = ?
        """)

        self._delete_comment = self.session.prepare(f"""
            DELETE FROM {ks}.comments WHERE id = ?
        """)

        self._count_comments = self.session.prepare(f"""
            SELECT COUNT(*) FROM {ks}.comments WHERE video_id = ?
        """)

        # Comments - time index
        self._insert_comment_by_video = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_video_time
            (video_id, created_at, id, user_id, content, likes, dislikes, reply_count)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_comments_by_video = self.session.prepare(f"""
            SELECT * FROM {ks}.comments_by_video_time
            WHERE video_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """)

        self._get_comments_by_video_cursor = self.session.prepare(f"""
            SELECT * FROM {ks}.comments_by_video_time
            WHERE video_id = ? AND (created_at, id) < (?, ?)
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """)

        self._delete_comment_by_video = self.session.prepare(f"""
            DELETE FROM {ks}.comments_by_video_time
            WHERE video_id = ? AND created_at = ? AND id = ?
        """)

        # Replies - primary
        self._insert_reply = self.session.prepare(f"""
            INSERT INTO {ks}.replies
            (id, comment_id, user_id, content, likes, dislikes, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_reply = self.session.prepare(f"""
            SELECT * FROM {ks}.replies WHERE id = ?
        """)

        self._delete_reply = self.session.prepare(f"""
            DELETE FROM {ks}.replies WHERE id = ?
        """)

        self._count_replies = self.session.prepare(f"""
            SELECT COUNT(*) FROM {ks}.replies WHERE comment_id = ?
        """)

        # Replies - time index
        self._insert_reply_by_comment = self.session.prepare(f"""
            INSERT INTO {ks}.replies_by_comment_time
            (comment_id, created_at, id, user_id, content, likes, dislikes)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_replies_by_comment = self.session.prepare(f"""
            SELECT * FROM {ks}.replies_by_comment_time
            WHERE comment_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """)

        self._get_replies_by_comment_cursor = self.session.prepare(f"""
            SELECT * FROM {ks}.replies_by_comment_time
            WHERE comment_id = ? AND (created_at, id) < (?, ?)
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """)

        self._get_all_replies_by_comment = self.session.prepare(f"""
            SELECT * FROM {ks}.replies_by_comment_time
            WHERE comment_id = ?
        """)

        self._delete_reply_by_comment = self.session.prepare(f"""
            DELETE FROM {ks}.replies_by_comment_time
            WHERE comment_id = ? AND created_at = ? AND id = ?
        """)

        # Counter updates, one pair (primary, projection) per column. IF EXISTS
        # keeps a write racing a delete from upserting a partial row.
        self._update_comment_counter = {
            field: (
                self.session.prepare(f"""
                    UPDATE {ks}.comments SET {field.value} = ? WHERE id = ? IF EXISTS
                """),
                self.session.prepare(f"""
                    UPDATE {ks}.comments_by_video_time SET {field.value} = ?
                    WHERE video_id = ? AND created_at = ? AND id = ?
                    IF EXISTS
                """),
            )
            for field in COMMENT_COUNTERS
        }

        self._update_reply_counter = {
            field: (
                self.session.prepare(f"""
                    UPDATE {ks}.replies SET {field.value} = ? WHERE id = ? IF EXISTS
                """),
                self.session.prepare(f"""
                    UPDATE {ks}.replies_by_comment_time SET {field.value} = ?
                    WHERE comment_id = ? AND created_at = ? AND id = ?
                    IF EXISTS
                """),
            )
            for field in REPLY_COUNTERS
        }

    async def _execute(self, statement: Any, params: list[Any], operation: str) -> Any:
        """Run one statement, translating driver failures."""
        try:
            return await self.session.aexecute(statement, params)
        except STORE_ERRORS as e:
            logger.error(
                "store_call_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailableError from e

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def insert_comment(self, comment: Comment) -> None:
        """Write a new comment to the primary table, then its projection."""
        await self._execute(
            self._insert_comment,
            [
                comment.id,
                comment.video_id,
                comment.user_id,
                comment.content,
                comment.likes,
                comment.dislikes,
                comment.created_at,
                comment.reply_count,
            ],
            "insert_comment",
        )
        await self._execute(
            self._insert_comment_by_video,
            [
                comment.video_id,
                comment.created_at,
                comment.id,
                comment.user_id,
                comment.content,
                comment.likes,
                comment.dislikes,
                comment.reply_count,
            ],
            "insert_comment_by_video",
        )

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        result = await self._execute(self._get_comment, [comment_id], "get_comment")
        row = result.one()
        return Comment.from_row(row) if row else None

    async def fetch_comments_page(
        self,
        video_id: str,
        limit: int,
        seek: CursorInfo | None = None,
    ) -> list[Comment]:
        """Newest-first comments of a video, strictly older than ``seek``."""
        if seek is None:
            rows = await self._execute(
                self._get_comments_by_video,
                [video_id, limit],
                "fetch_comments_page",
            )
        else:
            rows = await self._execute(
                self._get_comments_by_video_cursor,
                [video_id, seek.created_at, seek.id, limit],
                "fetch_comments_page",
            )
        return [Comment.from_row(row) for row in rows]

    async def count_comments(self, video_id: str) -> int:
        """Estimated number of comments of a video, from the primary table."""
        result = await self._execute(self._count_comments, [video_id], "count_comments")
        row = result.one()
        return row.count if row else 0

    async def set_comment_counter(
        self, comment: Comment, field: CounterField, value: int
    ) -> bool:
        """Write a counter value to the primary row and its projection.

        Returns:
            False if the comment no longer exists; nothing is written then.
        """
        primary, projection = self._update_comment_counter[field]
        result = await self._execute(
            primary, [value, comment.id], f"set_comment_{field.value}"
        )
        if not result.was_applied:
            logger.warning(
                "counter_target_missing", comment_id=str(comment.id), field=field.value
            )
            return False
        await self._execute(
            projection,
            [value, comment.video_id, comment.created_at, comment.id],
            f"set_comment_{field.value}_by_video",
        )
        return True

    async def delete_comment(self, comment: Comment) -> None:
        await self._execute(self._delete_comment, [comment.id], "delete_comment")
        await self._execute(
            self._delete_comment_by_video,
            [comment.video_id, comment.created_at, comment.id],
            "delete_comment_by_video",
        )

    # ==========================================================================
    # Replies
    # ==========================================================================

    async def insert_reply(self, reply: Reply) -> None:
        """Write a new reply to the primary table, then its projection."""
        await self._execute(
            self._insert_reply,
            [
                reply.id,
                reply.comment_id,
                reply.user_id,
                reply.content,
                reply.likes,
                reply.dislikes,
                reply.created_at,
            ],
            "insert_reply",
        )
        await self._execute(
            self._insert_reply_by_comment,
            [
                reply.comment_id,
                reply.created_at,
                reply.id,
                reply.user_id,
                reply.content,
                reply.likes,
                reply.dislikes,
            ],
            "insert_reply_by_comment",
        )

    async def get_reply(self, reply_id: UUID) -> Reply | None:
        result = await self._execute(self._get_reply, [reply_id], "get_reply")
        row = result.one()
        return Reply.from_row(row) if row else None

    async def fetch_replies_page(
        self,
        comment_id: UUID,
        limit: int,
        seek: CursorInfo | None = None,
    ) -> list[Reply]:
        """Newest-first replies of a comment, strictly older than ``seek``."""
        if seek is None:
            rows = await self._execute(
                self._get_replies_by_comment,
                [comment_id, limit],
                "fetch_replies_page",
            )
        else:
            rows = await self._execute(
                self._get_replies_by_comment_cursor,
                [comment_id, seek.created_at, seek.id, limit],
                "fetch_replies_page",
            )
        return [Reply.from_row(row) for row in rows]

    async def fetch_replies_for_comments(self, comment_ids: list[UUID]) -> list[Reply]:
        """All replies of several comments, one partition query per parent.

        Queries run concurrently. Order is only meaningful within a parent.
        """
        if not comment_ids:
            return []

        results = await asyncio.gather(
            *(
                self._execute(
                    self._get_all_replies_by_comment,
                    [comment_id],
                    "fetch_replies_for_comments",
                )
                for comment_id in comment_ids
            )
        )
        return [Reply.from_row(row) for rows in results for row in rows]

    async def count_replies(self, comment_id: UUID) -> int:
        """Estimated number of replies of a comment, from the primary table."""
        result = await self._execute(self._count_replies, [comment_id], "count_replies")
        row = result.one()
        return row.count if row else 0

    async def set_reply_counter(
        self, reply: Reply, field: CounterField, value: int
    ) -> bool:
        """Write a counter value to the primary row and its projection.

        Returns:
            False if the reply no longer exists; nothing is written then.
        """
        primary, projection = self._update_reply_counter[field]
        result = await self._execute(
            primary, [value, reply.id], f"set_reply_{field.value}"
        )
        if not result.was_applied:
            logger.warning(
                "counter_target_missing", reply_id=str(reply.id), field=field.value
            )
            return False
        await self._execute(
            projection,
            [value, reply.comment_id, reply.created_at, reply.id],
            f"set_reply_{field.value}_by_comment",
        )
        return True

    async def delete_reply(self, reply: Reply) -> None:
        await self._execute(self._delete_reply, [reply.id], "delete_reply")
        await self._execute(
            self._delete_reply_by_comment,
            [reply.comment_id, reply.created_at, reply.id],
            "delete_reply_by_comment",
        )
