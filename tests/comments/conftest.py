"""Fixtures for the comment system tests.

``InMemoryCommentRepository`` mirrors ``CommentRepository`` with two tables
per entity (primary by id, time index by parent) so dual-write behaviour can
be exercised without a cluster. Each write is recorded under the same
operation name the real repository logs, and any of them can be made to
fail with ``fail_on``.
"""

from collections import defaultdict
from collections.abc import Iterator
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from videocomments.comments.dependencies import get_comment_service
from videocomments.comments.exceptions import StoreUnavailableError
from videocomments.comments.models import Comment, CounterField, Reply
from videocomments.comments.schemas import CursorInfo
from videocomments.comments.service import CommentService


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
VIDEO_ID = "video-1"


class InMemoryCommentRepository:
    """Two-table comment store kept in dicts."""

    def __init__(self) -> None:
        self.comments: dict[UUID, Comment] = {}
        self.comments_by_video: dict[str, dict[tuple[datetime, UUID], Comment]] = (
            defaultdict(dict)
        )
        self.replies: dict[UUID, Reply] = {}
        self.replies_by_comment: dict[UUID, dict[tuple[datetime, UUID], Reply]] = (
            defaultdict(dict)
        )
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise StoreUnavailableError

    @staticmethod
    def _newest_first(rows: dict, limit: int, seek: CursorInfo | None) -> list:
        keys = sorted(rows, reverse=True)
        if seek is not None:
            keys = [key for key in keys if key < (seek.created_at, seek.id)]
        return [replace(rows[key]) for key in keys[:limit]]

    # Seeding (no call recording, always consistent)

    def add_comment(self, comment: Comment) -> Comment:
        self.comments[comment.id] = replace(comment)
        key = (comment.created_at, comment.id)
        self.comments_by_video[comment.video_id][key] = replace(comment)
        return comment

    def add_reply(self, reply: Reply) -> Reply:
        self.replies[reply.id] = replace(reply)
        key = (reply.created_at, reply.id)
        self.replies_by_comment[reply.comment_id][key] = replace(reply)
        return reply

    # Comments

    async def insert_comment(self, comment: Comment) -> None:
        self._call("insert_comment")
        self.comments[comment.id] = replace(comment)
        self._call("insert_comment_by_video")
        key = (comment.created_at, comment.id)
        self.comments_by_video[comment.video_id][key] = replace(comment)

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        self._call("get_comment")
        comment = self.comments.get(comment_id)
        return replace(comment) if comment else None

    async def fetch_comments_page(
        self, video_id: str, limit: int, seek: CursorInfo | None = None
    ) -> list[Comment]:
        self._call("fetch_comments_page")
        return self._newest_first(self.comments_by_video[video_id], limit, seek)

    async def count_comments(self, video_id: str) -> int:
        self._call("count_comments")
        return sum(1 for c in self.comments.values() if c.video_id == video_id)

    async def set_comment_counter(
        self, comment: Comment, field: CounterField, value: int
    ) -> bool:
        self._call(f"set_comment_{field.value}")
        if comment.id not in self.comments:
            return False
        setattr(self.comments[comment.id], field.value, value)
        self._call(f"set_comment_{field.value}_by_video")
        row = self.comments_by_video[comment.video_id].get(
            (comment.created_at, comment.id)
        )
        if row is not None:
            setattr(row, field.value, value)
        return True

    async def delete_comment(self, comment: Comment) -> None:
        self._call("delete_comment")
        self.comments.pop(comment.id, None)
        self._call("delete_comment_by_video")
        self.comments_by_video[comment.video_id].pop(
            (comment.created_at, comment.id), None
        )

    # Replies

    async def insert_reply(self, reply: Reply) -> None:
        self._call("insert_reply")
        self.replies[reply.id] = replace(reply)
        self._call("insert_reply_by_comment")
        key = (reply.created_at, reply.id)
        self.replies_by_comment[reply.comment_id][key] = replace(reply)

    async def get_reply(self, reply_id: UUID) -> Reply | None:
        self._call("get_reply")
        reply = self.replies.get(reply_id)
        return replace(reply) if reply else None

    async def fetch_replies_page(
        self, comment_id: UUID, limit: int, seek: CursorInfo | None = None
    ) -> list[Reply]:
        self._call("fetch_replies_page")
        return self._newest_first(self.replies_by_comment[comment_id], limit, seek)

    async def fetch_replies_for_comments(self, comment_ids: list[UUID]) -> list[Reply]:
        if not comment_ids:
            return []
        self._call("fetch_replies_for_comments")
        replies: list[Reply] = []
        for comment_id in comment_ids:
            rows = self.replies_by_comment[comment_id]
            replies.extend(self._newest_first(rows, len(rows), None))
        return replies

    async def count_replies(self, comment_id: UUID) -> int:
        self._call("count_replies")
        return sum(1 for r in self.replies.values() if r.comment_id == comment_id)

    async def set_reply_counter(
        self, reply: Reply, field: CounterField, value: int
    ) -> bool:
        self._call(f"set_reply_{field.value}")
        if reply.id not in self.replies:
            return False
        setattr(self.replies[reply.id], field.value, value)
        self._call(f"set_reply_{field.value}_by_comment")
        rows = self.replies_by_comment[reply.comment_id]
        row = rows.get((reply.created_at, reply.id))
        if row is not None:
            setattr(row, field.value, value)
        return True

    async def delete_reply(self, reply: Reply) -> None:
        self._call("delete_reply")
        self.replies.pop(reply.id, None)
        self._call("delete_reply_by_comment")
        self.replies_by_comment[reply.comment_id].pop(
            (reply.created_at, reply.id), None
        )

    # Consistency

    def drift(self) -> list[str]:
        """Describe every disagreement between primary rows and projections."""
        problems: list[str] = []

        projected_comments = {
            row.id: row
            for rows in self.comments_by_video.values()
            for row in rows.values()
        }
        for comment_id, comment in self.comments.items():
            if projected_comments.get(comment_id) != comment:
                problems.append(f"comment {comment_id} projection differs")
        problems.extend(
            f"comment {comment_id} projected without primary row"
            for comment_id in projected_comments.keys() - self.comments.keys()
        )

        projected_replies = {
            row.id: row
            for rows in self.replies_by_comment.values()
            for row in rows.values()
        }
        for reply_id, reply in self.replies.items():
            if projected_replies.get(reply_id) != reply:
                problems.append(f"reply {reply_id} projection differs")
        problems.extend(
            f"reply {reply_id} projected without primary row"
            for reply_id in projected_replies.keys() - self.replies.keys()
        )

        return problems


def make_comment(
    created_at: datetime = NOW,
    video_id: str = VIDEO_ID,
    likes: int = 0,
    dislikes: int = 0,
    reply_count: int = 0,
) -> Comment:
    return Comment(
        id=uuid4(),
        video_id=video_id,
        user_id="user-1",
        content="Great video",
        likes=likes,
        dislikes=dislikes,
        created_at=created_at,
        reply_count=reply_count,
    )


def make_reply(
    comment_id: UUID,
    created_at: datetime = NOW,
    likes: int = 0,
    dislikes: int = 0,
) -> Reply:
    return Reply(
        id=uuid4(),
        comment_id=comment_id,
        user_id="user-2",
        content="Agreed",
        likes=likes,
        dislikes=dislikes,
        created_at=created_at,
    )


@pytest.fixture
def repository() -> InMemoryCommentRepository:
    return InMemoryCommentRepository()


@pytest.fixture
def comment_service(repository: InMemoryCommentRepository) -> CommentService:
    return CommentService(repository=repository)


@pytest.fixture
def seed_comments(repository: InMemoryCommentRepository):
    """Factory: store ``count`` comments one minute apart, newest first."""

    def _seed(count: int, video_id: str = VIDEO_ID) -> list[Comment]:
        return [
            repository.add_comment(
                make_comment(created_at=NOW - timedelta(minutes=i), video_id=video_id)
            )
            for i in range(count)
        ]

    return _seed


@pytest.fixture
def api_client(comment_service: CommentService) -> Iterator[TestClient]:
    """Test client whose comment service runs on the in-memory store."""
    from videocomments.main import app

    app.dependency_overrides[get_comment_service] = lambda: comment_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def now() -> datetime:
    """Fixed clock for scoring and age labels."""
    return NOW


@pytest.fixture
def comment_factory():
    return make_comment


@pytest.fixture
def reply_factory():
    return make_reply
