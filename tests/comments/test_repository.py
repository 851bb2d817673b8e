"""Tests for CommentRepository against a mocked Cassandra session."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra import OperationTimedOut
from cassandra.cluster import NoHostAvailable, Session

from videocomments.comments.exceptions import StoreUnavailableError
from videocomments.comments.models import Comment, CounterField, Reply
from videocomments.comments.repository import CommentRepository
from videocomments.comments.schemas import CursorInfo


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    # Each prepared statement is a distinct mock so calls can be told apart
    session.prepare = Mock(side_effect=lambda cql: Mock(name="prepared", cql=cql))
    # Make aexecute awaitable (cassandra-asyncio-driver)
    session.aexecute = AsyncMock(return_value=[])
    return session


@pytest.fixture
def repository(mock_session) -> CommentRepository:
    return CommentRepository(session=mock_session, keyspace="test_keyspace")


def _comment_row(**overrides):
    row = {
        "id": uuid4(),
        "video_id": "video-1",
        "user_id": "user-1",
        "content": "Nice",
        "likes": 3,
        "dislikes": None,
        "created_at": datetime(2026, 1, 1, 9, 30),
        "reply_count": 1,
    }
    row.update(overrides)
    return SimpleNamespace(**row)


def _executed_cql(mock_session) -> list[str]:
    return [call.args[0].cql for call in mock_session.aexecute.await_args_list]


class TestStatements:
    def test_statements_use_keyspace(self, mock_session, repository):
        prepared = [call.args[0] for call in mock_session.prepare.call_args_list]
        assert prepared
        assert all("test_keyspace." in cql for cql in prepared)

    def test_range_scan_uses_strict_seek(self, repository):
        cql = repository._get_comments_by_video_cursor.cql
        assert "(created_at, id) < (?, ?)" in cql
        assert "LIMIT ?" in cql


class TestReads:
    @pytest.mark.asyncio
    async def test_first_page_without_seek(self, mock_session, repository):
        mock_session.aexecute.return_value = [_comment_row()]

        comments = await repository.fetch_comments_page("video-1", 21)

        statement, params = mock_session.aexecute.await_args.args
        assert statement is repository._get_comments_by_video
        assert params == ["video-1", 21]
        assert len(comments) == 1

    @pytest.mark.asyncio
    async def test_page_with_seek(self, mock_session, repository):
        seek = CursorInfo(datetime(2026, 1, 1, tzinfo=UTC), uuid4())

        await repository.fetch_replies_page(uuid4(), 11, seek)

        statement, params = mock_session.aexecute.await_args.args
        assert statement is repository._get_replies_by_comment_cursor
        assert params[1:] == [seek.created_at, seek.id, 11]

    @pytest.mark.asyncio
    async def test_rows_are_normalized(self, mock_session, repository):
        mock_session.aexecute.return_value = [_comment_row()]

        (comment,) = await repository.fetch_comments_page("video-1", 5)

        assert comment.dislikes == 0
        assert comment.created_at.tzinfo is UTC

    @pytest.mark.asyncio
    async def test_get_missing_comment(self, mock_session, repository):
        result = Mock()
        result.one.return_value = None
        mock_session.aexecute.return_value = result

        assert await repository.get_comment(uuid4()) is None

    @pytest.mark.asyncio
    async def test_count(self, mock_session, repository):
        result = Mock()
        result.one.return_value = SimpleNamespace(count=12)
        mock_session.aexecute.return_value = result

        assert await repository.count_comments("video-1") == 12

    @pytest.mark.asyncio
    async def test_batch_reply_fetch_with_no_parents(self, mock_session, repository):
        assert await repository.fetch_replies_for_comments([]) == []
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_batch_reply_fetch_queries_each_parent(
        self, mock_session, repository
    ):
        parents = [uuid4(), uuid4()]

        await repository.fetch_replies_for_comments(parents)

        queried = [call.args[1][0] for call in mock_session.aexecute.await_args_list]
        assert sorted(queried) == sorted(parents)


class TestWrites:
    @pytest.mark.asyncio
    async def test_insert_writes_primary_then_projection(
        self, mock_session, repository
    ):
        comment = Comment.from_row(_comment_row())

        await repository.insert_comment(comment)

        cql = _executed_cql(mock_session)
        assert "INSERT INTO test_keyspace.comments\n" in cql[0]
        assert "comments_by_video_time" in cql[1]

    @pytest.mark.asyncio
    async def test_counter_update_hits_both_tables(self, mock_session, repository):
        comment = Comment.from_row(_comment_row())
        mock_session.aexecute.return_value = Mock(was_applied=True)

        assert await repository.set_comment_counter(comment, CounterField.LIKES, 4)

        calls = mock_session.aexecute.await_args_list
        assert calls[0].args[1] == [4, comment.id]
        assert calls[1].args[1] == [4, comment.video_id, comment.created_at, comment.id]
        assert "SET likes = ?" in calls[1].args[0].cql
        assert all("IF EXISTS" in call.args[0].cql for call in calls)

    @pytest.mark.asyncio
    async def test_counter_update_on_deleted_comment(self, mock_session, repository):
        comment = Comment.from_row(_comment_row())
        mock_session.aexecute.return_value = Mock(was_applied=False)

        applied = await repository.set_comment_counter(
            comment, CounterField.REPLY_COUNT, 2
        )

        assert applied is False
        assert mock_session.aexecute.await_count == 1

    @pytest.mark.asyncio
    async def test_reply_counter_update_on_deleted_reply(
        self, mock_session, repository
    ):
        reply = Reply.from_row(
            SimpleNamespace(
                id=uuid4(),
                comment_id=uuid4(),
                user_id="user-2",
                content="Agreed",
                likes=1,
                dislikes=0,
                created_at=datetime(2026, 1, 1, 9, 45),
            )
        )
        mock_session.aexecute.return_value = Mock(was_applied=False)

        assert await repository.set_reply_counter(reply, CounterField.LIKES, 2) is False
        assert "IF EXISTS" in mock_session.aexecute.await_args.args[0].cql
        assert mock_session.aexecute.await_count == 1


class TestFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [OperationTimedOut("timeout"), NoHostAvailable("no hosts", {})],
    )
    async def test_driver_errors_become_store_unavailable(
        self, mock_session, repository, error
    ):
        mock_session.aexecute.side_effect = error

        with pytest.raises(StoreUnavailableError) as exc_info:
            await repository.get_comment(uuid4())

        assert exc_info.value.__cause__ is error
        assert exc_info.value.code == "store_unavailable"
