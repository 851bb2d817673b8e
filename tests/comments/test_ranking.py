"""Tests for the scoring engine."""

from datetime import timedelta

import pytest

from videocomments.comments.ranking import (
    comment_score,
    format_age,
    rank_replies,
    recency_bonus,
    reply_bonus,
    reply_score,
)


class TestRecencyBonus:
    """Step function over the entry's age in hours."""

    @pytest.mark.parametrize(
        ("hours", "expected"),
        [
            (0, 10),
            (1, 10),
            (1.01, 8),
            (6, 8),
            (6.5, 6),
            (24, 6),
            (25, 4),
            (168, 4),
            (169, 2),
            (672, 2),
            (673, 0),
            (10_000, 0),
        ],
    )
    def test_breakpoints(self, hours: float, expected: int):
        assert recency_bonus(hours) == expected

    def test_never_increases_with_age(self):
        ages = [0, 0.5, 1, 2, 6, 12, 24, 48, 168, 300, 672, 700, 5000]
        bonuses = [recency_bonus(hours) for hours in ages]
        assert bonuses == sorted(bonuses, reverse=True)


class TestReplyBonus:
    @pytest.mark.parametrize(
        ("reply_count", "expected"),
        [(0, 0), (3, 1.5), (10, 5), (1000, 5)],
    )
    def test_capped_at_five(self, reply_count: int, expected: float):
        assert reply_bonus(reply_count) == expected


class TestScores:
    def test_fresh_engaged_comment(self, comment_factory, now):
        comment = comment_factory(created_at=now, likes=5, dislikes=2, reply_count=4)
        # net 3 + recency 10 + replies 2
        assert comment_score(comment, now) == 15

    def test_old_disliked_comment_scores_zero(self, comment_factory, now):
        comment = comment_factory(
            created_at=now - timedelta(days=30), likes=1, dislikes=10
        )
        assert comment_score(comment, now) == 0

    def test_negative_net_keeps_recency_bonus(self, comment_factory, now):
        comment = comment_factory(created_at=now, likes=0, dislikes=50)
        assert comment_score(comment, now) == 10

    def test_reply_has_no_reply_bonus(self, reply_factory, now):
        reply = reply_factory(comment_id=None, created_at=now, likes=2)
        assert reply_score(reply, now) == 12.0

    def test_rank_replies_is_stable_for_ties(self, reply_factory, now):
        replies = [reply_factory(comment_id=None, created_at=now) for _ in range(4)]
        replies.append(reply_factory(comment_id=None, created_at=now, likes=3))

        ranked = rank_replies(replies, now)

        assert ranked[0].reply is replies[4]
        assert [entry.reply for entry in ranked[1:]] == replies[:4]


class TestFormatAge:
    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(seconds=0), "just now"),
            (timedelta(seconds=59), "just now"),
            (timedelta(seconds=-30), "just now"),
            (timedelta(minutes=1), "1 minute ago"),
            (timedelta(minutes=45), "45 minutes ago"),
            (timedelta(hours=1), "1 hour ago"),
            (timedelta(hours=23), "23 hours ago"),
            (timedelta(days=1), "1 day ago"),
            (timedelta(days=6), "6 days ago"),
            (timedelta(weeks=2), "2 weeks ago"),
            (timedelta(days=30), "1 month ago"),
            (timedelta(days=200), "6 months ago"),
            (timedelta(days=365), "1 year ago"),
            (timedelta(days=800), "2 years ago"),
        ],
    )
    def test_labels(self, now, delta: timedelta, expected: str):
        assert format_age(now - delta, now) == expected
