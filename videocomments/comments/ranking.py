"""Top comments ranking.

Scores are recomputed on every read relative to an explicit ``now`` so the
functions here stay pure and deterministic:

    score = max(0, likes - dislikes) + recency_bonus (+ reply_bonus for comments)

A negative net score is floored at zero but the bonuses are still added on
top, so a heavily disliked brand-new comment keeps its recency bonus.
"""

from dataclasses import dataclass
from datetime import datetime

from .models import Comment, Reply


SECONDS_PER_HOUR = 3600

# (inclusive upper bound in hours, bonus), evaluated in ascending order
RECENCY_STEPS: tuple[tuple[float, int], ...] = (
    (1, 10),
    (6, 8),
    (24, 6),
    (168, 4),  # 7 days
    (672, 2),  # 4 weeks
)

REPLY_BONUS_PER_REPLY = 0.5
MAX_REPLY_BONUS = 5.0

# Largest unit first; months and years are fixed-length approximations
AGE_UNITS: tuple[tuple[str, int], ...] = (
    ("year", 31_536_000),
    ("month", 2_592_000),
    ("week", 604_800),
    ("day", 86_400),
    ("hour", 3_600),
    ("minute", 60),
)


@dataclass
class RankedReply:
    """Reply annotated for display. Never persisted."""

    reply: Reply
    score: float
    net_score: int
    age_label: str


@dataclass
class RankedComment:
    """Comment annotated for display. Never persisted."""

    comment: Comment
    score: float
    net_score: int
    age_label: str
    replies: list[RankedReply] | None = None


def net_score(likes: int, dislikes: int) -> int:
    return likes - dislikes


def age_in_hours(created_at: datetime, now: datetime) -> float:
    return (now - created_at).total_seconds() / SECONDS_PER_HOUR


def recency_bonus(hours: float) -> int:
    """Step bonus for fresh entries; 0 past four weeks."""
    for upper_bound, bonus in RECENCY_STEPS:
        if hours <= upper_bound:
            return bonus
    return 0


def reply_bonus(reply_count: int) -> float:
    return min(reply_count * REPLY_BONUS_PER_REPLY, MAX_REPLY_BONUS)


def comment_score(comment: Comment, now: datetime) -> float:
    """Engagement score of a top-level comment."""
    net = net_score(comment.likes, comment.dislikes)
    recency = recency_bonus(age_in_hours(comment.created_at, now))
    return max(0, net) + recency + reply_bonus(comment.reply_count)


def reply_score(reply: Reply, now: datetime) -> float:
    """Engagement score of a reply. Replies get no reply bonus."""
    net = net_score(reply.likes, reply.dislikes)
    return float(max(0, net) + recency_bonus(age_in_hours(reply.created_at, now)))


def format_age(created_at: datetime, now: datetime) -> str:
    """Human readable age such as ``"3 hours ago"``.

    Uses the largest unit with a count of at least one and falls back to
    ``"just now"`` under a minute (future timestamps included).
    """
    seconds_ago = int((now - created_at).total_seconds())

    for label, unit_seconds in AGE_UNITS:
        count = seconds_ago // unit_seconds
        if count >= 1:
            suffix = "s" if count > 1 else ""
            return f"{count} {label}{suffix} ago"

    return "just now"


def rank_comment(comment: Comment, now: datetime) -> RankedComment:
    return RankedComment(
        comment=comment,
        score=comment_score(comment, now),
        net_score=net_score(comment.likes, comment.dislikes),
        age_label=format_age(comment.created_at, now),
    )


def rank_reply(reply: Reply, now: datetime) -> RankedReply:
    return RankedReply(
        reply=reply,
        score=reply_score(reply, now),
        net_score=net_score(reply.likes, reply.dislikes),
        age_label=format_age(reply.created_at, now),
    )


def rank_replies(replies: list[Reply], now: datetime) -> list[RankedReply]:
    """Annotate replies and order them by score, highest first.

    ``sorted`` is stable, so replies with equal scores keep their input order.
    """
    ranked = [rank_reply(reply, now) for reply in replies]
    return sorted(ranked, key=lambda entry: entry.score, reverse=True)
