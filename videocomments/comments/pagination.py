"""Page assembly for cursor-paginated, ranked listings.

Pagination and display order are deliberately decoupled:

1. The store returns ``limit + 1`` rows in (created_at DESC, id DESC) order.
2. The extra row only signals ``has_more`` and is dropped.
3. The remaining rows are the chronological slice; the next cursor always
   comes from its last element.
4. Ranking re-sorts a copy of the slice for display only.

Re-sorting can therefore never skip or repeat an entry across pages.
"""

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from .models import Comment, Reply, SortOrder
from .ranking import (
    RankedComment,
    RankedReply,
    rank_comment,
    rank_replies,
    rank_reply,
)
from .schemas import encode_cursor


T = TypeVar("T", Comment, Reply)
R = TypeVar("R", RankedComment, RankedReply)


@dataclass
class ChronologicalSlice(Generic[T]):
    """Rows of one page in store order, before any ranking."""

    entries: list[T]
    has_more: bool

    @property
    def next_cursor(self) -> str | None:
        """Cursor of the last chronological entry, None for an empty page."""
        if not self.entries:
            return None
        last = self.entries[-1]
        return encode_cursor(last.created_at, last.id)


@dataclass
class Page(Generic[R]):
    """Assembled page ready for the response layer."""

    items: list[R]
    next_cursor: str | None
    has_more: bool


def fetch_size(limit: int) -> int:
    """Rows to request from the store: one extra to detect a further page."""
    return limit + 1


def split_page(rows: Sequence[T], limit: int) -> ChronologicalSlice[T]:
    """Cut over-fetched rows down to the requested page size."""
    return ChronologicalSlice(entries=list(rows[:limit]), has_more=len(rows) > limit)


def order_for_display(entries: list[R], sort: SortOrder) -> list[R]:
    """Apply the display order to an annotated chronological slice.

    Ranked order is score descending; ties keep chronological order.
    """
    if sort == SortOrder.CHRONOLOGICAL:
        return list(entries)
    return sorted(entries, key=lambda entry: entry.score, reverse=True)


def assemble_comment_page(
    rows: Sequence[Comment],
    limit: int,
    now: datetime,
    sort: SortOrder = SortOrder.RANKED,
) -> Page[RankedComment]:
    """Build a page of top-level comments from ``limit + 1`` index rows."""
    chronological = split_page(rows, limit)
    annotated = [rank_comment(comment, now) for comment in chronological.entries]
    return Page(
        items=order_for_display(annotated, sort),
        next_cursor=chronological.next_cursor,
        has_more=chronological.has_more,
    )


def assemble_reply_page(
    rows: Sequence[Reply],
    limit: int,
    now: datetime,
    sort: SortOrder = SortOrder.RANKED,
) -> Page[RankedReply]:
    """Build a page of replies from ``limit + 1`` index rows."""
    chronological = split_page(rows, limit)
    annotated = [rank_reply(reply, now) for reply in chronological.entries]
    return Page(
        items=order_for_display(annotated, sort),
        next_cursor=chronological.next_cursor,
        has_more=chronological.has_more,
    )


def attach_replies(
    comments: list[RankedComment],
    replies: Sequence[Reply],
    replies_limit: int,
    now: datetime,
) -> list[RankedComment]:
    """Attach the top ``replies_limit`` ranked replies to each comment.

    Replies are always ranked, whatever order the parent page uses. The
    comment order of ``comments`` is preserved.
    """
    by_parent: dict[UUID, list[Reply]] = defaultdict(list)
    for reply in replies:
        by_parent[reply.comment_id].append(reply)

    for entry in comments:
        ranked = rank_replies(by_parent.get(entry.comment.id, []), now)
        entry.replies = ranked[:replies_limit]

    return comments
