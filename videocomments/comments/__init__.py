"""Comment system module.

Provides hierarchical video comments with:
- Comments and one level of replies
- Cursor pagination over per-parent time indexes
- Per-page engagement ranking
- Like/dislike counters

Note: Router is not exported here to avoid circular imports.
Import directly from videocomments.comments.router when needed.
"""

from .models import (
    COMMENTS_TABLES_CQL,
    Comment,
    CounterField,
    ListingType,
    Reply,
    SortOrder,
)
from .repository import CommentRepository
from .service import CommentService


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentRepository",
    "CommentService",
    "CounterField",
    "ListingType",
    "Reply",
    "SortOrder",
]
