"""Comment system error taxonomy.

Every error carries a stable ``code`` that the HTTP layer maps to a status
(see ``dependencies.handle_comment_error``). Nothing here is retried
internally; callers decide whether a whole request is worth repeating.
"""

from uuid import UUID


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidCursorError(CommentError):
    """Pagination cursor is malformed. Client error, never retryable."""

    def __init__(self, message: str = "Invalid cursor format"):
        super().__init__(message, "invalid_cursor")


class CommentNotFoundError(CommentError):
    """Referenced comment does not exist."""

    def __init__(self, comment_id: UUID | None = None):
        message = (
            f"Comment with id {comment_id} not found"
            if comment_id
            else "Comment not found"
        )
        super().__init__(message, "comment_not_found")


class ReplyNotFoundError(CommentError):
    """Referenced reply does not exist."""

    def __init__(self, reply_id: UUID | None = None):
        message = (
            f"Reply with id {reply_id} not found" if reply_id else "Reply not found"
        )
        super().__init__(message, "reply_not_found")


class StoreUnavailableError(CommentError):
    """A store call failed or timed out.

    Transient from the caller's point of view: the whole request may be
    retried. Partial dual-writes are not repaired.
    """

    def __init__(self, message: str = "Comment store unavailable"):
        super().__init__(message, "store_unavailable")
