"""Comment system API endpoints.

Provides routes for:
- Ranked, cursor-paginated comment listings (top-level or nested)
- Reply listings
- Comment and reply creation and deletion
- Like/dislike counters
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from videocomments.config import get_settings

from .dependencies import CommentServiceDep, handle_comment_error
from .exceptions import CommentError
from .models import ListingType, SortOrder
from .schemas import (
    CommentListResponse,
    CommentResponse,
    CounterResponse,
    CreateCommentRequest,
    CreateReplyRequest,
    MessageResponse,
    ReplyListResponse,
    ReplyResponse,
)


settings = get_settings()


router = APIRouter(prefix="/v1/comments", tags=["comments"])


# ==============================================================================
# Listings
# ==============================================================================


@router.get(
    "/video/{video_id}",
    response_model=CommentListResponse,
    summary="List video comments",
)
async def list_video_comments(
    video_id: str,
    comment_service: CommentServiceDep,
    listing: ListingType = Query(default=ListingType.TOP, alias="type"),
    limit: int = Query(
        default=settings.comments_default_limit, ge=0, le=settings.comments_max_limit
    ),
    cursor: str | None = None,
    replies_limit: int = Query(
        default=settings.nested_replies_default_limit, ge=0, le=50
    ),
    sort: SortOrder = SortOrder.RANKED,
) -> CommentListResponse:
    """Get a page of comments for a video.

    Pages follow creation time (newest first); ``sort`` only changes the
    order inside a page. With ``type=nested`` each comment carries its top
    ranked replies.
    """
    try:
        return await comment_service.get_video_comments(
            video_id=video_id,
            limit=limit,
            cursor=cursor,
            sort=sort,
            listing=listing,
            replies_limit=replies_limit,
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.get(
    "/{comment_id}/replies",
    response_model=ReplyListResponse,
    summary="List comment replies",
)
async def list_comment_replies(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    limit: int = Query(
        default=settings.replies_default_limit, ge=0, le=settings.comments_max_limit
    ),
    cursor: str | None = None,
    sort: SortOrder = SortOrder.RANKED,
) -> ReplyListResponse:
    """Get a page of replies to a comment."""
    try:
        return await comment_service.get_comment_replies(
            comment_id=comment_id,
            limit=limit,
            cursor=cursor,
            sort=sort,
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


# ==============================================================================
# Comments
# ==============================================================================


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    """Create a new top-level comment on a video."""
    try:
        comment = await comment_service.create_comment(
            video_id=data.video_id,
            user_id=data.user_id,
            content=data.content,
        )
        return CommentResponse.from_comment(comment)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/{comment_id}",
    response_model=MessageResponse,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: UUID,
    comment_service: CommentServiceDep,
) -> MessageResponse:
    """Delete a comment together with all of its replies."""
    try:
        replies_deleted = await comment_service.delete_comment(comment_id)
    except CommentError as e:
        raise handle_comment_error(e) from e

    return MessageResponse(
        message=f"Comment deleted with {replies_deleted} replies",
    )


@router.put(
    "/{comment_id}/like/increase",
    response_model=CounterResponse,
    summary="Like comment",
)
async def increase_comment_likes(
    comment_id: UUID,
    comment_service: CommentServiceDep,
) -> CounterResponse:
    """Add one like to a comment."""
    try:
        count = await comment_service.increment_comment_likes(comment_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CounterResponse(message="Like count increased", count=count)


@router.put(
    "/{comment_id}/like/decrease",
    response_model=CounterResponse,
    summary="Remove comment like",
)
async def decrease_comment_likes(
    comment_id: UUID,
    comment_service: CommentServiceDep,
) -> CounterResponse:
    """Remove one like from a comment; never goes below zero."""
    try:
        count = await comment_service.decrement_comment_likes(comment_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CounterResponse(message="Like count decreased", count=count)


@router.put(
    "/{comment_id}/dislike/increase",
    response_model=CounterResponse,
    summary="Dislike comment",
)
async def increase_comment_dislikes(
    comment_id: UUID,
    comment_service: CommentServiceDep,
) -> CounterResponse:
    """Add one dislike to a comment."""
    try:
        count = await comment_service.increment_comment_dislikes(comment_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CounterResponse(message="Dislike count increased", count=count)


@router.put(
    "/{comment_id}/dislike/decrease",
    response_model=CounterResponse,
    summary="Remove comment dislike",
)
async def decrease_comment_dislikes(
    comment_id: UUID,
    comment_service: CommentServiceDep,
) -> CounterResponse:
    """Remove one dislike from a comment; never goes below zero."""
    try:
        count = await comment_service.decrement_comment_dislikes(comment_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CounterResponse(message="Dislike count decreased", count=count)


# ==============================================================================
# Replies
# ==============================================================================


@router.post(
    "/{comment_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to comment",
)
async def create_reply(
    comment_id: UUID,
    data: CreateReplyRequest,
    comment_service: CommentServiceDep,
) -> ReplyResponse:
    """Create a reply and bump the parent's reply count."""
    try:
        reply = await comment_service.create_reply(
            comment_id=comment_id,
            user_id=data.user_id,
            content=data.content,
        )
        return ReplyResponse.from_reply(reply)
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/replies/{reply_id}",
    response_model=MessageResponse,
    summary="Delete reply",
)
async def delete_reply(
    reply_id: UUID,
    comment_service: CommentServiceDep,
) -> MessageResponse:
    """Delete a reply and decrement its parent's reply count."""
    try:
        await comment_service.delete_reply(reply_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return MessageResponse(message="Reply deleted")


@router.put(
    "/replies/{reply_id}/like/increase",
    response_model=CounterResponse,
    summary="Like reply",
)
async def increase_reply_likes(
    reply_id: UUID,
    comment_service: CommentServiceDep,
) -> CounterResponse:
    """Add one like to a reply."""
    try:
        count = await comment_service.increment_reply_likes(reply_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CounterResponse(message="Like count increased", count=count)


@router.put(
    "/replies/{reply_id}/like/decrease",
    response_model=CounterResponse,
    summary="Remove reply like",
)
async def decrease_reply_likes(
    reply_id: UUID,
    comment_service: CommentServiceDep,
) -> CounterResponse:
    """Remove one like from a reply; never goes below zero."""
    try:
        count = await comment_service.decrement_reply_likes(reply_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CounterResponse(message="Like count decreased", count=count)


@router.put(
    "/replies/{reply_id}/dislike/increase",
    response_model=CounterResponse,
    summary="Dislike reply",
)
async def increase_reply_dislikes(
    reply_id: UUID,
    comment_service: CommentServiceDep,
) -> CounterResponse:
    """Add one dislike to a reply."""
    try:
        count = await comment_service.increment_reply_dislikes(reply_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CounterResponse(message="Dislike count increased", count=count)


@router.put(
    "/replies/{reply_id}/dislike/decrease",
    response_model=CounterResponse,
    summary="Remove reply dislike",
)
async def decrease_reply_dislikes(
    reply_id: UUID,
    comment_service: CommentServiceDep,
) -> CounterResponse:
    """Remove one dislike from a reply; never goes below zero."""
    try:
        count = await comment_service.decrement_reply_dislikes(reply_id)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CounterResponse(message="Dislike count decreased", count=count)
