import logging
import uuid
from typing import Optional
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, delete

from api.db.session import get_session
from api.db.pagination import paginate
from api.db.pipeline import comment_listing_pipeline
from api.auth.utils import get_current_user
from api.db.models import Comment, Like, User, Video
from api.errors import NotFoundError
from api.ownership import require_owner
from api.responses import api_response
from api.validators import parse_id, require_text

from .models import CommentPayload

# Set up logging
logger = logging.getLogger("comments")

router = APIRouter()


def _load_comment(db_session: Session, comment_id: uuid.UUID) -> Comment:
    comment = db_session.get(Comment, comment_id)
    if not comment:
        logger.warning(f"Comment not found: {comment_id}")
        raise NotFoundError("Comment not found")
    return comment


@router.get("/{video_id}")
def get_video_comments(
    video_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db_session: Session = Depends(get_session),
):
    """
    Get comments for a video, newest first.
    """
    pipeline = comment_listing_pipeline(parse_id(video_id, "video"))
    comments = paginate(db_session, pipeline, page, limit)
    return api_response(200, comments, "Comments fetched successfully")


@router.post("/{video_id}")
def add_comment(
    video_id: str,
    payload: CommentPayload,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    video_uuid = parse_id(video_id, "video")
    content = require_text(payload.content, "Comment content cannot be empty")

    if db_session.get(Video, video_uuid) is None:
        raise NotFoundError("Video not found")

    comment = Comment(content=content, video_id=video_uuid, owner_id=current_user.id)
    db_session.add(comment)
    db_session.commit()
    db_session.refresh(comment)

    logger.info(f"User {current_user.id} commented on video {video_uuid}")
    return api_response(201, comment.document(), "Comment added successfully")


@router.patch("/c/{comment_id}")
def update_comment(
    comment_id: str,
    payload: CommentPayload,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Update a comment (only by the comment author).
    """
    comment_uuid = parse_id(comment_id, "comment")
    content = require_text(payload.content, "Comment content cannot be empty")
    comment = _load_comment(db_session, comment_uuid)
    require_owner(current_user.id, comment.owner_id, action="update this comment")

    comment.content = content
    comment.updated_at = datetime.utcnow()
    db_session.add(comment)
    db_session.commit()
    db_session.refresh(comment)

    logger.info(f"User {current_user.id} updated comment {comment.id}")
    return api_response(200, comment.document(), "Comment updated successfully")


@router.delete("/c/{comment_id}")
def delete_comment(
    comment_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a comment. Allowed for the comment author and for the owner of the video it was left on.
    """
    comment = _load_comment(db_session, parse_id(comment_id, "comment"))
    video = db_session.get(Video, comment.video_id)
    require_owner(
        current_user.id,
        comment.owner_id,
        video.owner_id if video else None,
        action="delete this comment",
    )

    db_session.exec(delete(Like).where(Like.comment_id == comment.id))
    db_session.delete(comment)
    db_session.commit()

    logger.info(f"User {current_user.id} deleted comment {comment_id}")
    return api_response(200, None, "Comment deleted successfully")
