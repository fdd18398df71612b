import logging
from typing import Optional
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlmodel import Session, select, delete
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from api.db.session import get_session
from api.db.pagination import paginate
from api.db.pipeline import video_listing_pipeline
from api.auth.utils import get_current_user
from api.db.models import Comment, Like, PlaylistVideo, User, Video
from api.errors import NotFoundError, UpstreamError, ValidationError
from api.media.storage import MediaStorage, MediaStorageError, discard, get_media_storage, staged_uploads
from api.ownership import require_owner
from api.responses import api_response
from api.validators import parse_id, require_text

from .models import VideoUpdate

# Set up logging
logger = logging.getLogger("videos")

router = APIRouter()


def _load_video(db_session: Session, video_id: str) -> Video:
    video = db_session.get(Video, parse_id(video_id, "video"))
    if not video:
        logger.warning(f"Video not found: {video_id}")
        raise NotFoundError("Video not found")
    return video


def _delete_dependants(db_session: Session, video: Video) -> None:
    """Remove comments, likes and playlist memberships that reference ``video``."""
    comment_ids = select(Comment.id).where(Comment.video_id == video.id)
    db_session.exec(delete(Like).where(Like.comment_id.in_(comment_ids)))
    db_session.exec(delete(Like).where(Like.video_id == video.id))
    db_session.exec(delete(Comment).where(Comment.video_id == video.id))
    db_session.exec(delete(PlaylistVideo).where(PlaylistVideo.video_id == video.id))


@router.get("/")
def get_all_videos(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    query: Optional[str] = None,
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_type: Optional[str] = Query(default=None, alias="sortType"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    db_session: Session = Depends(get_session),
):
    """
    List published videos.
    - Query params: page, limit, query (title search), sortBy, sortType (asc|desc), userId
    - Returns: page of videos with owner display fields
    """
    owner_id = parse_id(user_id, "user") if user_id else None
    pipeline = video_listing_pipeline(query=query, sort_by=sort_by, sort_type=sort_type, owner_id=owner_id)
    videos = paginate(db_session, pipeline, page, limit)
    return api_response(200, videos, "Videos fetched successfully")


@router.post("/")
def publish_video(
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    video_file: Optional[UploadFile] = File(default=None),
    thumbnail: Optional[UploadFile] = File(default=None),
    db_session: Session = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
    current_user: User = Depends(get_current_user),
):
    """
    Upload a video file and its thumbnail, then store the video.
    If the thumbnail upload fails the already uploaded video file is removed.
    """
    title = require_text(title, "Title and description are required")
    description = require_text(description, "Title and description are required")
    if video_file is None or thumbnail is None:
        raise ValidationError("Video file and thumbnail are required")

    with staged_uploads(video_file, thumbnail) as (video_path, thumbnail_path):
        try:
            uploaded_video = storage.upload(video_path)
        except MediaStorageError as e:
            logger.error(f"Video upload failed for user {current_user.id}: {e}")
            raise UpstreamError("Video upload failed")

        try:
            uploaded_thumbnail = storage.upload(thumbnail_path)
        except MediaStorageError as e:
            logger.error(f"Thumbnail upload failed for user {current_user.id}: {e}")
            discard(storage, uploaded_video.public_id)
            raise UpstreamError("Video upload failed")

    video = Video(
        title=title,
        description=description,
        duration=uploaded_video.duration or 0,
        video_file_url=uploaded_video.url,
        video_file_public_id=uploaded_video.public_id,
        thumbnail_url=uploaded_thumbnail.url,
        thumbnail_public_id=uploaded_thumbnail.public_id,
        owner_id=current_user.id,
    )
    try:
        db_session.add(video)
        db_session.commit()
        db_session.refresh(video)
    except SQLAlchemyError as e:
        logger.error(f"Database error in publish_video: {e}")
        db_session.rollback()
        discard(storage, uploaded_video.public_id, uploaded_thumbnail.public_id)
        raise

    logger.info(f"User {current_user.id} published video {video.id}")
    return api_response(201, video.document(), "Video published successfully")


@router.get("/{video_id}")
def get_video_by_id(
    video_id: str,
    db_session: Session = Depends(get_session),
):
    """
    Fetch a published video and count the view.
    """
    video = _load_video(db_session, video_id)
    if not video.is_published:
        raise NotFoundError("Video not found")

    db_session.exec(update(Video).where(Video.id == video.id).values(views=Video.views + 1))
    db_session.commit()
    db_session.refresh(video)

    owner = db_session.get(User, video.owner_id)
    data = video.document()
    data["owner"] = {"id": owner.id, "username": owner.username, "avatar": owner.avatar} if owner else None
    return api_response(200, data, "Video fetched successfully")


@router.patch("/{video_id}")
def update_video(
    video_id: str,
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    thumbnail: Optional[UploadFile] = File(default=None),
    db_session: Session = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
    current_user: User = Depends(get_current_user),
):
    """
    Update title, description and/or thumbnail (only by the video owner).
    """
    video = _load_video(db_session, video_id)
    require_owner(current_user.id, video.owner_id, action="update this video")

    changes = VideoUpdate(title=title, description=description).changes()
    if not changes and thumbnail is None:
        raise ValidationError("At least one detail is required to update")

    replaced_thumbnail = None
    if thumbnail is not None:
        with staged_uploads(thumbnail) as (thumbnail_path,):
            try:
                uploaded = storage.upload(thumbnail_path)
            except MediaStorageError as e:
                logger.error(f"Thumbnail upload failed for video {video.id}: {e}")
                raise UpstreamError("Failed to upload thumbnail")
        replaced_thumbnail = video.thumbnail_public_id
        changes["thumbnail_url"] = uploaded.url
        changes["thumbnail_public_id"] = uploaded.public_id

    video.sqlmodel_update(changes)
    video.updated_at = datetime.utcnow()
    db_session.add(video)
    try:
        db_session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error in update_video: {e}")
        db_session.rollback()
        if "thumbnail_public_id" in changes:
            discard(storage, changes["thumbnail_public_id"])
        raise
    db_session.refresh(video)

    if replaced_thumbnail:
        discard(storage, replaced_thumbnail)

    logger.info(f"User {current_user.id} updated video {video.id}")
    return api_response(200, video.document(), "Video updated successfully")


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    db_session: Session = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a video, its media assets, comments, likes and playlist entries.
    """
    video = _load_video(db_session, video_id)
    require_owner(current_user.id, video.owner_id, action="delete this video")

    try:
        storage.delete(video.thumbnail_public_id)
        storage.delete(video.video_file_public_id)
    except MediaStorageError as e:
        logger.error(f"Media cleanup failed for video {video.id}: {e}")
        raise UpstreamError("Failed to delete video media")

    _delete_dependants(db_session, video)
    db_session.delete(video)
    db_session.commit()

    logger.info(f"User {current_user.id} deleted video {video_id}")
    return api_response(200, None, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
def toggle_publish_status(
    video_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    video = _load_video(db_session, video_id)
    require_owner(current_user.id, video.owner_id, action="update this video")

    video.is_published = not video.is_published
    video.updated_at = datetime.utcnow()
    db_session.add(video)
    db_session.commit()
    db_session.refresh(video)

    logger.info(f"User {current_user.id} set video {video.id} published={video.is_published}")
    return api_response(200, video.document(), "Video publish status updated successfully")
