import logging
import uuid
from typing import Optional
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func

from api.db.session import get_session
from api.db.pagination import paginate
from api.db.pipeline import playlist_listing_pipeline
from api.auth.utils import get_current_user
from api.db.models import User, Playlist, PlaylistVideo, Video
from api.errors import ConflictError, NotFoundError, ValidationError
from api.ownership import require_owner
from api.responses import api_response
from api.validators import parse_id, require_text

from .models import PlaylistCreate, PlaylistUpdate

# Set up logging
logger = logging.getLogger("playlists")

router = APIRouter()

DUPLICATE_NAME = "Playlist with same name already exists"


def _load_playlist(db_session: Session, playlist_id: uuid.UUID) -> Playlist:
    playlist = db_session.get(Playlist, playlist_id)
    if not playlist:
        logger.warning(f"Playlist not found: {playlist_id}")
        raise NotFoundError("Playlist not found")
    return playlist


def _name_taken(db_session: Session, owner_id: uuid.UUID, name: str) -> bool:
    return db_session.exec(
        select(Playlist).where(Playlist.owner_id == owner_id, Playlist.name == name)
    ).first() is not None


# Playlist CRUD Endpoints
@router.post("/")
def create_playlist(
    payload: PlaylistCreate,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Create a new playlist. Names are unique per owner.
    """
    name = require_text(payload.name, "Name and description are required")
    description = require_text(payload.description, "Name and description are required")

    if _name_taken(db_session, current_user.id, name):
        raise ConflictError(DUPLICATE_NAME)

    playlist = Playlist(name=name, description=description, owner_id=current_user.id)
    db_session.add(playlist)
    try:
        db_session.commit()
    except IntegrityError:
        db_session.rollback()
        raise ConflictError(DUPLICATE_NAME)
    db_session.refresh(playlist)

    logger.info(f"User {current_user.id} created playlist '{name}'")
    return api_response(201, playlist.document(), "Playlist created successfully")


@router.get("/user/{user_id}")
def get_user_playlists(
    user_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db_session: Session = Depends(get_session),
):
    """
    Get a user's playlists, newest first, with video count and preview thumbnail.
    """
    pipeline = playlist_listing_pipeline(parse_id(user_id, "user"))
    playlists = paginate(db_session, pipeline, page, limit)
    return api_response(200, playlists, "Playlists fetched successfully")


@router.get("/{playlist_id}")
def get_playlist_by_id(
    playlist_id: str,
    db_session: Session = Depends(get_session),
):
    """
    Get a playlist with its owner and its published videos in playlist order.
    """
    playlist = _load_playlist(db_session, parse_id(playlist_id, "playlist"))
    owner = db_session.get(User, playlist.owner_id)

    videos = db_session.exec(
        select(Video)
        .join(PlaylistVideo, PlaylistVideo.video_id == Video.id)
        .where(PlaylistVideo.playlist_id == playlist.id, Video.is_published == True)  # noqa: E712
        .order_by(PlaylistVideo.position, PlaylistVideo.added_at)
    ).all()

    data = playlist.document()
    data["owner"] = {
        "id": owner.id,
        "username": owner.username,
        "full_name": owner.full_name,
        "avatar": owner.avatar,
    } if owner else None
    data["videos"] = [
        {
            "id": video.id,
            "title": video.title,
            "thumbnail": video.thumbnail_url,
            "duration": video.duration,
            "views": video.views,
            "owner_id": video.owner_id,
        }
        for video in videos
    ]
    data["total_videos"] = len(videos)
    return api_response(200, data, "Playlist fetched successfully")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: str,
    payload: PlaylistUpdate,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Update playlist name and/or description (only by the owner).
    """
    playlist = _load_playlist(db_session, parse_id(playlist_id, "playlist"))
    require_owner(current_user.id, playlist.owner_id, action="update this playlist")

    changes = payload.changes()
    if not changes:
        raise ValidationError("Name or description is required to update")

    new_name = changes.get("name")
    if new_name and new_name != playlist.name and _name_taken(db_session, current_user.id, new_name):
        raise ConflictError(DUPLICATE_NAME)

    playlist.sqlmodel_update(changes)
    playlist.updated_at = datetime.utcnow()
    db_session.add(playlist)
    try:
        db_session.commit()
    except IntegrityError:
        db_session.rollback()
        raise ConflictError(DUPLICATE_NAME)
    db_session.refresh(playlist)

    logger.info(f"User {current_user.id} updated playlist {playlist.id}")
    return api_response(200, playlist.document(), "Playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a playlist and its video entries.
    """
    playlist = _load_playlist(db_session, parse_id(playlist_id, "playlist"))
    require_owner(current_user.id, playlist.owner_id, action="delete this playlist")

    # Delete playlist entries first (due to foreign key constraint)
    db_session.exec(delete(PlaylistVideo).where(PlaylistVideo.playlist_id == playlist.id))
    db_session.delete(playlist)
    db_session.commit()

    logger.info(f"User {current_user.id} deleted playlist {playlist_id}")
    return api_response(200, None, "Playlist deleted successfully")


# Playlist membership
@router.patch("/add/{video_id}/{playlist_id}")
def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Add a published video to the end of a playlist. Adding a member twice is rejected.
    """
    video_uuid = parse_id(video_id, "video")
    playlist = _load_playlist(db_session, parse_id(playlist_id, "playlist"))
    require_owner(current_user.id, playlist.owner_id, action="modify this playlist")

    video = db_session.get(Video, video_uuid)
    if not video or not video.is_published:
        raise NotFoundError("Video not found")

    existing = db_session.exec(
        select(PlaylistVideo).where(
            PlaylistVideo.playlist_id == playlist.id,
            PlaylistVideo.video_id == video.id,
        )
    ).first()
    if existing:
        raise ConflictError("Video already exists in playlist")

    max_position = db_session.exec(
        select(func.max(PlaylistVideo.position)).where(PlaylistVideo.playlist_id == playlist.id)
    ).first() or 0

    db_session.add(PlaylistVideo(playlist_id=playlist.id, video_id=video.id, position=max_position + 1))
    playlist.updated_at = datetime.utcnow()
    db_session.add(playlist)
    try:
        db_session.commit()
    except IntegrityError:
        db_session.rollback()
        raise ConflictError("Video already exists in playlist")
    db_session.refresh(playlist)

    logger.info(f"User {current_user.id} added video {video.id} to playlist {playlist.id}")
    return api_response(200, playlist.document(), "Video added to playlist successfully")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Remove a video from a playlist. The video must currently be a member.
    """
    video_uuid = parse_id(video_id, "video")
    playlist = _load_playlist(db_session, parse_id(playlist_id, "playlist"))
    require_owner(current_user.id, playlist.owner_id, action="modify this playlist")

    entry = db_session.exec(
        select(PlaylistVideo).where(
            PlaylistVideo.playlist_id == playlist.id,
            PlaylistVideo.video_id == video_uuid,
        )
    ).first()
    if not entry:
        raise NotFoundError("Video not found in playlist")

    db_session.delete(entry)
    playlist.updated_at = datetime.utcnow()
    db_session.add(playlist)
    db_session.commit()
    db_session.refresh(playlist)

    logger.info(f"User {current_user.id} removed video {video_uuid} from playlist {playlist.id}")
    return api_response(200, playlist.document(), "Video removed from playlist successfully")
