from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from api.db.session import get_session
from api.db.pagination import paginate
from api.db.pipeline import liked_videos_pipeline
from api.auth.utils import get_current_user
from api.db.models import User
from api.responses import api_response
from api.validators import parse_id

from .toggle import LikeTarget, toggle_like

router = APIRouter()


def _toggle_response(target: LikeTarget, raw_id: str, db_session: Session, current_user: User):
    result = toggle_like(db_session, target, parse_id(raw_id, target.value), current_user.id)
    action = "liked" if result.is_liked else "unliked"
    return api_response(200, asdict(result), f"{target.value.capitalize()} {action} successfully")


@router.post("/toggle/v/{video_id}")
def toggle_video_like(
    video_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return _toggle_response(LikeTarget.VIDEO, video_id, db_session, current_user)


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(
    comment_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return _toggle_response(LikeTarget.COMMENT, comment_id, db_session, current_user)


@router.post("/toggle/t/{tweet_id}")
def toggle_tweet_like(
    tweet_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return _toggle_response(LikeTarget.TWEET, tweet_id, db_session, current_user)


@router.get("/videos")
def get_liked_videos(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Published videos the current user has liked, most recently liked first.
    """
    videos = paginate(db_session, liked_videos_pipeline(current_user.id), page, limit)
    return api_response(200, videos, "Liked videos fetched successfully")
