"""Like/unlike as a presence toggle per (target, user) pair.

A pair is LIKED while a Like row exists for it and NOT_LIKED otherwise.
Each call flips the state and returns the freshly counted total for the
target. The existence check and the write are separate statements, so two
concurrent toggles may both try to insert; the unique constraints on
``Like`` reject the loser, which is reported as LIKED. A failed insert
whose target has since been deleted is reported as not found.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from api.db.models import Comment, Like, Tweet, Video
from api.errors import NotFoundError

logger = logging.getLogger("likes")


class LikeTarget(str, Enum):
    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"


_TARGETS = {
    LikeTarget.VIDEO: (Video, "video_id"),
    LikeTarget.COMMENT: (Comment, "comment_id"),
    LikeTarget.TWEET: (Tweet, "tweet_id"),
}


@dataclass(frozen=True)
class ToggleResult:
    is_liked: bool
    total_likes: int


def count_likes(session: Session, target: LikeTarget, target_id: uuid.UUID) -> int:
    _, column = _TARGETS[target]
    return session.exec(
        select(func.count()).select_from(Like).where(getattr(Like, column) == target_id)
    ).one()


def _find_like(session: Session, target: LikeTarget, target_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Like]:
    _, column = _TARGETS[target]
    return session.exec(
        select(Like).where(getattr(Like, column) == target_id, Like.liked_by_id == user_id)
    ).first()


def _require_target(session: Session, target: LikeTarget, target_id: uuid.UUID) -> None:
    model, _ = _TARGETS[target]
    if session.get(model, target_id) is None:
        raise NotFoundError(f"{target.value.capitalize()} not found")


def toggle_like(session: Session, target: LikeTarget, target_id: uuid.UUID, user_id: uuid.UUID) -> ToggleResult:
    _, column = _TARGETS[target]
    _require_target(session, target, target_id)

    existing = _find_like(session, target, target_id, user_id)
    if existing:
        session.exec(delete(Like).where(Like.id == existing.id))
        session.commit()
        is_liked = False
    else:
        session.add(Like(**{column: target_id}, liked_by_id=user_id))
        try:
            session.commit()
        except IntegrityError:
            # Either a concurrent toggle inserted the same pair first or the
            # target was deleted after the check above
            session.rollback()
            _require_target(session, target, target_id)
            logger.info(f"Like on {target.value} {target_id} by {user_id} already recorded")
        is_liked = True

    total_likes = count_likes(session, target, target_id)
    logger.info(f"User {user_id} {'liked' if is_liked else 'unliked'} {target.value} {target_id} ({total_likes} total)")
    return ToggleResult(is_liked=is_liked, total_likes=total_likes)
