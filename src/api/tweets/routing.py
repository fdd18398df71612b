import logging
from typing import Optional
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session, delete

from api.db.session import get_session
from api.db.pagination import paginate
from api.db.pipeline import tweet_listing_pipeline
from api.auth.utils import get_current_user
from api.db.models import Like, Tweet, User
from api.errors import NotFoundError
from api.ownership import require_owner
from api.responses import api_response
from api.validators import parse_id, require_text

# Set up logging
logger = logging.getLogger("tweets")

router = APIRouter()


class TweetPayload(BaseModel):
    content: Optional[str] = Field(default=None, max_length=280)


def _load_tweet(db_session: Session, tweet_id: str) -> Tweet:
    tweet = db_session.get(Tweet, parse_id(tweet_id, "tweet"))
    if not tweet:
        logger.warning(f"Tweet not found: {tweet_id}")
        raise NotFoundError("Tweet not found")
    return tweet


@router.post("/")
def create_tweet(
    payload: TweetPayload,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    content = require_text(payload.content, "Tweet content cannot be empty")
    tweet = Tweet(content=content, owner_id=current_user.id)
    db_session.add(tweet)
    db_session.commit()
    db_session.refresh(tweet)

    logger.info(f"User {current_user.id} posted tweet {tweet.id}")
    return api_response(201, tweet.document(), "Tweet created successfully")


@router.get("/user/{user_id}")
def get_user_tweets(
    user_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db_session: Session = Depends(get_session),
):
    tweets = paginate(db_session, tweet_listing_pipeline(parse_id(user_id, "user")), page, limit)
    return api_response(200, tweets, "Tweets fetched successfully")


@router.patch("/{tweet_id}")
def update_tweet(
    tweet_id: str,
    payload: TweetPayload,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    tweet = _load_tweet(db_session, tweet_id)
    content = require_text(payload.content, "Tweet content cannot be empty")
    require_owner(current_user.id, tweet.owner_id, action="update this tweet")

    tweet.content = content
    tweet.updated_at = datetime.utcnow()
    db_session.add(tweet)
    db_session.commit()
    db_session.refresh(tweet)

    logger.info(f"User {current_user.id} updated tweet {tweet.id}")
    return api_response(200, tweet.document(), "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(
    tweet_id: str,
    db_session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    tweet = _load_tweet(db_session, tweet_id)
    require_owner(current_user.id, tweet.owner_id, action="delete this tweet")

    db_session.exec(delete(Like).where(Like.tweet_id == tweet.id))
    db_session.delete(tweet)
    db_session.commit()

    logger.info(f"User {current_user.id} deleted tweet {tweet_id}")
    return api_response(200, None, "Tweet deleted successfully")
