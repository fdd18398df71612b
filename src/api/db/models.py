import uuid
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional


class User(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    full_name: str = Field(default="", max_length=100)
    avatar: Optional[str] = Field(default=None, max_length=500)
    hashed_password: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def document(self) -> dict:
        return self.model_dump(exclude={"hashed_password"})


class Video(SQLModel, table=True):
    """Uploaded videos. Media assets live on the media host."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(max_length=255)
    description: str = Field(default="", max_length=5000)
    duration: float = Field(default=0)
    views: int = Field(default=0)
    is_published: bool = Field(default=True, index=True)
    video_file_url: str = Field(max_length=500)
    video_file_public_id: str = Field(max_length=255)
    thumbnail_url: str = Field(max_length=500)
    thumbnail_public_id: str = Field(max_length=255)
    owner_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    __table_args__ = {'extend_existing': True}

    def document(self) -> dict:
        doc = self.model_dump(exclude={
            "video_file_url", "video_file_public_id", "thumbnail_url", "thumbnail_public_id",
        })
        doc["video_file"] = {"url": self.video_file_url, "public_id": self.video_file_public_id}
        doc["thumbnail"] = {"url": self.thumbnail_url, "public_id": self.thumbnail_public_id}
        return doc


class Comment(SQLModel, table=True):
    """Stores comments on videos."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    content: str = Field(max_length=1000)
    video_id: uuid.UUID = Field(foreign_key="video.id", index=True)
    owner_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    __table_args__ = {'extend_existing': True}

    def document(self) -> dict:
        return self.model_dump()


class Tweet(SQLModel, table=True):
    """Short text posts."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    content: str = Field(max_length=280)
    owner_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    __table_args__ = {'extend_existing': True}

    def document(self) -> dict:
        return self.model_dump()


class Like(SQLModel, table=True):
    """A user's like on exactly one of a video, a comment or a tweet."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    video_id: Optional[uuid.UUID] = Field(default=None, foreign_key="video.id", index=True)
    comment_id: Optional[uuid.UUID] = Field(default=None, foreign_key="comment.id", index=True)
    tweet_id: Optional[uuid.UUID] = Field(default=None, foreign_key="tweet.id", index=True)
    liked_by_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("video_id", "liked_by_id", name="uq_like_video_user"),
        UniqueConstraint("comment_id", "liked_by_id", name="uq_like_comment_user"),
        UniqueConstraint("tweet_id", "liked_by_id", name="uq_like_tweet_user"),
        {'extend_existing': True},
    )

    def document(self) -> dict:
        return self.model_dump()


class Playlist(SQLModel, table=True):
    """User-created playlists for organizing videos."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=100)
    description: str = Field(default="", max_length=500)
    owner_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_playlist_owner_name"),
        {'extend_existing': True},
    )

    def document(self) -> dict:
        return self.model_dump()


class PlaylistVideo(SQLModel, table=True):
    """Videos in playlists, ordered by position."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    playlist_id: uuid.UUID = Field(foreign_key="playlist.id", index=True)
    video_id: uuid.UUID = Field(foreign_key="video.id", index=True)
    position: int = Field(default=0)
    added_at: datetime = Field(default_factory=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("playlist_id", "video_id", name="uq_playlist_video"),
        {'extend_existing': True},
    )
