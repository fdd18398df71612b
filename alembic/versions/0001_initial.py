"""initial tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("username", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("email", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("avatar", sa.String(length=500), nullable=True),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "video",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=5000), nullable=False),
        sa.Column("duration", sa.Float(), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, index=True),
        sa.Column("video_file_url", sa.String(length=500), nullable=False),
        sa.Column("video_file_public_id", sa.String(length=255), nullable=False),
        sa.Column("thumbnail_url", sa.String(length=500), nullable=False),
        sa.Column("thumbnail_public_id", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("user.id"), nullable=False, index=True),
        *_timestamps(),
    )
    op.create_table(
        "comment",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("content", sa.String(length=1000), nullable=False),
        sa.Column("video_id", sa.Uuid(), sa.ForeignKey("video.id"), nullable=False, index=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("user.id"), nullable=False, index=True),
        *_timestamps(),
    )
    op.create_table(
        "tweet",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("content", sa.String(length=280), nullable=False),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("user.id"), nullable=False, index=True),
        *_timestamps(),
    )
    op.create_table(
        "like",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("video_id", sa.Uuid(), sa.ForeignKey("video.id"), nullable=True, index=True),
        sa.Column("comment_id", sa.Uuid(), sa.ForeignKey("comment.id"), nullable=True, index=True),
        sa.Column("tweet_id", sa.Uuid(), sa.ForeignKey("tweet.id"), nullable=True, index=True),
        sa.Column("liked_by_id", sa.Uuid(), sa.ForeignKey("user.id"), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("video_id", "liked_by_id", name="uq_like_video_user"),
        sa.UniqueConstraint("comment_id", "liked_by_id", name="uq_like_comment_user"),
        sa.UniqueConstraint("tweet_id", "liked_by_id", name="uq_like_tweet_user"),
    )
    op.create_table(
        "playlist",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("user.id"), nullable=False, index=True),
        *_timestamps(),
        sa.UniqueConstraint("owner_id", "name", name="uq_playlist_owner_name"),
    )
    op.create_table(
        "playlistvideo",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("playlist_id", sa.Uuid(), sa.ForeignKey("playlist.id"), nullable=False, index=True),
        sa.Column("video_id", sa.Uuid(), sa.ForeignKey("video.id"), nullable=False, index=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("added_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("playlist_id", "video_id", name="uq_playlist_video"),
    )


def downgrade() -> None:
    for table in ("playlistvideo", "playlist", "like", "tweet", "comment", "video", "user"):
        op.drop_table(table)
