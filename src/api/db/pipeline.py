"""Read pipelines for listing endpoints.

A pipeline is a source collection plus a fixed sequence of stage
descriptors (match, sort, lookup, flatten, add-fields, replace-root).
Stages only name collections and fields; ``compile_pipeline`` is the one
place that knows how to express them as SQL.

Example::

    Pipeline("comments", (
        Match(equals={"video_id": video_id}),
        Sort("created_at"),
        Lookup("users", "owner_id", "owner", ("username", "full_name", "avatar")),
        Flatten("owner"),
    ))
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import aliased
from sqlalchemy.sql import Select

from api.db.models import Comment, Like, Playlist, PlaylistVideo, Tweet, User, Video
from api.errors import ValidationError

COLLECTIONS = {
    "users": User,
    "videos": Video,
    "comments": Comment,
    "tweets": Tweet,
    "likes": Like,
    "playlists": Playlist,
    "playlist_videos": PlaylistVideo,
}

# Display fields joined in place of full user documents
OWNER_FIELDS = ("username", "full_name", "avatar")

SORTABLE_VIDEO_FIELDS = {"created_at", "updated_at", "title", "views", "duration"}
_SORT_ALIASES = {"createdAt": "created_at", "updatedAt": "updated_at"}


# Stage descriptors

@dataclass(frozen=True)
class Match:
    equals: Mapping[str, Any] = field(default_factory=dict)
    not_null: tuple[str, ...] = ()
    # (field, text): case-insensitive substring match
    search: Optional[tuple[str, str]] = None


@dataclass(frozen=True)
class Sort:
    field: str = "created_at"
    descending: bool = True


@dataclass(frozen=True)
class Lookup:
    source: str
    local_field: str
    as_: str
    # Empty means the whole joined document
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class Flatten:
    path: str


@dataclass(frozen=True)
class CountRelated:
    """Number of ``through`` rows pointing at the root document.

    With ``target`` set, only rows whose target document matches ``where``
    are counted.
    """
    through: str
    foreign_field: str
    target: Optional[str] = None
    target_field: Optional[str] = None
    where: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FirstRelated:
    """``value`` of the first target document reached through a link collection, or None."""
    through: str
    foreign_field: str
    target: str
    target_field: str
    value: str
    order_by: str = "position"
    where: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AddFields:
    fields: Mapping[str, Union[CountRelated, FirstRelated]]


@dataclass(frozen=True)
class ReplaceRoot:
    path: str


Stage = Union[Match, Sort, Lookup, Flatten, AddFields, ReplaceRoot]


@dataclass(frozen=True)
class Pipeline:
    source: str
    stages: tuple[Stage, ...] = ()

    def then(self, *stages: Stage) -> "Pipeline":
        return Pipeline(self.source, self.stages + tuple(stages))


# Compiler

@dataclass
class CompiledPipeline:
    statement: Select
    shape: Callable[[Any], dict]

    def count_statement(self) -> Select:
        return select(func.count()).select_from(self.statement.order_by(None).subquery())


def _collection(name: str):
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise ValueError(f"Unknown collection '{name}'") from None


def _column(entity, model, name: str):
    if name not in model.__table__.columns:
        raise ValidationError(f"Unknown field '{name}'")
    return getattr(entity, name)


def _related_filters(model, where: Mapping[str, Any]):
    return [_column(model, model, name) == value for name, value in where.items()]


def _related_subquery(computed: Union[CountRelated, FirstRelated], root):
    link = _collection(computed.through)
    back_ref = _column(link, link, computed.foreign_field) == root.id

    if isinstance(computed, CountRelated):
        query = select(func.count()).select_from(link)
        if computed.target:
            target = _collection(computed.target)
            query = query.join(target, _column(link, link, computed.target_field) == target.id)
            query = query.where(*_related_filters(target, computed.where))
        return query.where(back_ref).scalar_subquery()

    target = _collection(computed.target)
    return (
        select(_column(target, target, computed.value))
        .join(link, _column(link, link, computed.target_field) == target.id)
        .where(back_ref, *_related_filters(target, computed.where))
        .order_by(_column(link, link, computed.order_by))
        .limit(1)
        .scalar_subquery()
    )


def compile_pipeline(pipeline: Pipeline) -> CompiledPipeline:
    root = _collection(pipeline.source)
    flattened = {stage.path for stage in pipeline.stages if isinstance(stage, Flatten)}

    statement = select(root)
    joined: dict[str, tuple[Any, Any]] = {}
    lookups: list[tuple[str, int, Optional[tuple[str, ...]]]] = []
    computed_fields: list[tuple[str, int]] = []
    ordering = []
    replace_root: Optional[str] = None
    width = 1

    def resolve(path: str):
        if "." in path:
            alias, name = path.split(".", 1)
            if alias not in joined:
                raise ValueError(f"'{alias}' must be looked up before it is referenced")
            entity, model = joined[alias]
            return _column(entity, model, name)
        return _column(root, root, path)

    for stage in pipeline.stages:
        if isinstance(stage, Match):
            clauses = [resolve(name) == value for name, value in stage.equals.items()]
            clauses += [resolve(name).is_not(None) for name in stage.not_null]
            if stage.search:
                name, text = stage.search
                clauses.append(resolve(name).icontains(text, autoescape=True))
            if clauses:
                statement = statement.where(*clauses)
        elif isinstance(stage, Sort):
            column = resolve(stage.field)
            ordering.append(column.desc() if stage.descending else column.asc())
        elif isinstance(stage, Lookup):
            model = _collection(stage.source)
            target = aliased(model, name=stage.as_)
            statement = statement.join(
                target,
                resolve(stage.local_field) == target.id,
                isouter=stage.as_ not in flattened,
            )
            joined[stage.as_] = (target, model)
            if stage.fields:
                projected = ("id",) + tuple(name for name in stage.fields if name != "id")
                statement = statement.add_columns(
                    *[_column(target, model, name).label(f"{stage.as_}__{name}") for name in projected]
                )
                lookups.append((stage.as_, width, projected))
                width += len(projected)
            else:
                statement = statement.add_columns(target)
                lookups.append((stage.as_, width, None))
                width += 1
        elif isinstance(stage, AddFields):
            for name, computed in stage.fields.items():
                statement = statement.add_columns(_related_subquery(computed, root).label(name))
                computed_fields.append((name, width))
                width += 1
        elif isinstance(stage, ReplaceRoot):
            replace_root = stage.path
        elif isinstance(stage, Flatten):
            if stage.path not in {name for name, _, _ in lookups}:
                raise ValueError(f"Cannot flatten '{stage.path}' before it is looked up")

    # Stable pages when the sort key ties
    statement = statement.order_by(*ordering, root.id)

    def shape(row) -> dict:
        document = row[0].document()
        for as_, index, projected in lookups:
            if projected is None:
                joined_doc = row[index].document() if row[index] is not None else None
            else:
                values = {name: row[index + offset] for offset, name in enumerate(projected)}
                joined_doc = values if values["id"] is not None else None
            if as_ in flattened:
                document[as_] = joined_doc
            else:
                document[as_] = [joined_doc] if joined_doc is not None else []
        for name, index in computed_fields:
            document[name] = row[index]
        if replace_root:
            return document[replace_root]
        return document

    return CompiledPipeline(statement=statement, shape=shape)


# Per-resource builders

def _owner_stages() -> tuple[Stage, ...]:
    return (Lookup("users", "owner_id", "owner", OWNER_FIELDS), Flatten("owner"))


def video_listing_pipeline(
    query: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
    owner_id: Optional[uuid.UUID] = None,
) -> Pipeline:
    """Published videos, optionally searched by title and scoped to one owner."""
    equals: dict[str, Any] = {"is_published": True}
    if owner_id is not None:
        equals["owner_id"] = owner_id
    search = ("title", query.strip()) if query and query.strip() else None

    sort_field = _SORT_ALIASES.get(sort_by, sort_by) if sort_by else "created_at"
    if sort_field not in SORTABLE_VIDEO_FIELDS:
        raise ValidationError(f"Cannot sort videos by '{sort_by}'")

    return Pipeline("videos", (
        Match(equals=equals, search=search),
        Sort(sort_field, descending=(sort_type or "desc").lower() != "asc"),
        *_owner_stages(),
    ))


def comment_listing_pipeline(video_id: uuid.UUID) -> Pipeline:
    return Pipeline("comments", (
        Match(equals={"video_id": video_id}),
        Sort("created_at"),
        *_owner_stages(),
    ))


def tweet_listing_pipeline(owner_id: uuid.UUID) -> Pipeline:
    return Pipeline("tweets", (
        Match(equals={"owner_id": owner_id}),
        Sort("created_at"),
        *_owner_stages(),
        AddFields({"total_likes": CountRelated("likes", "tweet_id")}),
    ))


def playlist_listing_pipeline(owner_id: uuid.UUID) -> Pipeline:
    """A user's playlists with member count and a preview thumbnail."""
    published = {"is_published": True}
    return Pipeline("playlists", (
        Match(equals={"owner_id": owner_id}),
        Sort("created_at"),
        AddFields({
            "total_videos": CountRelated(
                "playlist_videos", "playlist_id", target="videos", target_field="video_id", where=published,
            ),
            "preview_thumbnail": FirstRelated(
                "playlist_videos", "playlist_id", target="videos", target_field="video_id",
                value="thumbnail_url", where=published,
            ),
        }),
    ))


def liked_videos_pipeline(user_id: uuid.UUID) -> Pipeline:
    """Published videos liked by ``user_id``, most recently liked first."""
    return Pipeline("likes", (
        Match(equals={"liked_by_id": user_id}, not_null=("video_id",)),
        Sort("created_at"),
        Lookup("videos", "video_id", "video"),
        Flatten("video"),
        Match(equals={"video.is_published": True}),
        ReplaceRoot("video"),
    ))
