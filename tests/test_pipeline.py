import uuid

import pytest

from api.db.pagination import page_params
from api.db.pipeline import (
    Flatten,
    Lookup,
    Match,
    Pipeline,
    ReplaceRoot,
    Sort,
    compile_pipeline,
    liked_videos_pipeline,
    video_listing_pipeline,
)
from api.errors import ValidationError
from api.utils import parse_int_or_fallback
from api.validators import is_valid_id, parse_id


def test_video_listing_defaults():
    pipeline = video_listing_pipeline()
    assert pipeline.source == "videos"
    match, sort, lookup, flatten = pipeline.stages
    assert match == Match(equals={"is_published": True})
    assert sort == Sort("created_at", descending=True)
    assert lookup.source == "users" and lookup.as_ == "owner"
    assert flatten == Flatten("owner")


def test_video_listing_options():
    owner = uuid.uuid4()
    pipeline = video_listing_pipeline(query=" cats ", sort_by="updatedAt", sort_type="ASC", owner_id=owner)
    match, sort = pipeline.stages[:2]
    assert match.equals == {"is_published": True, "owner_id": owner}
    assert match.search == ("title", "cats")
    assert sort == Sort("updated_at", descending=False)


@pytest.mark.parametrize("sort_by", ["hashed_password", "owner", "1"])
def test_video_listing_rejects_unknown_sort(sort_by):
    with pytest.raises(ValidationError):
        video_listing_pipeline(sort_by=sort_by)


def test_liked_videos_replaces_root():
    pipeline = liked_videos_pipeline(uuid.uuid4())
    assert pipeline.source == "likes"
    assert pipeline.stages[-1] == ReplaceRoot("video")


def test_then_appends_stages():
    base = Pipeline("tweets", (Sort("created_at"),))
    extended = base.then(Match(equals={"content": "x"}))
    assert len(base.stages) == 1
    assert len(extended.stages) == 2


def test_compile_rejects_bad_references():
    with pytest.raises(ValueError):
        compile_pipeline(Pipeline("nowhere"))
    with pytest.raises(ValueError):
        compile_pipeline(Pipeline("videos", (Match(equals={"owner.username": "a"}),)))
    with pytest.raises(ValueError):
        compile_pipeline(Pipeline("videos", (Flatten("owner"),)))
    with pytest.raises(ValidationError):
        compile_pipeline(Pipeline("videos", (Sort("nope"),)))


def test_compiled_statement_orders_by_id_last():
    compiled = compile_pipeline(Pipeline("videos", (
        Sort("views"),
        Lookup("users", "owner_id", "owner", ("username",)),
        Flatten("owner"),
    )))
    sql = str(compiled.statement)
    assert "ORDER BY video.views DESC, video.id" in sql
    assert "owner__username" in sql
    assert "count(*)" in str(compiled.count_statement())


@pytest.mark.parametrize(
    "page,limit,expected",
    [
        (None, None, (1, 10)),
        ("3", "5", (3, 5)),
        ("abc", "xyz", (1, 10)),
        ("0", "0", (1, 10)),
        ("-2", "-1", (1, 10)),
        ("2", "1000", (2, 1000)),
    ],
)
def test_page_params(page, limit, expected):
    assert page_params(page, limit) == expected


def test_parse_int_or_fallback():
    assert parse_int_or_fallback(" 7 ", 1) == 7
    assert parse_int_or_fallback("7.5", 1) == 1
    assert parse_int_or_fallback(True, 1) == 1
    assert parse_int_or_fallback("0", 4, minimum=1) == 4


def test_identifier_validation():
    value = uuid.uuid4()
    assert is_valid_id(str(value))
    assert not is_valid_id("")
    assert not is_valid_id(None)
    assert not is_valid_id("64b7f0c2e1")
    assert parse_id(str(value), "video") == value
    with pytest.raises(ValidationError) as exc:
        parse_id("nope", "playlist")
    assert exc.value.message == "Invalid playlist id"
