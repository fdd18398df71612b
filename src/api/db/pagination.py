import math
from typing import Any, List

from pydantic import BaseModel, Field
from sqlmodel import Session

from api.db.pipeline import Pipeline, compile_pipeline
from api.utils import parse_int_or_fallback

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


class Page(BaseModel):
    """One slice of a filtered, sorted result set."""
    items: List[Any]
    page: int
    limit: int
    total_items: int = Field(serialization_alias="totalItems")
    total_pages: int = Field(serialization_alias="totalPages")


def page_params(page: Any = None, limit: Any = None) -> tuple[int, int]:
    """Coerce raw query values; anything missing, non-numeric or below 1 falls back to the default."""
    page_number = parse_int_or_fallback(page, DEFAULT_PAGE, minimum=1)
    limit_number = parse_int_or_fallback(limit, DEFAULT_LIMIT, minimum=1)
    return page_number, limit_number


def paginate(session: Session, pipeline: Pipeline, page: Any = None, limit: Any = None) -> Page:
    page_number, limit_number = page_params(page, limit)
    compiled = compile_pipeline(pipeline)

    total_items = session.exec(compiled.count_statement()).scalar_one()
    rows = session.exec(
        compiled.statement.offset((page_number - 1) * limit_number).limit(limit_number)
    ).all()

    return Page(
        items=[compiled.shape(row) for row in rows],
        page=page_number,
        limit=limit_number,
        total_items=total_items,
        total_pages=math.ceil(total_items / limit_number),
    )
