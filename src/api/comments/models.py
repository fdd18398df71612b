from typing import Optional

from pydantic import BaseModel, Field


class CommentPayload(BaseModel):
    """Body for creating or editing a comment. Emptiness is checked by the handler."""
    content: Optional[str] = Field(default=None, max_length=1000)
