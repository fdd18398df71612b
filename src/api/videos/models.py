from typing import Optional

from pydantic import BaseModel, field_validator


class VideoUpdate(BaseModel):
    """Optional video fields. Blank values count as absent."""
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator('title', 'description')
    @classmethod
    def blank_as_missing(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)
