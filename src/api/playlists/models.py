from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PlaylistCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class PlaylistUpdate(BaseModel):
    """Optional playlist fields. Blank values count as absent."""
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator('name', 'description')
    @classmethod
    def blank_as_missing(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)
