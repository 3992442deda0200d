from pydantic import BaseModel, Field, field_validator
from typing import Optional

from models.book_models import BookCondition, BookLocation, strip_required_text


class PostBookModel(BaseModel):
    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    genre: str = Field(min_length=1)
    description: Optional[str] = None
    condition: BookCondition
    location: BookLocation

    @field_validator("title", "author", "genre")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return strip_required_text(value)
