from pydantic import BaseModel, Field, field_validator
from typing import Optional

from models.book_models import BookCondition, BookLocation, strip_required_text


# status is deliberately absent: it only moves with exchange requests
class UpdateBookModel(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    author: Optional[str] = Field(default=None, min_length=1)
    genre: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    condition: Optional[BookCondition] = None
    location: Optional[BookLocation] = None

    @field_validator("title", "author", "genre")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return strip_required_text(value)
