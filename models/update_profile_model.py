from pydantic import BaseModel, Field
from typing import Optional

from models.book_models import BookLocation
from models.preference_models import GenrePreferences


class UpdateUserProfile(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    bio: Optional[str] = Field(default=None, max_length=500)
    location: Optional[BookLocation] = None
    preferences: Optional[GenrePreferences] = None
