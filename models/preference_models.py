from pydantic import BaseModel
from typing import List


class GenrePreferences(BaseModel):
    genres: List[str] = []
