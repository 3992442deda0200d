import logging

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_current_user_id, get_db
from errors import NotFound, server_error
from models.preference_models import GenrePreferences
from utils import to_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["preferences"])


@router.patch("/preferences")
async def update_preferences(
    preferences: GenrePreferences,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        genres = [genre.strip() for genre in preferences.genres if genre and genre.strip()]
        result = await db.users.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"preferences.genres": genres}},
        )
        if result.matched_count == 0:
            raise NotFound("User not found")

        return {"message": "Preferences updated successfully", "preferences": {"genres": genres}}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating preferences")
        raise server_error("Failed to update preferences")
