import logging
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from dependencies import get_current_user_id, get_db, get_image_storage
from errors import NotFound, ValidationError, server_error
from models.book_models import BookStatus
from models.exchange_models import ExchangeStatus
from models.password_models import UpdatePassword
from models.update_profile_model import UpdateUserProfile
from serializers import serialize_user
from services.storage import ImageStorage
from utils import hash_password, to_object_id, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

OPEN_EXCHANGE_STATUSES = [ExchangeStatus.PENDING.value, ExchangeStatus.ACCEPTED.value]


async def _get_user(db, user_id: str) -> dict:
    user = await db.users.find_one({"_id": to_object_id(user_id)})
    if not user:
        raise NotFound("User not found")
    return user


@router.get("/profile")
async def get_user_profile(user_id: str = Depends(get_current_user_id), db=Depends(get_db)):
    try:
        return {"data": serialize_user(await _get_user(db, user_id))}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Get profile error")
        raise server_error("Failed to fetch profile")


@router.patch("/profile")
async def update_user_profile(
    updated_data: UpdateUserProfile,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        user = await _get_user(db, user_id)

        update_dict = {}
        for k, v in updated_data.dict(exclude_unset=True).items():
            if k == "name":
                if v and v.strip():
                    update_dict["name"] = v.strip()
            elif k == "preferences":
                if v is not None:
                    update_dict["preferences"] = {"genres": v.get("genres", [])}
            else:
                update_dict[k] = v.value if isinstance(v, Enum) else v

        if update_dict:
            await db.users.update_one({"_id": user["_id"]}, {"$set": update_dict})
        updated_user = await _get_user(db, user_id)

        return {"message": "Profile updated successfully", "data": serialize_user(updated_user)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Profile update error")
        raise server_error("Failed to update profile")


@router.post("/profile/image")
async def update_profile_image(
    profileImage: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    try:
        if profileImage is None:
            raise ValidationError("No file uploaded")
        user = await _get_user(db, user_id)

        new_path = await storage.save(profileImage)
        await db.users.update_one({"_id": user["_id"]}, {"$set": {"profile_image": new_path}})
        if user.get("profile_image"):
            storage.delete(user["profile_image"])

        return {"message": "Profile image updated successfully", "profileImage": new_path}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating profile image")
        raise server_error("Failed to update profile image")


@router.patch("/profile/password")
async def update_profile_password(
    payload: UpdatePassword,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        user = await _get_user(db, user_id)
        if not verify_password(payload.currentPassword, user["password"]):
            raise ValidationError("Current password is incorrect")

        await db.users.update_one(
            {"_id": user["_id"]},
            {"$set": {"password": hash_password(payload.newPassword)}},
        )
        logger.info("Password updated for user %s", user_id)
        return {"message": "Password updated successfully"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Password update error")
        raise server_error("Failed to update password")


@router.delete("/account")
async def delete_account(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    try:
        user = await _get_user(db, user_id)
        user_oid = user["_id"]

        if user.get("profile_image"):
            storage.delete(user["profile_image"])

        # release other owners' books held by this user's open requests
        held_books = [
            t["book"] async for t in db.transactions.find(
                {"requester": user_oid, "status": {"$in": OPEN_EXCHANGE_STATUSES}},
                {"book": 1},
            )
        ]
        if held_books:
            await db.books.update_many(
                {"_id": {"$in": held_books}, "status": BookStatus.PENDING.value},
                {"$set": {"status": BookStatus.AVAILABLE.value}},
            )

        await db.books.delete_many({"owner": user_oid})
        await db.transactions.update_many(
            {"$or": [{"requester": user_oid}, {"owner": user_oid}]},
            {"$set": {"status": ExchangeStatus.CANCELLED.value}},
        )
        await db.users.delete_one({"_id": user_oid})

        logger.info("Account %s deleted", user_id)
        return {"message": "Account deleted successfully"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting account")
        raise server_error("Failed to delete account")
