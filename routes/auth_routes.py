import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import DuplicateKeyError

from config import RESET_CODE_EXPIRE_MINUTES
from dependencies import get_db, get_mail_sender
from errors import (
    DuplicateEmail,
    EmailDeliveryError,
    InvalidCredentials,
    InvalidOrExpiredCode,
    InvalidSecurityAnswers,
    NotFound,
    server_error,
)
from models.login_model import LoginUser
from models.password_models import (
    ForgotPassword,
    ResetPassword,
    ResetPasswordWithAnswers,
    SecurityAnswers,
)
from models.register_model import RegisterUser
from serializers import serialize_user
from services.email_service import MailSender
from utils import (
    create_access_token,
    generate_reset_code,
    hash_password,
    hash_security_answers,
    verify_password,
    verify_security_answers,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_for(user: dict) -> str:
    return create_access_token(data={"user_id": str(user["_id"])})


@router.post("/register", status_code=201)
async def register_user(
    user: RegisterUser,
    db=Depends(get_db),
    mail_sender: MailSender = Depends(get_mail_sender),
):
    try:
        existing_user = await db.users.find_one({"email": user.email})
        if existing_user:
            raise DuplicateEmail()

        user_dict = {
            "email": user.email,
            "password": hash_password(user.password),
            "name": user.name,
            "security_answers": hash_security_answers(user.securityAnswers),
            "preferences": {"genres": []},
            "reputation": 0,
            "created_at": datetime.utcnow(),
        }
        try:
            result = await db.users.insert_one(user_dict)
        except DuplicateKeyError:
            raise DuplicateEmail()
        user_dict["_id"] = result.inserted_id
        logger.info("Registered user %s", result.inserted_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Registration error")
        raise server_error("Registration failed, please try again")

    # best effort, registration already succeeded
    try:
        await mail_sender.send(user.email, "welcome", {"name": user.name})
    except Exception as e:
        logger.warning("Welcome email to %s failed: %s", user.email, e)

    return {"token": _token_for(user_dict), "user": serialize_user(user_dict)}


@router.post("/login")
async def login_user(user: LoginUser, db=Depends(get_db)):
    try:
        existing_user = await db.users.find_one({"email": user.email})
        # same answer for unknown email and wrong password
        if not existing_user or not verify_password(user.password, existing_user["password"]):
            raise InvalidCredentials()

        return {
            "message": "Login successful!",
            "token": _token_for(existing_user),
            "user": serialize_user(existing_user),
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Login error")
        raise server_error("Login failed, please try again")


@router.post("/forgot-password")
async def forgot_password(
    payload: ForgotPassword,
    db=Depends(get_db),
    mail_sender: MailSender = Depends(get_mail_sender),
):
    try:
        user = await db.users.find_one({"email": payload.email})
        if not user:
            raise NotFound("User not found")

        otp = generate_reset_code()
        await db.users.update_one(
            {"_id": user["_id"]},
            {"$set": {
                "reset_password_token": otp,
                "reset_password_expires": datetime.utcnow() + timedelta(minutes=RESET_CODE_EXPIRE_MINUTES),
            }},
        )

        try:
            await mail_sender.send(payload.email, "passwordReset", {"otp": otp})
        except EmailDeliveryError:
            await db.users.update_one(
                {"_id": user["_id"]},
                {"$unset": {"reset_password_token": "", "reset_password_expires": ""}},
            )
            raise EmailDeliveryError("Failed to send OTP email")

        return {"message": "OTP sent to email"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Forgot password error")
        raise server_error("Password reset failed")


@router.post("/reset-password")
async def reset_password(payload: ResetPassword, db=Depends(get_db)):
    try:
        user = await db.users.find_one({
            "email": payload.email,
            "reset_password_token": payload.otp,
            "reset_password_expires": {"$gt": datetime.utcnow()},
        })
        if not user:
            raise InvalidOrExpiredCode()

        await db.users.update_one(
            {"_id": user["_id"]},
            {
                "$set": {"password": hash_password(payload.newPassword)},
                "$unset": {"reset_password_token": "", "reset_password_expires": ""},
            },
        )
        logger.info("Password reset by code for user %s", user["_id"])
        return {"message": "Password reset successful"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Reset password error")
        raise server_error("Password reset failed")


async def _user_with_answers(db, payload: SecurityAnswers) -> dict:
    user = await db.users.find_one({"email": payload.email})
    if not user or not verify_security_answers(payload.answers, user.get("security_answers", [])):
        raise InvalidSecurityAnswers()
    return user


@router.post("/verify-security-answers")
async def verify_answers(payload: SecurityAnswers, db=Depends(get_db)):
    try:
        await _user_with_answers(db, payload)
        return {"message": "Security answers verified successfully"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Security answer verification error")
        raise server_error("Failed to verify security answers")


@router.post("/reset-password-security")
async def reset_password_with_answers(payload: ResetPasswordWithAnswers, db=Depends(get_db)):
    try:
        user = await _user_with_answers(db, payload)
        await db.users.update_one(
            {"_id": user["_id"]},
            {"$set": {"password": hash_password(payload.newPassword)}},
        )
        logger.info("Password reset by security answers for user %s", user["_id"])
        return {"message": "Password reset successful"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Password reset error")
        raise server_error("Failed to reset password")
