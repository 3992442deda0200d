from typing import Optional

from fastapi import Header, Request

from dataBase import get_db
from errors import Unauthorized
from services.email_service import MailSender
from services.storage import ImageStorage
from utils import verify_token

__all__ = [
    "get_db",
    "get_current_user_id",
    "get_optional_user_id",
    "get_mail_sender",
    "get_image_storage",
]


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


async def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    token = _bearer_token(authorization)
    if not token:
        raise Unauthorized("Authentication required")
    user_id = verify_token(token)
    if user_id is None:
        raise Unauthorized("Invalid token")
    return user_id


async def get_optional_user_id(authorization: Optional[str] = Header(None)) -> Optional[str]:
    token = _bearer_token(authorization)
    return verify_token(token) if token else None


def get_mail_sender(request: Request) -> MailSender:
    return request.app.state.mail_sender


def get_image_storage(request: Request) -> ImageStorage:
    return request.app.state.image_storage
