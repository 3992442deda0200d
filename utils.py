from passlib.context import CryptContext
import jwt
import secrets
from bson import ObjectId
from bson.errors import InvalidId
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, List

from config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, BCRYPT_ROUNDS

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def normalize_answer(answer: str) -> str:
    return answer.strip().lower()


def hash_security_answers(answers: List[str]) -> List[str]:
    return [pwd_context.hash(normalize_answer(answer)) for answer in answers]


def verify_security_answers(answers: List[str], hashed_answers: List[str]) -> bool:
    """Positional comparison; every answer has to match its stored hash."""
    if len(answers) != 3 or len(hashed_answers) != 3:
        return False
    results = [
        pwd_context.verify(normalize_answer(answer), hashed)
        for answer, hashed in zip(answers, hashed_answers)
    ]
    return all(results)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iat": datetime.utcnow()})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify JWT access token"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except jwt.PyJWTError:
        return None


def verify_token(token: str) -> Optional[str]:
    """Verify token and return user_id if valid"""
    payload = decode_access_token(token)
    if payload is None:
        return None
    user_id = payload.get("user_id")
    if not isinstance(user_id, str) or not ObjectId.is_valid(user_id):
        return None
    return user_id


def generate_reset_code() -> str:
    # 6 digits, never a leading zero
    return str(100000 + secrets.randbelow(900000))


def to_object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
