# =====================================
# backend/utils/auth_utils.py - JWT + Password Utilities
# =====================================
import jwt
import bcrypt
from datetime import datetime, timedelta
from typing import Dict

from utils.settings import settings

ALGORITHM = "HS256"


class TokenError(Exception):
    """Raised when a bearer token cannot be trusted."""


def create_access_token(user_id: str) -> str:
    """Signs a token whose subject is the user id"""
    now = datetime.utcnow()
    to_encode = {
        "sub": str(user_id),
        "exp": now + timedelta(hours=settings.access_token_expire_hours),
        "iat": now,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Dict:
    """Decodes a token, raising TokenError if expired or tampered with"""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError:
        raise TokenError("Invalid token")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
