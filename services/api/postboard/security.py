"""
Credential helpers: bcrypt password hashing, JWT session tokens and
one-time verification codes.
"""
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from postboard.config import settings
from postboard.errors import Unauthorized


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input
        return False


def create_access_token(user_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"userId": user_id, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried by `token`; Unauthorized if invalid or expired."""
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except jwt.PyJWTError as exc:
        raise Unauthorized() from exc
    user_id = payload.get("userId")
    if not user_id:
        raise Unauthorized()
    return user_id


def generate_otp(digits: int | None = None) -> str:
    digits = digits or settings.otp_digits
    return str(secrets.randbelow(10 ** digits)).zfill(digits)
