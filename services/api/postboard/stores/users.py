"""
Identity store — user records, credentials and verification state.

The social graph only consumes two things from here: the authenticated
user's id and a UserSnapshot of their display fields at action time.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.config import settings
from postboard.errors import Conflict, NotFound, Unauthorized, ValidationFailed
from postboard.models import User
from postboard.schemas import SignupRequest, UserSnapshot
from postboard.security import generate_otp, hash_password, verify_password

logger = logging.getLogger(__name__)

NO_SUCH_EMAIL = "We didn't find any user with this email address"


def _as_utc(value: datetime) -> datetime:
    # Some backends (SQLite) hand timezone-aware columns back naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def _require_by_email(self, email: str) -> User:
        user = await self.find_by_email(email)
        if user is None:
            raise NotFound(NO_SUCH_EMAIL)
        return user

    async def create(self, body: SignupRequest) -> User:
        """Register an unverified account with a fresh verification code."""
        if await self.find_by_email(body.email):
            raise Conflict("User already exists")

        user = User(
            email=body.email.lower(),
            password_hash=hash_password(body.password),
            user_type=body.user_type,
            first_name=body.first_name,
            last_name=body.last_name,
            about=body.about or "",
            mobile=body.mobile,
            country_code=body.country_code,
            country=body.country,
            city=body.city,
            pincode=body.pincode,
            qualification=body.qualification,
            dob=body.dob,
            exp_in_year=body.exp_in_year,
            skills=body.skills,
            marital_status=body.marital_status,
            profile_pic=body.profile_pic or "",
            profile_background=body.profile_background or "",
            email_verified=False,
            email_verification_otp=generate_otp(),
        )
        self.db.add(user)
        await self.db.flush()
        logger.info("Created user %s", user.user_id)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise Unauthorized("Invalid Email or password")
        if not user.email_verified:
            raise Unauthorized("Please verify your email")
        return user

    async def verify_email(self, email: str, otp: str) -> User:
        user = await self._require_by_email(email)
        if user.email_verified:
            raise Conflict("Account already verified")
        if user.email_verification_otp != otp:
            raise ValidationFailed("Invalid OTP")

        user.email_verified = True
        user.email_verification_otp = None
        await self.db.flush()
        logger.info("Verified email for user %s", user.user_id)
        return user

    async def ensure_verification_otp(self, email: str) -> tuple[User, str]:
        """Return the pending verification code, generating one if none is set."""
        user = await self._require_by_email(email)
        if user.email_verified:
            raise Conflict("Account already verified")

        if not user.email_verification_otp:
            user.email_verification_otp = generate_otp()
            await self.db.flush()
        return user, user.email_verification_otp

    async def set_reset_token(self, email: str) -> tuple[User, str]:
        user = await self._require_by_email(email)
        token = str(uuid.uuid4())
        user.reset_password_token = token
        user.reset_password_expires = datetime.now(timezone.utc) + timedelta(
            minutes=settings.reset_token_ttl_minutes
        )
        await self.db.flush()
        return user, token

    async def reset_password(self, token: str, password: str) -> User:
        result = await self.db.execute(
            select(User).where(User.reset_password_token == token)
        )
        user = result.scalar_one_or_none()
        if user is None or user.reset_password_expires is None:
            raise ValidationFailed("Invalid or expired reset token")
        if _as_utc(user.reset_password_expires) < datetime.now(timezone.utc):
            raise ValidationFailed("Invalid or expired reset token")

        user.password_hash = hash_password(password)
        user.reset_password_token = None
        user.reset_password_expires = None
        await self.db.flush()
        logger.info("Password reset for user %s", user.user_id)
        return user

    async def update_profile(self, user: User, **fields) -> User:
        """Overwrite profile fields. Embedded snapshots elsewhere are untouched."""
        email = fields.get("email")
        if email is not None:
            email = email.lower()
            if email != user.email:
                other = await self.find_by_email(email)
                if other is not None and other.user_id != user.user_id:
                    raise Conflict("Email already in use")
            fields["email"] = email

        for name, value in fields.items():
            setattr(user, name, value)
        await self.db.flush()
        return user

    async def get_snapshot(self, user_id: str) -> UserSnapshot:
        user = await self.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return UserSnapshot.of(user)
