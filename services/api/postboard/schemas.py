"""
Pydantic schemas.

Two groups live here:
  • the embedded shapes stored inside a post row (UserSnapshot, Comment,
    Reply, Like, Image). Post → Comment[] → Reply[] is closed: Reply has no
    replies field and extra keys are rejected, so depth 2 is enforced by type.
  • request / response schemas for the API layer, kept separate from the
    ORM models to avoid coupling transport to storage.
"""
import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# bcrypt only looks at the first 72 bytes and bcrypt>=5 refuses longer input
BCRYPT_MAX_BYTES = 72


def _password_fits_bcrypt(value: str) -> str:
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password cannot be longer than {BCRYPT_MAX_BYTES} bytes")
    return value


# ──────────────────────────── Embedded ────────────────────────────────────

class UserSnapshot(BaseModel):
    """Display fields of a user, frozen at the moment of the action."""
    id: str
    first_name: str
    last_name: str
    profile_pic: str = ""

    class Config:
        frozen = True
        extra = "forbid"

    @classmethod
    def of(cls, user) -> "UserSnapshot":  # noqa: ANN001
        return cls(
            id=user.user_id,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_pic=user.profile_pic or "",
        )


class Image(BaseModel):
    url: str

    class Config:
        frozen = True
        extra = "forbid"


class Reply(BaseModel):
    id: str = Field(default_factory=_new_id)
    user: UserSnapshot
    content: str
    created_at: datetime = Field(default_factory=_utcnow)

    class Config:
        frozen = True
        extra = "forbid"


class Comment(BaseModel):
    id: str = Field(default_factory=_new_id)
    user: UserSnapshot
    content: str
    created_at: datetime = Field(default_factory=_utcnow)
    replies: list[Reply] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"

    def with_reply(self, reply: Reply) -> "Comment":
        return self.model_copy(update={"replies": [*self.replies, reply]})


class Like(BaseModel):
    user: UserSnapshot

    class Config:
        frozen = True
        extra = "forbid"


# ──────────────────────────── Auth ────────────────────────────────────────

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    user_type: Literal["individual", "business"]
    first_name: str
    last_name: str
    about: Optional[str] = None
    mobile: str = Field(..., max_length=15)
    country_code: str = Field(..., max_length=5)
    country: str
    pincode: str
    city: str
    qualification: str
    dob: str
    exp_in_year: str
    skills: str
    marital_status: str
    profile_pic: Optional[str] = None
    profile_background: Optional[str] = None

    check_password = field_validator("password")(_password_fits_bcrypt)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class EmailRequest(BaseModel):
    email: EmailStr


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    otp: str


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(..., min_length=6)

    check_password = field_validator("password")(_password_fits_bcrypt)


# ──────────────────────────── Users ───────────────────────────────────────

class UserPublic(BaseModel):
    """A user as returned to clients — no credentials or one-time secrets."""
    user_id: str
    email: str
    user_type: str
    first_name: str
    last_name: str
    about: str
    profile_pic: str
    profile_background: str
    mobile: str
    country_code: str
    country: str
    city: str
    pincode: str
    qualification: str
    dob: str
    exp_in_year: str
    skills: str
    marital_status: str
    email_verified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class EditProfileRequest(BaseModel):
    email: EmailStr
    first_name: str
    last_name: str
    dob: str
    qualification: str
    exp_in_year: str
    skills: str
    marital_status: str
    city: str
    # Object keys as returned by the uploader; stored with the public prefix
    profile_pic: Optional[str] = None
    profile_background: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class MeResponse(BaseModel):
    user: UserPublic


# ──────────────────────────── Posts ───────────────────────────────────────

class ImageIn(BaseModel):
    """Image reference as sent by clients; unknown keys are dropped."""
    url: str

    class Config:
        extra = "ignore"


class PostCreate(BaseModel):
    content: str
    # Required, but may be empty
    images: list[ImageIn]


class CommentCreate(BaseModel):
    content: str


class PostAuthor(BaseModel):
    """Live author fields, joined from users at read time."""
    first_name: str
    last_name: str
    profile_pic: str


class PostView(BaseModel):
    post_id: str
    user_id: str
    content: str
    images: list[Image]
    created_at: datetime
    view_count: int
    comments: list[Comment]
    likes: list[Like]
    author: Optional[PostAuthor] = None


class FeedResponse(BaseModel):
    status: str = "success"
    posts: list[PostView]


# ──────────────────────────── Generic ─────────────────────────────────────

class StatusResponse(BaseModel):
    status: str = "success"


class MessageResponse(BaseModel):
    status: bool = True
    message: str


class SignedUploadResponse(BaseModel):
    file_name: str
    upload_url: str
