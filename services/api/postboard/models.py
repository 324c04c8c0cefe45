"""
SQLAlchemy ORM models.

Tables:
  users — identity, credentials, verification state and profile fields
  posts — the post aggregate; comments (with their replies) and likes are
          embedded as JSON arrays and always read/written with the row
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from postboard.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    # Always stored lower-cased; lookups lower-case their input
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    about: Mapped[str] = mapped_column(Text, default="", nullable=False)
    profile_pic: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    profile_background: Mapped[str] = mapped_column(String(500), default="", nullable=False)

    mobile: Mapped[str] = mapped_column(String(15), nullable=False)
    country_code: Mapped[str] = mapped_column(String(5), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    pincode: Mapped[str] = mapped_column(String(20), nullable=False)
    qualification: Mapped[str] = mapped_column(String(255), nullable=False)
    dob: Mapped[str] = mapped_column(String(20), nullable=False)
    exp_in_year: Mapped[str] = mapped_column(String(20), nullable=False)
    skills: Mapped[str] = mapped_column(Text, nullable=False)
    marital_status: Mapped[str] = mapped_column(String(50), nullable=False)

    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_verification_otp: Mapped[Optional[str]] = mapped_column(String(12))
    reset_password_token: Mapped[Optional[str]] = mapped_column(String(36))
    reset_password_expires: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    posts = relationship("Post", back_populates="author", lazy="raise")


class Post(Base):
    __tablename__ = "posts"

    post_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # [{"url": ...}, ...]
    images: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    # [Comment, ...] — see postboard.schemas for the embedded shapes
    comments: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    # [Like, ...]
    likes: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    # Stored and returned, never incremented
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    author = relationship("User", back_populates="posts", lazy="joined")

    __table_args__ = (
        Index("idx_posts_user", "user_id"),
        Index("idx_posts_created", "created_at"),
    )
