"""
FastAPI dependency providers.

Each store is built around the request's session, so a request's reads and
writes share one transaction and no component reaches for global state.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.database import get_db
from postboard.errors import Unauthorized
from postboard.models import User
from postboard.security import decode_access_token
from postboard.stores.feed import FeedAssembler
from postboard.stores.posts import PostStore
from postboard.stores.users import UserStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_post_store(db: AsyncSession = Depends(get_db)) -> PostStore:
    return PostStore(db)


def get_feed_assembler(db: AsyncSession = Depends(get_db)) -> FeedAssembler:
    return FeedAssembler(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: UserStore = Depends(get_user_store),
) -> User:
    """Resolve `Authorization: Bearer <jwt>` to a user, or raise Unauthorized."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    user_id = decode_access_token(credentials.credentials)
    user = await users.get(user_id)
    if user is None:
        raise Unauthorized()
    return user
