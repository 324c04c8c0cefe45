"""
Feed assembler — read side of the social graph.

Joins each post with the *live* first name, last name and profile picture of
its author. Comment, reply and like authors are never re-joined: they are
rendered from the snapshots stored at submission time, so a renamed user
shows their new name on their posts but the old one on earlier comments.

Ordering is newest first, ties broken by post id so repeated reads of the
same data always come back in the same order. There is no pagination.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from postboard.models import Post
from postboard.schemas import Image, PostAuthor, PostView
from postboard.stores.posts import load_comments, load_likes


def to_post_view(post: Post) -> PostView:
    author = None
    if post.author is not None:
        author = PostAuthor(
            first_name=post.author.first_name,
            last_name=post.author.last_name,
            profile_pic=post.author.profile_pic or "",
        )
    return PostView(
        post_id=post.post_id,
        user_id=post.user_id,
        content=post.content,
        images=[Image.model_validate(i) for i in post.images or []],
        created_at=post.created_at,
        view_count=post.view_count,
        comments=load_comments(post),
        likes=load_likes(post),
        author=author,
    )


class FeedAssembler:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _list(self, author_id: Optional[str] = None) -> list[PostView]:
        stmt = (
            select(Post)
            .options(joinedload(Post.author))
            .order_by(Post.created_at.desc(), Post.post_id.desc())
        )
        if author_id is not None:
            stmt = stmt.where(Post.user_id == author_id)
        # populate_existing so author fields reflect the row, not a stale
        # instance already held by this session
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return [to_post_view(post) for post in result.unique().scalars().all()]

    async def list_feed(self) -> list[PostView]:
        return await self._list()

    async def list_my_posts(self, user_id: str) -> list[PostView]:
        return await self._list(author_id=user_id)
