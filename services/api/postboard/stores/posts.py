"""
Social graph store — posts and everything embedded in them.

A post row is the aggregate: its comments (each with its replies) and its
likes live in JSON columns and are rewritten together with the row.

Concurrency
───────────
Every mutation re-reads the post with SELECT … FOR UPDATE inside the request
transaction, edits the embedded list in memory and flushes the whole row.
The row lock is held until the request's session commits, so concurrent
mutations of one post run one after another: two likes by the same user
cannot both pass the duplicate check, and a comment cannot overwrite a like
that landed in between. Mutations of different posts never contend.
"""
import logging
from typing import Iterable

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, lazyload

from postboard.errors import AlreadyLiked, NotFound, NotLiked
from postboard.models import Post, User
from postboard.schemas import Comment, Image, Like, Reply, UserSnapshot

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def load_comments(post: Post) -> list[Comment]:
    return [Comment.model_validate(c) for c in post.comments or []]


def load_likes(post: Post) -> list[Like]:
    return [Like.model_validate(like) for like in post.likes or []]


def _dump(items: Iterable) -> list[dict]:
    return [item.model_dump(mode="json") for item in items]


def select_for_mutation(post_id: str):
    # populate_existing: the locked row wins over anything this session
    # loaded before taking the lock
    return (
        select(Post)
        .where(Post.post_id == post_id)
        .options(lazyload(Post.author))
        .with_for_update()
        .execution_options(populate_existing=True)
    )


class PostStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_post(
        self,
        author_id: str,
        content: str,
        images: Iterable[Image],
    ) -> Post:
        with tracer.start_as_current_span("create_post") as span:
            author = await self.db.get(User, author_id)
            if author is None:
                raise NotFound("Author not found")

            post = Post(
                user_id=author_id,
                content=content,
                images=_dump(images),
                comments=[],
                likes=[],
                view_count=0,
            )
            self.db.add(post)
            await self.db.flush()

            span.set_attribute("post.id", post.post_id)
            span.set_attribute("post.user_id", author_id)
            logger.info("Post created: %s by user %s", post.post_id, author_id)
            return post

    async def get_post(self, post_id: str) -> Post:
        stmt = (
            select(Post)
            .where(Post.post_id == post_id)
            .options(joinedload(Post.author))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        post = result.unique().scalar_one_or_none()
        if post is None:
            raise NotFound("Post not found")
        return post

    async def _lock_post(self, post_id: str) -> Post:
        """Load a post for mutation, holding its row lock until commit."""
        result = await self.db.execute(select_for_mutation(post_id))
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFound("Post not found")
        return post

    async def add_comment(
        self,
        post_id: str,
        author: UserSnapshot,
        content: str,
    ) -> Comment:
        with tracer.start_as_current_span("add_comment") as span:
            span.set_attribute("post.id", post_id)
            post = await self._lock_post(post_id)

            comment = Comment(user=author, content=content)
            comments = load_comments(post)
            comments.append(comment)
            post.comments = _dump(comments)
            await self.db.flush()

            logger.info("Comment %s added to post %s by %s", comment.id, post_id, author.id)
            return comment

    async def add_reply(
        self,
        post_id: str,
        comment_id: str,
        author: UserSnapshot,
        content: str,
    ) -> Reply:
        with tracer.start_as_current_span("add_reply") as span:
            span.set_attribute("post.id", post_id)
            span.set_attribute("comment.id", comment_id)
            post = await self._lock_post(post_id)

            comments = load_comments(post)
            for idx, comment in enumerate(comments):
                if comment.id == comment_id:
                    break
            else:
                raise NotFound("Comment not found")

            reply = Reply(user=author, content=content)
            comments[idx] = comment.with_reply(reply)
            post.comments = _dump(comments)
            await self.db.flush()

            logger.info(
                "Reply %s added to comment %s on post %s by %s",
                reply.id, comment_id, post_id, author.id,
            )
            return reply

    async def like(self, post_id: str, user: UserSnapshot) -> Like:
        with tracer.start_as_current_span("like_post") as span:
            span.set_attribute("post.id", post_id)
            post = await self._lock_post(post_id)

            likes = load_likes(post)
            # Linear scan; like lists are small
            if any(existing.user.id == user.id for existing in likes):
                raise AlreadyLiked()

            like = Like(user=user)
            likes.append(like)
            post.likes = _dump(likes)
            await self.db.flush()

            logger.info("Post %s liked by %s", post_id, user.id)
            return like

    async def unlike(self, post_id: str, user_id: str) -> None:
        with tracer.start_as_current_span("unlike_post") as span:
            span.set_attribute("post.id", post_id)
            post = await self._lock_post(post_id)

            likes = load_likes(post)
            idx = next(
                (i for i, existing in enumerate(likes) if existing.user.id == user_id),
                -1,
            )
            if idx == -1:
                raise NotLiked()

            del likes[idx]
            post.likes = _dump(likes)
            await self.db.flush()

            logger.info("Post %s unliked by %s", post_id, user_id)
