"""
Social feed endpoints (all require a bearer token):
  POST /post/content                         — create a post
  POST /post/comment/{post_id}               — comment on a post
  POST /post/reply/{post_id}/{comment_id}    — reply to a comment
  GET  /post/posts                           — every post, newest first
  GET  /post/myposts                         — the caller's posts, newest first
  POST /post/like/{post_id}                  — like a post (once per user)
  POST /post/unlike/{post_id}                — remove the caller's like
"""
from fastapi import APIRouter, Depends

from postboard.deps import (
    get_current_user,
    get_feed_assembler,
    get_post_store,
    get_user_store,
)
from postboard.models import User
from postboard.schemas import (
    CommentCreate,
    FeedResponse,
    Image,
    PostCreate,
    StatusResponse,
)
from postboard.stores.feed import FeedAssembler
from postboard.stores.posts import PostStore
from postboard.stores.users import UserStore
from postboard.telemetry import (
    COMMENTS_TOTAL,
    FEED_LATENCY,
    LIKE_EVENTS_TOTAL,
    POST_INGESTION_TOTAL,
)

router = APIRouter()


@router.post("/content", response_model=StatusResponse)
async def create_post(
    body: PostCreate,
    user: User = Depends(get_current_user),
    posts: PostStore = Depends(get_post_store),
):
    images = [Image(url=image.url) for image in body.images]
    await posts.create_post(user.user_id, body.content, images)
    POST_INGESTION_TOTAL.inc()
    return StatusResponse()


@router.post("/comment/{post_id}", response_model=StatusResponse)
async def add_comment(
    post_id: str,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    posts: PostStore = Depends(get_post_store),
    users: UserStore = Depends(get_user_store),
):
    snapshot = await users.get_snapshot(user.user_id)
    await posts.add_comment(post_id, snapshot, body.content)
    COMMENTS_TOTAL.labels(kind="comment").inc()
    return StatusResponse()


@router.post("/reply/{post_id}/{comment_id}", response_model=StatusResponse)
async def add_reply(
    post_id: str,
    comment_id: str,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    posts: PostStore = Depends(get_post_store),
    users: UserStore = Depends(get_user_store),
):
    snapshot = await users.get_snapshot(user.user_id)
    await posts.add_reply(post_id, comment_id, snapshot, body.content)
    COMMENTS_TOTAL.labels(kind="reply").inc()
    return StatusResponse()


@router.get("/posts", response_model=FeedResponse)
async def list_feed(
    user: User = Depends(get_current_user),
    feed: FeedAssembler = Depends(get_feed_assembler),
):
    with FEED_LATENCY.labels(scope="all").time():
        views = await feed.list_feed()
    return FeedResponse(posts=views)


@router.get("/myposts", response_model=FeedResponse)
async def list_my_posts(
    user: User = Depends(get_current_user),
    feed: FeedAssembler = Depends(get_feed_assembler),
):
    with FEED_LATENCY.labels(scope="mine").time():
        views = await feed.list_my_posts(user.user_id)
    return FeedResponse(posts=views)


@router.post("/like/{post_id}", response_model=StatusResponse)
async def like_post(
    post_id: str,
    user: User = Depends(get_current_user),
    posts: PostStore = Depends(get_post_store),
    users: UserStore = Depends(get_user_store),
):
    snapshot = await users.get_snapshot(user.user_id)
    await posts.like(post_id, snapshot)
    LIKE_EVENTS_TOTAL.labels(action="like").inc()
    return StatusResponse()


@router.post("/unlike/{post_id}", response_model=StatusResponse)
async def unlike_post(
    post_id: str,
    user: User = Depends(get_current_user),
    posts: PostStore = Depends(get_post_store),
):
    await posts.unlike(post_id, user.user_id)
    LIKE_EVENTS_TOTAL.labels(action="unlike").inc()
    return StatusResponse()
