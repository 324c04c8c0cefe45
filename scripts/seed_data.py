#!/usr/bin/env python3
"""
Seed script — creates a realistic dataset for trying out the feed.

Creates:
  • 8 verified users (password: "password123")
  • 3 posts per user
  • A few comments per post, some with replies
  • Some likes across posts

Writes straight through the stores, so it uses the same DATABASE_URL /
TIDB_* settings as the API:
  python scripts/seed_data.py --seed 7

Emails are printed so you can log in and fetch a token.
"""
import argparse
import asyncio
import random

from postboard.database import AsyncSessionLocal, dispose_db, init_db
from postboard.schemas import Image, SignupRequest, UserSnapshot
from postboard.stores.posts import PostStore
from postboard.stores.users import UserStore

PASSWORD = "password123"

BASE_USERS = [
    ("Alice", "Chen"),
    ("Bob", "Martinez"),
    ("Carol", "Singh"),
    ("Dave", "Kim"),
    ("Eve", "Johnson"),
    ("Frank", "Williams"),
    ("Grace", "Li"),
    ("Henry", "Brown"),
]

SAMPLE_POSTS = [
    "Just shipped a new feature to production 🚀",
    "Looking for a backend engineer with FastAPI experience. DM me!",
    "Finished my certification today. Onwards!",
    "Our team is hiring interns for the summer.",
    "Anyone else at the meetup tonight?",
    "Three years at my first job today. Grateful for the mentors.",
    "Hot take: good logging beats a debugger.",
    "Moving to a new city next month, recommendations welcome.",
]

SAMPLE_COMMENTS = [
    "Congrats!",
    "This is great news.",
    "Count me in.",
    "Sending you a message now.",
    "Well deserved!",
]

SAMPLE_REPLIES = ["Thanks!", "Appreciate it 🙏", "See you there."]


def signup_payload(first: str, last: str) -> SignupRequest:
    return SignupRequest(
        email=f"{first.lower()}.{last.lower()}@example.com",
        password=PASSWORD,
        user_type="individual",
        first_name=first,
        last_name=last,
        mobile="5550100",
        country_code="+1",
        country="US",
        pincode="94105",
        city="San Francisco",
        qualification="BSc",
        dob="1994-05-01",
        exp_in_year="5",
        skills="python, sql",
        marital_status="single",
    )


async def seed(rng: random.Random) -> None:
    await init_db()

    async with AsyncSessionLocal() as session:
        users = UserStore(session)
        posts = PostStore(session)

        # ── Create and verify users ──────────────────────────────────────
        print("Creating users...")
        snapshots: list[UserSnapshot] = []
        for first, last in BASE_USERS:
            body = signup_payload(first, last)
            if await users.find_by_email(body.email):
                print(f"  - {body.email} already exists, skipping")
                continue
            user = await users.create(body)
            await users.verify_email(user.email, user.email_verification_otp)
            snapshots.append(UserSnapshot.of(user))
            print(f"  ✓ {user.email} ({user.user_id})")

        if not snapshots:
            print("No users created — aborting")
            return

        # ── Create posts ──────────────────────────────────────────────────
        print("\nCreating posts...")
        post_ids: list[str] = []
        for author in snapshots:
            for content in rng.sample(SAMPLE_POSTS, k=3):
                images = [Image(url=f"https://picsum.photos/seed/{rng.randint(1, 10_000)}/600")]
                post = await posts.create_post(author.id, content, images)
                post_ids.append(post.post_id)
        print(f"  ✓ {len(post_ids)} posts created")

        # ── Comments, replies and likes ───────────────────────────────────
        print("\nAdding comments, replies and likes...")
        comments = replies = likes = 0
        for post_id in post_ids:
            for commenter in rng.sample(snapshots, k=rng.randint(0, 3)):
                comment = await posts.add_comment(post_id, commenter, rng.choice(SAMPLE_COMMENTS))
                comments += 1
                if rng.random() < 0.5:
                    replier = rng.choice(snapshots)
                    await posts.add_reply(post_id, comment.id, replier, rng.choice(SAMPLE_REPLIES))
                    replies += 1
            for liker in rng.sample(snapshots, k=rng.randint(0, len(snapshots))):
                await posts.like(post_id, liker)
                likes += 1
        print(f"  ✓ {comments} comments, {replies} replies, {likes} likes")

        await session.commit()

    await dispose_db()

    print("\n" + "=" * 60)
    print("Seed complete! Log in with any seeded email and the password")
    print(f"'{PASSWORD}', e.g.:\n")
    first, last = BASE_USERS[0]
    print("  curl -s -X POST 'http://localhost:8000/api/auth/login' \\")
    print("    -H 'Content-Type: application/json' \\")
    print(f"    -d '{{\"email\": \"{first.lower()}.{last.lower()}@example.com\", \"password\": \"{PASSWORD}\"}}'")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Postboard database")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a repeatable dataset")
    args = parser.parse_args()
    asyncio.run(seed(random.Random(args.seed)))
