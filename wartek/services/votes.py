from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import select, func, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wartek.core.errors import NotFound, ValidationError
from wartek.models import Post, Vote, UPVOTE, DOWNVOTE

logger = logging.getLogger(__name__)

DIRECTIONS = {"up": UPVOTE, "down": DOWNVOTE}

@dataclass
class VoteTally:
    upvotes: int = 0
    downvotes: int = 0

    @property
    def votes(self) -> int:
        return self.upvotes - self.downvotes

    def to_dict(self) -> dict[str, int]:
        return {"votes": self.votes, "upvotes": self.upvotes, "downvotes": self.downvotes}

@dataclass
class VoteOutcome:
    tally: VoteTally
    user_vote: Optional[int]

def parse_direction(vote_type) -> int:
    value = DIRECTIONS.get(vote_type) if isinstance(vote_type, str) else None
    if value is None:
        raise ValidationError("voteType must be 'up' or 'down'")
    return value

def next_vote_value(current: Optional[int], requested: int) -> Optional[int]:
    # None means the pair ends with no vote
    if current == requested:
        return None
    return requested

async def tally_for_post(session: AsyncSession, post_id: int) -> VoteTally:
    tallies = await tally_for_posts(session, [post_id])
    return tallies.get(post_id, VoteTally())

async def tally_for_posts(session: AsyncSession, post_ids: Iterable[int]) -> dict[int, VoteTally]:
    ids = list(post_ids)
    if not ids:
        return {}
    stmt = (
        select(
            Vote.post_id,
            func.sum(case((Vote.value == UPVOTE, 1), else_=0)),
            func.sum(case((Vote.value == DOWNVOTE, 1), else_=0)),
        )
        .where(Vote.post_id.in_(ids))
        .group_by(Vote.post_id)
    )
    rows = (await session.execute(stmt)).all()
    return {post_id: VoteTally(upvotes=int(up or 0), downvotes=int(down or 0)) for post_id, up, down in rows}

async def _apply(session: AsyncSession, post: Post, user_id: int, requested: int) -> Optional[int]:
    existing = (
        await session.execute(select(Vote).where(Vote.post_id == post.id, Vote.user_id == user_id))
    ).scalars().first()

    result = next_vote_value(existing.value if existing else None, requested)
    if existing is None:
        session.add(Vote(post_id=post.id, user_id=user_id, value=requested))
    elif result is None:
        await session.delete(existing)
    else:
        existing.value = result
    await session.flush()

    tally = await tally_for_post(session, post.id)
    post.votes = tally.votes
    await session.commit()
    return result

async def cast_vote(session: AsyncSession, post_id: int, user_id: int, vote_type) -> VoteOutcome:
    requested = parse_direction(vote_type)

    post = (await session.execute(select(Post).where(Post.id == post_id))).scalars().first()
    if not post:
        raise NotFound(f"Post id {post_id} not found")

    try:
        user_vote = await _apply(session, post, user_id, requested)
    except IntegrityError:
        # A concurrent request from the same user inserted the row first;
        # redo the transition against the row that won.
        await session.rollback()
        logger.info("Vote race on post %s for user %s, retrying", post_id, user_id)
        post = (await session.execute(select(Post).where(Post.id == post_id))).scalars().first()
        if not post:
            raise NotFound(f"Post id {post_id} not found")
        user_vote = await _apply(session, post, user_id, requested)

    return VoteOutcome(tally=await tally_for_post(session, post_id), user_vote=user_vote)
