from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import String, cast, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wartek.api.deps import get_current_user
from wartek.core.db import get_db
from wartek.core.errors import Forbidden, NotFound
from wartek.models import Post, User
from wartek.services.categorizer import TextGenerator, available_categories, merge_categories
from wartek.services.generator import get_text_generator
from wartek.services.timeline import page_meta
from wartek.services.votes import VoteTally, cast_vote, tally_for_post, tally_for_posts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

class PostCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None

class PostUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None

class VotePayload(BaseModel):
    voteType: Optional[str] = None

async def load_post(session: AsyncSession, post_id: int) -> Post:
    stmt = (
        select(Post)
        .options(selectinload(Post.user))
        .where(Post.id == post_id)
        .execution_options(populate_existing=True)
    )
    post = (await session.execute(stmt)).scalars().first()
    if not post:
        raise NotFound(f"Post id {post_id} not found")
    return post

def _in_category(stmt, category: str | None):
    if not category:
        return stmt
    # categories is stored as json text: [{"name": ..., "confidence": ..., "source": ...}]
    needle = f'"name": {json.dumps(category)}'
    return stmt.where(cast(Post.categories, String).contains(needle, autoescape=True))

async def count_posts(session: AsyncSession, category: str | None = None) -> int:
    stmt = _in_category(select(func.count()).select_from(Post), category)
    return (await session.execute(stmt)).scalar_one()

async def list_post_dicts(
    session: AsyncSession,
    category: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[dict]:
    """Posts newest first, serialized with live vote totals."""
    stmt = select(Post).options(selectinload(Post.user)).order_by(desc(Post.created_at), desc(Post.id))
    stmt = _in_category(stmt, category)
    if limit is not None:
        stmt = stmt.limit(limit).offset(offset)
    posts = (await session.execute(stmt)).scalars().all()
    tallies = await tally_for_posts(session, [p.id for p in posts])
    return [p.to_dict(tallies.get(p.id, VoteTally())) for p in posts]

async def _categorize(title: str, description: str, generator: TextGenerator) -> list[dict]:
    matches = await merge_categories(title, description, generator)
    return [m.to_dict() for m in matches]

async def _owned_post(session: AsyncSession, post_id: int, user: User) -> Post:
    post = await load_post(session, post_id)
    if post.user_id != user.id:
        raise Forbidden("Not your post!")
    return post

@router.get("")
async def list_posts(session: AsyncSession = Depends(get_db)):
    return await list_post_dicts(session)

@router.get("/categories")
async def list_categories():
    return {"categories": available_categories()}

@router.get("/category/{category_name}")
async def list_posts_by_category(
    category_name: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_db),
):
    if category_name not in available_categories():
        raise NotFound(f"Category {category_name} not found")
    total = await count_posts(session, category_name)
    posts = await list_post_dicts(session, category_name, limit=limit, offset=(page - 1) * limit)
    return {"posts": posts, "pagination": page_meta(page, limit, total), "category": category_name}

@router.get("/{post_id}")
async def get_post(post_id: int, session: AsyncSession = Depends(get_db)):
    post = await load_post(session, post_id)
    return post.to_dict(await tally_for_post(session, post.id))

@router.post("", status_code=201)
async def create_post(
    payload: PostCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    post = Post(title=payload.title, description=payload.description, votes=0, user_id=user.id)
    post.categories = await _categorize(post.title, post.description, generator)

    session.add(post)
    await session.commit()
    post = await load_post(session, post.id)
    logger.info("Post %s created by user %s with categories %s", post.id, user.id, [c["name"] for c in post.categories])
    return post.to_dict()

@router.put("/{post_id}")
async def update_post(
    post_id: int,
    payload: PostUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    post = await _owned_post(session, post_id, user)

    changed_text = False
    if payload.title is not None and payload.title != post.title:
        post.title = payload.title
        changed_text = True
    if payload.description is not None and payload.description != post.description:
        post.description = payload.description
        changed_text = True
    if payload.summary is not None:
        post.summary = payload.summary
    if changed_text:
        post.categories = await _categorize(post.title, post.description, generator)

    await session.commit()
    return (await load_post(session, post_id)).to_dict(await tally_for_post(session, post_id))

@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    post = await _owned_post(session, post_id, user)
    await session.delete(post)
    await session.commit()
    return {"message": "Post deleted successfully"}

@router.post("/{post_id}/vote")
async def vote_post(
    post_id: int,
    payload: Optional[VotePayload] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    outcome = await cast_vote(session, post_id, user.id, payload.voteType if payload else None)
    return {
        "id": post_id,
        "message": "Vote recorded" if outcome.user_vote else "Vote removed",
        "userVote": outcome.user_vote,
        **outcome.tally.to_dict(),
    }
