from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wartek.api.posts import count_posts, list_post_dicts
from wartek.core.config import settings
from wartek.core.db import get_db
from wartek.services.news import NewsApiClient, get_news_client
from wartek.services.timeline import merge_timeline, page_meta, paginate

router = APIRouter(prefix="/timeline", tags=["timeline"])

@router.get("")
async def timeline(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    category: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_db),
    client: NewsApiClient = Depends(get_news_client),
):
    limit = limit or settings.timeline_page_size
    # page N of the merged feed holds at most N * limit posts
    posts = await list_post_dicts(session, category, limit=page * limit)
    total_posts = await count_posts(session, category)
    news = await client.fetch_headlines(category=category)

    items, _ = paginate(merge_timeline(posts, [a.to_dict() for a in news.articles]), page, limit)
    return {
        "items": items,
        "pagination": page_meta(page, limit, total_posts + len(news.articles)),
        "newsStatus": news.status,
    }
