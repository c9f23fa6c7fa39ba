from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from wartek.core.errors import ValidationError
from wartek.services.news import NewsApiClient, get_news_client

router = APIRouter(prefix="/news", tags=["news"])

@router.get("/headlines")
async def headlines(
    category: Optional[str] = Query(default=None),
    count: int = Query(default=20, ge=1, le=100),
    page: int = Query(default=1, ge=1),
    sortBy: str = Query(default="date"),
    lang: str = Query(default="eng"),
    client: NewsApiClient = Depends(get_news_client),
):
    result = await client.fetch_headlines(count=count, page=page, category=category, sort_by=sortBy, lang=lang)
    return result.to_dict()

@router.get("/category/{category_name}")
async def by_category(
    category_name: str,
    count: int = Query(default=15, ge=1, le=100),
    page: int = Query(default=1, ge=1),
    sortBy: str = Query(default="date"),
    lang: str = Query(default="eng"),
    client: NewsApiClient = Depends(get_news_client),
):
    result = await client.fetch_by_category(category_name, count=count, page=page, sort_by=sortBy, lang=lang)
    return result.to_dict()

@router.get("/search")
async def search(
    q: Optional[str] = Query(default=None),
    count: int = Query(default=20, ge=1, le=100),
    page: int = Query(default=1, ge=1),
    sortBy: str = Query(default="date"),
    lang: str = Query(default="eng"),
    client: NewsApiClient = Depends(get_news_client),
):
    keywords = [k.strip() for k in (q or "").split(",") if k.strip()]
    if not keywords:
        raise ValidationError("Search query (q) parameter is required")
    result = await client.search(keywords, count=count, page=page, sort_by=sortBy, lang=lang)
    return result.to_dict()

@router.get("/categories")
async def categories():
    return {"categories": NewsApiClient.available_categories()}
