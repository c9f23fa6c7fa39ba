from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx
from bs4 import BeautifulSoup

from wartek.core.config import settings
from wartek.core.errors import UpstreamServiceError
from wartek.services.categorizer import (
    CATEGORY_KEYWORDS,
    SOURCE_FALLBACK,
    CategoryMatch,
    categorize_keywords,
)

logger = logging.getLogger(__name__)

MAX_ARTICLES_PER_CALL = 100
DESCRIPTION_CHARS = 200
NO_DESCRIPTION = "No description available"

STATUS_OK = "ok"
STATUS_FALLBACK = "fallback"

TECH_KEYWORDS = [
    "technology", "tech", "artificial intelligence", "AI", "machine learning",
    "software", "hardware", "mobile", "smartphone", "computer", "internet",
    "cybersecurity", "blockchain", "cloud computing", "programming", "coding",
    "startup", "Silicon Valley", "innovation", "digital", "app", "platform",
]

SOURCE_LOCATIONS = [
    "http://en.wikipedia.org/wiki/United_States",
    "http://en.wikipedia.org/wiki/United_Kingdom",
    "http://en.wikipedia.org/wiki/Canada",
]

@dataclass
class NewsArticle:
    id: str
    title: str
    description: str
    url: str
    source_name: str
    published_at: Optional[str]
    categories: list[CategoryMatch] = field(default_factory=list)
    content: Optional[str] = None
    image_url: Optional[str] = None
    source_id: Optional[str] = None
    author: Optional[str] = None
    sentiment: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "url": self.url,
            "imageUrl": self.image_url,
            "publishedAt": self.published_at,
            "source": {"id": self.source_id, "name": self.source_name},
            "author": self.author,
            "categories": [c.to_dict() for c in self.categories],
            "sentiment": self.sentiment,
            "type": "news",
        }

@dataclass
class NewsResult:
    status: str
    total_results: int
    articles: list[NewsArticle]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "totalResults": self.total_results,
            "articles": [a.to_dict() for a in self.articles],
        }

def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

FALLBACK_ARTICLES = [
    (
        "AI Technology Advances Continue to Shape Industry",
        "Latest developments in artificial intelligence and machine learning are transforming "
        "various sectors with new innovations in neural networks and deep learning algorithms.",
        "AI & Machine Learning",
    ),
    (
        "Mobile Technology Innovations Drive Market Growth",
        "Smartphone manufacturers continue to push boundaries with new features and capabilities, "
        "including advanced camera systems and 5G connectivity improvements.",
        "Mobile Technology",
    ),
    (
        "Cybersecurity Threats Require Enhanced Protection Measures",
        "Security experts warn of increasing cyber attacks and recommend implementing stronger "
        "authentication and encryption protocols to protect sensitive data.",
        "Cybersecurity",
    ),
]

def fallback_news(now: Optional[dt.datetime] = None) -> NewsResult:
    now = now or _utc_now()
    articles = [
        NewsArticle(
            id=f"fallback-{i + 1}",
            title=title,
            description=description,
            url="#",
            source_name="Tech Fallback",
            # newest first, one hour apart
            published_at=(now - dt.timedelta(hours=i)).isoformat(),
            categories=[CategoryMatch(name=category, confidence=1.0, source=SOURCE_FALLBACK)],
        )
        for i, (title, description, category) in enumerate(FALLBACK_ARTICLES)
    ]
    return NewsResult(status=STATUS_FALLBACK, total_results=len(articles), articles=articles)

def _clean_text(value: Any) -> str:
    if not value:
        return ""
    text = str(value)
    if "<" in text and ">" in text:
        text = BeautifulSoup(text, "lxml").get_text(" ", strip=True)
    return text.strip()

def _describe(summary: str, body: str) -> str:
    if summary:
        return summary
    if body:
        return body[:DESCRIPTION_CHARS] + "..."
    return NO_DESCRIPTION

def normalize_articles(raw_articles: Iterable[Any], id_prefix: str, now: Optional[dt.datetime] = None) -> list[NewsArticle]:
    # Results sharing an upstream uri are emitted once, first wins
    stamp = int((now or _utc_now()).timestamp() * 1000)
    seen_uris: set[str] = set()
    articles: list[NewsArticle] = []

    for index, raw in enumerate(raw_articles):
        if not isinstance(raw, dict):
            continue

        uri = raw.get("uri")
        if uri:
            uri = str(uri)
            if uri in seen_uris:
                continue
            seen_uris.add(uri)
            article_id = f"{id_prefix}-{uri}"
        else:
            article_id = f"{id_prefix}-{stamp}-{index}"

        title = _clean_text(raw.get("title"))
        body = _clean_text(raw.get("body"))
        summary = _clean_text(raw.get("summary"))

        source = raw.get("source") if isinstance(raw.get("source"), dict) else {}
        authors = raw.get("authors") if isinstance(raw.get("authors"), list) else []
        author = authors[0].get("name") if authors and isinstance(authors[0], dict) else None

        articles.append(
            NewsArticle(
                id=article_id,
                title=title,
                description=_describe(summary, body),
                content=body or None,
                url=raw.get("url") or "#",
                image_url=raw.get("image") or None,
                published_at=raw.get("dateTime") or raw.get("dateTimePub"),
                source_id=source.get("uri"),
                source_name=source.get("title") or "Unknown Source",
                author=author,
                categories=categorize_keywords(title, body),
                sentiment=raw.get("sentiment"),
            )
        )
    return articles

class NewsApiClient:
    def __init__(
        self,
        api_key: Optional[str],
        endpoint: str,
        user_agent: str,
        timeout_s: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self._headers = {"User-Agent": user_agent, "Content-Type": "application/json"}
        self._timeout = httpx.Timeout(timeout_s)
        self._transport = transport

    def _request_body(self, keywords: list[str], count: int, page: int, sort_by: str, lang: str, restrict_sources: bool) -> dict[str, Any]:
        body: dict[str, Any] = {
            "action": "getArticles",
            "keyword": keywords,
            "keywordOper": "or",
            "keywordLoc": "body,title",
            "lang": [lang],
            "dataType": ["news"],
            "articlesPage": max(page, 1),
            "articlesCount": max(min(count, MAX_ARTICLES_PER_CALL), 1),
            "articlesSortBy": sort_by,
            "articlesSortByAsc": False,
            # last month only
            "forceMaxDataTimeWindow": 31,
            "resultType": "articles",
            "apiKey": self.api_key,
            "includeArticleTitle": True,
            "includeArticleBasicInfo": True,
            "includeArticleBody": True,
            "includeArticleImage": True,
            "includeArticleCategories": True,
            "includeArticleConcepts": True,
            "includeArticleSentiment": True,
            "includeSourceTitle": True,
            "articleBodyLen": 500,
        }
        if restrict_sources:
            body["sourceLocationUri"] = SOURCE_LOCATIONS
            body["ignoreSourceGroupUri"] = "paywall/paywalled_sources"
        return body

    async def _post(self, body: dict[str, Any]) -> tuple[list[Any], int]:
        async with httpx.AsyncClient(headers=self._headers, timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(self.endpoint, json=body)
            resp.raise_for_status()
            payload = resp.json()

        articles = payload.get("articles") if isinstance(payload, dict) else None
        results = articles.get("results") if isinstance(articles, dict) else None
        if not isinstance(results, list):
            raise ValueError("response has no articles.results list")
        total = articles.get("totalResults")
        return results, total if isinstance(total, int) else len(results)

    async def fetch_headlines(
        self,
        count: int = 20,
        page: int = 1,
        category: Optional[str] = None,
        sort_by: str = "date",
        lang: str = "eng",
    ) -> NewsResult:
        if not self.api_key:
            logger.info("No news API key configured, using fallback news")
            return fallback_news()

        keywords = CATEGORY_KEYWORDS.get(category) if category else None
        body = self._request_body(keywords or TECH_KEYWORDS, count, page, sort_by, lang, restrict_sources=True)

        try:
            results, total = await self._post(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("News API headlines failed, using fallback news: %s: %s", type(e).__name__, e)
            return fallback_news()

        articles = normalize_articles(results, id_prefix="newsapi")
        if not articles:
            logger.warning("News API returned no articles, using fallback news")
            return fallback_news()
        return NewsResult(status=STATUS_OK, total_results=total, articles=articles)

    async def fetch_by_category(self, category: str, **options) -> NewsResult:
        return await self.fetch_headlines(category=category, **options)

    async def search(
        self,
        keywords: list[str],
        count: int = 20,
        page: int = 1,
        sort_by: str = "date",
        lang: str = "eng",
    ) -> NewsResult:
        if not self.api_key:
            logger.info("No news API key configured, using fallback news for search")
            return fallback_news()

        body = self._request_body(list(keywords), count, page, sort_by, lang, restrict_sources=False)
        try:
            results, total = await self._post(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("News API search failed: %s: %s", type(e).__name__, e)
            raise UpstreamServiceError("Search temporarily unavailable") from e

        return NewsResult(status=STATUS_OK, total_results=total, articles=normalize_articles(results, id_prefix="search"))

    @staticmethod
    def available_categories() -> list[dict[str, Any]]:
        return [{"name": name, "keywordCount": len(keywords)} for name, keywords in CATEGORY_KEYWORDS.items()]

def get_news_client() -> NewsApiClient:
    return NewsApiClient(
        api_key=settings.news_api_key,
        endpoint=settings.news_api_url,
        user_agent=settings.user_agent,
        timeout_s=settings.news_timeout_seconds,
    )
