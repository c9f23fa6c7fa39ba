import asyncio
import datetime as dt
import json

import httpx
import pytest

from wartek.core.errors import UpstreamServiceError
from wartek.services.categorizer import CATEGORY_KEYWORDS
from wartek.services.news import (
    TECH_KEYWORDS,
    NewsApiClient,
    fallback_news,
    normalize_articles,
)

FALLBACK_TITLES = [
    "AI Technology Advances Continue to Shape Industry",
    "Mobile Technology Innovations Drive Market Growth",
    "Cybersecurity Threats Require Enhanced Protection Measures",
]

SAMPLE_RESULTS = [
    {
        "uri": "8001",
        "title": "Kubernetes 2.0 ships",
        "body": "Docker and Kubernetes users get a new scheduler. " * 10,
        "summary": "",
        "url": "https://example.com/k8s",
        "image": "https://example.com/k8s.png",
        "dateTime": "2025-08-20T10:00:00Z",
        "source": {"uri": "example.com", "title": "Example Wire"},
        "authors": [{"name": "Jane Doe"}],
        "sentiment": 0.2,
    },
    {
        "uri": "8001",
        "title": "Duplicate of the first story",
        "body": "Same URI, should be dropped",
        "url": "https://example.com/k8s-copy",
    },
    {
        "uri": "8002",
        "title": "Phishing wave",
        "summary": "<p>Security teams report a <b>phishing</b> surge.</p>",
        "url": "https://example.com/phish",
        "dateTime": "2025-08-21T08:00:00Z",
        "source": {"uri": "sec.example.com"},
    },
    {
        "title": "No URI, no body",
        "url": "https://example.com/empty",
    },
]


def make_client(handler, api_key="secret"):
    return NewsApiClient(
        api_key=api_key,
        endpoint="https://news.example.com/getArticles",
        user_agent="test-agent",
        timeout_s=10,
        transport=httpx.MockTransport(handler),
    )


def ok_handler(results, seen=None, total=None):
    def handler(request):
        if seen is not None:
            seen.append(json.loads(request.content))
        return httpx.Response(
            200, json={"articles": {"results": results, "totalResults": total or len(results)}}
        )

    return handler


def test_fallback_set_is_fixed():
    now = dt.datetime(2025, 8, 25, 12, 0, tzinfo=dt.timezone.utc)
    result = fallback_news(now).to_dict()

    assert result["status"] == "fallback"
    assert result["totalResults"] == 3
    assert [a["title"] for a in result["articles"]] == FALLBACK_TITLES
    assert [a["id"] for a in result["articles"]] == ["fallback-1", "fallback-2", "fallback-3"]
    assert [a["categories"] for a in result["articles"]] == [
        [{"name": "AI & Machine Learning", "confidence": 1.0, "source": "fallback"}],
        [{"name": "Mobile Technology", "confidence": 1.0, "source": "fallback"}],
        [{"name": "Cybersecurity", "confidence": 1.0, "source": "fallback"}],
    ]
    assert result["articles"][1]["publishedAt"] == "2025-08-25T11:00:00+00:00"


def test_no_api_key_skips_network():
    def handler(request):
        raise AssertionError("no request expected")

    result = asyncio.run(make_client(handler, api_key=None).fetch_headlines())
    assert result.status == "fallback"
    assert [a.title for a in result.articles] == FALLBACK_TITLES


def test_normalize_deduplicates_and_fills_descriptions():
    now = dt.datetime(2025, 8, 25, tzinfo=dt.timezone.utc)
    articles = normalize_articles(SAMPLE_RESULTS, id_prefix="newsapi", now=now)

    assert [a.id for a in articles] == [
        "newsapi-8001",
        "newsapi-8002",
        f"newsapi-{int(now.timestamp() * 1000)}-3",
    ]

    k8s, phish, empty = articles
    assert k8s.description == SAMPLE_RESULTS[0]["body"][:200] + "..."
    assert k8s.author == "Jane Doe"
    assert k8s.source_name == "Example Wire"
    assert [c.name for c in k8s.categories] == ["Cloud Computing"]
    assert all(c.source == "keyword" for c in k8s.categories)

    assert phish.description == "Security teams report a phishing surge."
    assert phish.source_name == "Unknown Source"
    assert empty.description == "No description available"
    assert empty.categories == []


def test_headlines_success():
    seen = []
    client = make_client(ok_handler(SAMPLE_RESULTS, seen, total=250))
    result = asyncio.run(client.fetch_headlines(count=500, page=2))

    assert result.status == "ok"
    assert result.total_results == 250
    assert len(result.articles) == 3
    body = seen[0]
    assert body["keyword"] == TECH_KEYWORDS
    assert body["articlesCount"] == 100
    assert body["articlesPage"] == 2
    assert body["apiKey"] == "secret"
    assert body["lang"] == ["eng"]


def test_category_uses_category_keywords():
    seen = []
    client = make_client(ok_handler(SAMPLE_RESULTS, seen))
    asyncio.run(client.fetch_by_category("Cybersecurity", count=5))
    assert seen[0]["keyword"] == CATEGORY_KEYWORDS["Cybersecurity"]


def test_unknown_category_uses_generic_keywords():
    seen = []
    client = make_client(ok_handler(SAMPLE_RESULTS, seen))
    asyncio.run(client.fetch_by_category("technology"))
    assert seen[0]["keyword"] == TECH_KEYWORDS


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500, json={"error": "boom"}),
        lambda request: httpx.Response(200, text="<html>not json</html>"),
        lambda request: httpx.Response(200, json={"unexpected": True}),
        ok_handler([]),
    ],
    ids=["http-error", "not-json", "wrong-shape", "empty"],
)
def test_headlines_fall_back(handler):
    result = asyncio.run(make_client(handler).fetch_headlines())
    assert result.status == "fallback"
    assert [a.title for a in result.articles] == FALLBACK_TITLES


def test_headlines_fall_back_on_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = asyncio.run(make_client(handler).fetch_headlines())
    assert result.status == "fallback"


def test_search_uses_search_prefix_and_allows_empty():
    seen = []
    client = make_client(ok_handler(SAMPLE_RESULTS[:1], seen))
    result = asyncio.run(client.search(["AI", "machine learning"], count=5))
    assert result.articles[0].id == "search-8001"
    assert seen[0]["keyword"] == ["AI", "machine learning"]
    assert "sourceLocationUri" not in seen[0]

    empty = asyncio.run(make_client(ok_handler([])).search(["nothing"]))
    assert empty.to_dict() == {"status": "ok", "totalResults": 0, "articles": []}


def test_search_propagates_upstream_failure():
    client = make_client(lambda request: httpx.Response(502))
    with pytest.raises(UpstreamServiceError, match="Search temporarily unavailable"):
        asyncio.run(client.search(["AI"]))


def test_available_categories_count_keywords():
    cats = NewsApiClient.available_categories()
    assert len(cats) == 8
    assert {"name": "Cybersecurity", "keywordCount": 14} in cats
