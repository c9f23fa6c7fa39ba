from __future__ import annotations

import datetime as dt
import math
from typing import Any, Iterable, Optional, Sequence

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

TYPE_POST = "post"
TYPE_NEWS = "news"

def _parse_datetime(value: Any) -> Optional[dt.datetime]:
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed

def effective_date(item: dict[str, Any]) -> dt.datetime:
    key = "publishedAt" if item.get("type") == TYPE_NEWS else "createdAt"
    return _parse_datetime(item.get(key)) or EPOCH

def merge_timeline(posts: Iterable[dict[str, Any]], articles: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    items = [{**p, "type": TYPE_POST} for p in posts]
    items.extend({**a, "type": TYPE_NEWS} for a in articles)
    # reverse=True keeps sort stability: equal dates stay in input order
    return sorted(items, key=effective_date, reverse=True)

def page_meta(page: int, limit: int, total: int) -> dict[str, int]:
    return {"page": page, "limit": limit, "total": total, "totalPages": math.ceil(total / limit)}

def paginate(items: Sequence[Any], page: int = 1, limit: int = 10) -> tuple[list[Any], dict[str, int]]:
    page = max(page, 1)
    limit = max(limit, 1)
    start = (page - 1) * limit
    return list(items[start:start + limit]), page_meta(page, limit, len(items))
