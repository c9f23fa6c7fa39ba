from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol

from wartek.core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

MAX_CATEGORIES = 3
AI_CONFIDENCE = 0.8
AGREEMENT_BOOST = 0.2

SOURCE_KEYWORD = "keyword"
SOURCE_AI = "ai"
SOURCE_HYBRID = "hybrid"
SOURCE_FALLBACK = "fallback"

CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "AI & Machine Learning": [
        "artificial intelligence", "machine learning", "neural network", "deep learning",
        "GPT", "LLM", "ChatGPT", "AI model", "algorithm", "automation", "chatbot",
        "generative AI", "computer vision", "natural language processing", "robotics",
    ],
    "Mobile Technology": [
        "smartphone", "iPhone", "Android", "mobile app", "iOS", "mobile development",
        "tablet", "mobile security", "app store", "mobile gaming", "5G", "wireless",
    ],
    "Web Development": [
        "JavaScript", "React", "Vue", "Angular", "Node.js", "frontend", "backend",
        "web development", "HTML", "CSS", "API", "framework", "responsive design",
        "TypeScript", "Next.js", "GraphQL", "REST",
    ],
    "Cybersecurity": [
        "security", "cybersecurity", "encryption", "hacking", "malware", "firewall",
        "data breach", "privacy", "authentication", "vulnerability", "ransomware",
        "phishing", "zero-day", "penetration testing",
    ],
    "Cloud Computing": [
        "cloud", "AWS", "Azure", "Google Cloud", "serverless", "microservices",
        "containerization", "Docker", "Kubernetes", "cloud native", "SaaS", "PaaS",
        "infrastructure", "scalability",
    ],
    "Blockchain & Crypto": [
        "blockchain", "cryptocurrency", "Bitcoin", "Ethereum", "NFT", "DeFi",
        "smart contract", "crypto", "digital currency", "mining", "Web3", "metaverse",
        "decentralized", "tokenization",
    ],
    "Hardware & Gadgets": [
        "processor", "GPU", "CPU", "hardware", "gadget", "laptop", "desktop", "chip",
        "semiconductor", "electronics", "device", "Intel", "AMD", "NVIDIA",
        "motherboard", "RAM", "storage",
    ],
    "Software Development": [
        "software", "programming", "coding", "development", "open source", "GitHub",
        "version control", "testing", "debugging", "deployment", "DevOps", "CI/CD",
        "agile", "scrum",
    ],
}

JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")

class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str:
        ...

@dataclass
class CategoryMatch:
    name: str
    confidence: float
    source: str
    matched_keywords: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "confidence": self.confidence, "source": self.source}

def available_categories() -> list[str]:
    return list(CATEGORY_KEYWORDS)

def category_keywords() -> dict[str, list[str]]:
    return {name: list(keywords) for name, keywords in CATEGORY_KEYWORDS.items()}

def _top(matches: list[CategoryMatch]) -> list[CategoryMatch]:
    # sorted() is stable, so equal confidences keep their table/insertion order
    return sorted(matches, key=lambda m: m.confidence, reverse=True)[:MAX_CATEGORIES]

def categorize_keywords(title: str, body: str) -> list[CategoryMatch]:
    content = f"{title or ''} {body or ''}".lower()
    if not content.strip():
        return []

    matches = []
    for name, keywords in CATEGORY_KEYWORDS.items():
        matched = [kw for kw in keywords if kw.lower() in content]
        if matched:
            matches.append(
                CategoryMatch(
                    name=name,
                    confidence=min(len(matched) / len(keywords), 1.0),
                    source=SOURCE_KEYWORD,
                    matched_keywords=matched,
                )
            )
    return _top(matches)

def build_categorization_prompt(title: str, body: str) -> str:
    names = "\n".join(f"- {name}" for name in CATEGORY_KEYWORDS)
    return (
        "Analyze this tech content and assign it to the most relevant categories. "
        "Return only a JSON array of category names.\n\n"
        f'Title: "{title}"\n'
        f'Description: "{body}"\n\n'
        f"Available Categories:\n{names}\n\n"
        "Rules:\n"
        "- Return 1-3 most relevant categories\n"
        "- Base decision on content keywords and context\n"
        '- Return only JSON array like: ["AI & Machine Learning", "Software Development"]\n\n'
        "Categories:"
    )

def parse_category_names(text: str) -> Optional[list[str]]:
    # None when the reply has no usable JSON array; unknown names and repeats are dropped
    match = JSON_ARRAY_RE.search(text or "")
    if not match:
        return None
    try:
        raw = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(raw, list):
        return None

    names: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            continue
        name = item.strip()
        if name in CATEGORY_KEYWORDS and name not in names:
            names.append(name)
    return names[:MAX_CATEGORIES] or None

async def categorize_ai(title: str, body: str, generator: TextGenerator) -> list[CategoryMatch]:
    try:
        reply = await generator.generate(build_categorization_prompt(title, body))
    except UpstreamServiceError as e:
        logger.warning("AI categorization failed, using keyword fallback: %s", e)
        return categorize_keywords(title, body)

    names = parse_category_names(reply)
    if not names:
        logger.warning("Failed to parse AI categorization, using keyword fallback")
        return categorize_keywords(title, body)

    return [CategoryMatch(name=name, confidence=AI_CONFIDENCE, source=SOURCE_AI) for name in names]

async def merge_categories(title: str, body: str, generator: TextGenerator) -> list[CategoryMatch]:
    keyword_matches = categorize_keywords(title, body)

    try:
        ai_matches = await categorize_ai(title, body, generator)
    except Exception:
        logger.exception("AI categorization raised, keeping keyword categories")
        return keyword_matches

    merged: dict[str, CategoryMatch] = {
        m.name: CategoryMatch(m.name, m.confidence, m.source, list(m.matched_keywords))
        for m in keyword_matches
    }
    for ai in ai_matches:
        existing = merged.get(ai.name)
        if existing is None:
            merged[ai.name] = ai
        else:
            existing.confidence = min(existing.confidence + AGREEMENT_BOOST, 1.0)
            existing.source = SOURCE_HYBRID

    return _top(list(merged.values()))
