"""Shared data structures used across modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


@dataclass(slots=True)
class SocialMeta:
    og_title: str | None = None
    og_description: str | None = None


@dataclass(slots=True)
class Page:
    """A crawled page reduced to the fields that carry keyword signal.

    Every field is optional. Fields the crawler could not populate are ``None``
    rather than empty strings.
    """

    url: str | None = None
    title: str | None = None
    meta_description: str | None = None
    h1_tags: Sequence[str] | None = None
    h2_tags: Sequence[str] | None = None
    meta_keywords: str | None = None
    social_meta: SocialMeta | None = None


@dataclass(slots=True)
class CrawlData:
    crawled_pages: Optional[List[Page]] = None
    errors: List[dict[str, str]] = field(default_factory=list)


@dataclass(slots=True)
class ExtractedKeyword:
    keyword: str
    frequency: float
    sources: List[str]
    score: int

    def to_dict(self) -> dict[str, object]:
        return {
            "keyword": self.keyword,
            "frequency": self.frequency,
            "sources": list(self.sources),
            "score": self.score,
        }
