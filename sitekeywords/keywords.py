"""Keyword extraction and ranking for crawled site content.

Candidates are generated from the weighted text fields of every crawled page,
merged into a single accumulator keyed by normalised text, scored from their
weighted frequency and source diversity, and returned best first.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional

from .schemas import CrawlData, ExtractedKeyword, Page

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 50
MIN_KEYWORD_LENGTH = 3
MIN_PHRASE_LENGTH = 6
SOURCE_DIVERSITY_BONUS = 5

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can", "was",
        "has", "had", "his", "her", "its", "our", "out", "who", "get", "about",
        "which", "their", "will", "what", "when", "make", "than", "them", "been",
        "have", "from", "with", "this", "that", "would", "there", "into", "also",
        "more", "some", "could", "other", "your", "such", "just", "should",
        "these", "those", "through", "being", "where", "after", "above", "before",
        "below", "during", "against", "between", "under", "again", "further",
        "then", "once", "here", "why", "how", "both", "each", "few", "most",
        "same", "very", "only", "own", "because", "while", "does", "doing",
        "until", "since", "upon", "therefore", "though", "however", "yet", "still",
    }
)

# Phrases may contain these internally but must not start or end with them.
BOUNDARY_STOP_WORDS = frozenset(
    {"the", "and", "for", "are", "but", "with", "from", "into", "onto"}
)

# n-gram size -> multiplier applied to the field weight
NGRAM_MULTIPLIERS = MappingProxyType({1: 1.0, 2: 1.5, 3: 1.8, 4: 2.0})

FIELD_WEIGHTS = MappingProxyType(
    {
        "title": 3.0,
        "meta": 2.0,
        "h1": 2.5,
        "h2": 2.0,
        "meta_keywords": 2.0,
        "og_title": 2.0,
        "og_desc": 1.5,
    }
)

SUGGESTION_TEMPLATES = (
    "best {niche} tools",
    "{niche} guide",
    "{niche} tips",
    "{niche} for beginners",
    "{niche} tutorial",
    "how to {niche}",
    "{niche} strategies",
    "{niche} techniques",
    "{niche} examples",
    "{niche} best practices",
    "{niche} comparison",
    "{niche} review",
    "{niche} vs",
    "learn {niche}",
    "{niche} checklist",
)

# Word characters are ASCII only; \s still matches Unicode whitespace.
_PUNCTUATION_RE = re.compile(r"[^A-Za-z0-9_\s-]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(slots=True)
class _Candidate:
    # Weighted frequency in integer hundredths. Every weight x multiplier is a
    # multiple of 0.05, so the sum is exact in any page order.
    hundredths: int = 0
    # dict keys double as an insertion-ordered set
    sources: Dict[str, None] = field(default_factory=dict)

    @property
    def frequency(self) -> float:
        return self.hundredths / 100


def _to_hundredths(value: float) -> int:
    return round(value * 100)


KeywordMap = Dict[str, _Candidate]


def normalize_text(text: str | None) -> str:
    """Lower-case ``text``, strip punctuation and collapse whitespace."""

    if not text:
        return ""
    cleaned = _PUNCTUATION_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def is_valid_keyword(word: str) -> bool:
    """Return whether a single token is worth keeping as a unigram."""

    if len(word) < MIN_KEYWORD_LENGTH:
        return False
    return word not in STOP_WORDS


def is_valid_phrase(phrase: str) -> bool:
    """Return whether a multi-word phrase is worth keeping.

    Only the first and last tokens are checked against the boundary list, so
    "tools for beginners" passes while "tools for" does not.
    """

    if len(phrase) < MIN_PHRASE_LENGTH:
        return False
    words = phrase.split(" ")
    return words[0] not in BOUNDARY_STOP_WORDS and words[-1] not in BOUNDARY_STOP_WORDS


def add_keyword(keyword: str, source: str, keyword_map: KeywordMap, weight: float) -> None:
    """Fold one weighted occurrence of ``keyword`` into the accumulator."""

    candidate = keyword_map.get(keyword)
    if candidate is None:
        candidate = keyword_map[keyword] = _Candidate()
    candidate.hundredths += _to_hundredths(weight)
    candidate.sources[source] = None


def extract_from_text(text: str | None, source: str, keyword_map: KeywordMap, weight: float = 1.0) -> None:
    """Generate 1-4 word candidates from ``text`` and add them to ``keyword_map``."""

    words = normalize_text(text).split()
    if not words:
        return

    for size, multiplier in NGRAM_MULTIPLIERS.items():
        for start in range(len(words) - size + 1):
            window = words[start : start + size]
            if size == 1:
                if not is_valid_keyword(window[0]):
                    continue
                candidate = window[0]
            else:
                candidate = " ".join(window)
                if not is_valid_phrase(candidate):
                    continue
            add_keyword(candidate, source, keyword_map, weight * multiplier)


def _extract_meta_keywords(meta_keywords: str, keyword_map: KeywordMap) -> None:
    # Author-declared keywords are taken whole and bypass the n-gram filters.
    for term in meta_keywords.split(","):
        keyword = normalize_text(term.strip())
        if keyword:
            add_keyword(keyword, "meta_keywords", keyword_map, FIELD_WEIGHTS["meta_keywords"])


def _iter_headings(headings: object) -> Iterable[str]:
    if not isinstance(headings, (list, tuple)):
        return ()
    return (heading for heading in headings if isinstance(heading, str) and heading)


def _extract_from_page(page: Page, keyword_map: KeywordMap) -> None:
    if page.title:
        extract_from_text(page.title, "title", keyword_map, FIELD_WEIGHTS["title"])

    if page.meta_description:
        extract_from_text(page.meta_description, "meta", keyword_map, FIELD_WEIGHTS["meta"])

    for heading in _iter_headings(page.h1_tags):
        extract_from_text(heading, "h1", keyword_map, FIELD_WEIGHTS["h1"])

    for heading in _iter_headings(page.h2_tags):
        extract_from_text(heading, "h2", keyword_map, FIELD_WEIGHTS["h2"])

    if page.meta_keywords:
        _extract_meta_keywords(page.meta_keywords, keyword_map)

    social = page.social_meta
    if social is not None:
        if social.og_title:
            extract_from_text(social.og_title, "og_title", keyword_map, FIELD_WEIGHTS["og_title"])
        if social.og_description:
            extract_from_text(social.og_description, "og_desc", keyword_map, FIELD_WEIGHTS["og_desc"])


def calculate_score(frequency: float, source_count: int) -> int:
    """Score a candidate from its weighted frequency and source diversity.

    Rounds half up and clamps to the 0-100 range.
    """

    raw = _to_hundredths(frequency) + source_count * SOURCE_DIVERSITY_BONUS * 100
    return max(0, min(100, (raw + 50) // 100))


def rank_keywords(keyword_map: KeywordMap, limit: int = MAX_KEYWORDS) -> List[ExtractedKeyword]:
    """Score every candidate and return the best ``limit`` of them.

    The sort is stable, so equal scores keep first-seen order.
    """

    keywords = [
        ExtractedKeyword(
            keyword=keyword,
            frequency=candidate.frequency,
            sources=list(candidate.sources),
            score=calculate_score(candidate.frequency, len(candidate.sources)),
        )
        for keyword, candidate in keyword_map.items()
    ]
    keywords.sort(key=lambda item: -item.score)
    return keywords[:limit]


def extract_from_crawl_data(crawl_data: Optional[CrawlData]) -> List[ExtractedKeyword]:
    """Extract and rank keywords from every page in ``crawl_data``.

    Missing crawl data, a missing page list and an empty page list all produce
    an empty result.
    """

    if crawl_data is None or not crawl_data.crawled_pages:
        return []

    keyword_map: KeywordMap = {}
    for page in crawl_data.crawled_pages:
        if page is None:
            continue
        _extract_from_page(page, keyword_map)

    ranked = rank_keywords(keyword_map)
    logger.debug(
        "Extracted %d candidates from %d pages; returning %d",
        len(keyword_map),
        len(crawl_data.crawled_pages),
        len(ranked),
    )
    return ranked


def suggest_keywords(niche: str, count: int = 10) -> List[str]:
    """Return up to ``count`` template keyword ideas for ``niche``."""

    if count <= 0:
        return []
    return [template.format(niche=niche) for template in SUGGESTION_TEMPLATES[:count]]
