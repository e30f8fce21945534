"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
import os
import time
from typing import Any, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .keywords import extract_from_crawl_data, suggest_keywords
from .logging_setup import configure_logging
from .schemas import CrawlData, ExtractedKeyword, Page, SocialMeta
from .scrape import build_crawl_data

LOG_FILE_PATH = configure_logging(os.getenv("LOG_LEVEL"))
logger = logging.getLogger(__name__)

app = FastAPI(title="Site Keyword Extractor")

FREE_PLAN_LIMIT = int(os.getenv("KEYWORDS_FREE_PLAN_LIMIT", "10") or 0) or 10
PAID_PLAN_LIMIT = int(os.getenv("KEYWORDS_PAID_PLAN_LIMIT", "30") or 0) or 30
CRAWL_MAX_URLS = int(os.getenv("CRAWL_MAX_URLS", "25") or 0) or 25


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SocialMetaPayload(_CamelModel):
    og_title: Optional[str] = Field(default=None, alias="ogTitle")
    og_description: Optional[str] = Field(default=None, alias="ogDescription")


class PagePayload(_CamelModel):
    url: Optional[str] = None
    title: Optional[str] = None
    meta_description: Optional[str] = Field(default=None, alias="metaDescription")
    h1_tags: Optional[List[str]] = Field(default=None, alias="h1Tags")
    h2_tags: Optional[List[str]] = Field(default=None, alias="h2Tags")
    meta_keywords: Optional[str] = Field(default=None, alias="metaKeywords")
    social_meta: Optional[SocialMetaPayload] = Field(default=None, alias="socialMeta")

    def to_page(self) -> Page:
        social = None
        if self.social_meta is not None:
            social = SocialMeta(
                og_title=self.social_meta.og_title,
                og_description=self.social_meta.og_description,
            )
        return Page(
            url=self.url,
            title=self.title,
            meta_description=self.meta_description,
            h1_tags=self.h1_tags,
            h2_tags=self.h2_tags,
            meta_keywords=self.meta_keywords,
            social_meta=social,
        )


class CrawlDataPayload(_CamelModel):
    crawled_pages: Optional[List[PagePayload]] = Field(default=None, alias="crawledPages")

    def to_crawl_data(self) -> CrawlData:
        if self.crawled_pages is None:
            return CrawlData(crawled_pages=None)
        return CrawlData(crawled_pages=[page.to_page() for page in self.crawled_pages])


class CrawlRequest(BaseModel):
    urls: List[str] = Field(min_length=1)

    @field_validator("urls")
    @classmethod
    def urls_are_http(cls, value: List[str]) -> List[str]:
        cleaned = [url.strip() for url in value if url and url.strip()]
        if not cleaned:
            raise ValueError("at least one URL is required")
        for url in cleaned:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"unsupported URL scheme: {url}")
        if len(cleaned) > CRAWL_MAX_URLS:
            raise ValueError(f"at most {CRAWL_MAX_URLS} URLs may be crawled per request")
        return cleaned


def _plan_limit(plan: Optional[str]) -> Optional[int]:
    if plan is None:
        return None
    return FREE_PLAN_LIMIT if plan == "free" else PAID_PLAN_LIMIT


def _keywords_response(keywords: list[ExtractedKeyword], plan: Optional[str]) -> dict[str, Any]:
    limit = _plan_limit(plan)
    selected = keywords if limit is None else keywords[:limit]
    return {
        "keywords": [keyword.to_dict() for keyword in selected],
        "totalExtracted": len(keywords),
    }


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/keywords/extract")
def extract_keywords(
    payload: Optional[CrawlDataPayload] = None,
    plan: Optional[Literal["free", "paid"]] = Query(default=None),
) -> dict[str, Any]:
    start = time.perf_counter()
    crawl_data = payload.to_crawl_data() if payload is not None else None
    keywords = extract_from_crawl_data(crawl_data)
    logger.info(
        "Extracted %d keywords in %.3fs (plan=%s)",
        len(keywords),
        time.perf_counter() - start,
        plan or "none",
    )
    return _keywords_response(keywords, plan)


@app.post("/keywords/crawl")
def crawl_and_extract(
    request: CrawlRequest,
    plan: Optional[Literal["free", "paid"]] = Query(default=None),
) -> dict[str, Any]:
    crawl_data = build_crawl_data(request.urls)
    if not crawl_data.crawled_pages:
        logger.warning("No pages could be fetched for %d URLs", len(request.urls))
    keywords = extract_from_crawl_data(crawl_data)
    response = _keywords_response(keywords, plan)
    response["errors"] = crawl_data.errors
    return response


@app.get("/keywords/suggest")
def suggest(niche: str = Query(...), count: int = Query(default=10, ge=0, le=50)) -> dict[str, Any]:
    niche = niche.strip()
    if not niche:
        raise HTTPException(status_code=400, detail="Niche must not be empty")
    return {"niche": niche, "suggestions": suggest_keywords(niche, count)}
