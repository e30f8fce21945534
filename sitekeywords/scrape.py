"""Page fetching and parsing utilities that feed the keyword extractor."""
from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

import requests
from bs4 import BeautifulSoup
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .schemas import CrawlData, Page, SocialMeta

logger = logging.getLogger(__name__)

USER_AGENT = os.getenv("SCRAPE_USER_AGENT", "SiteKeywordsBot/1.0")
REQUEST_TIMEOUT = float(os.getenv("SCRAPE_TIMEOUT", "5") or 5)
# Per heading level; 0 keeps every heading on the page.
MAX_HEADINGS = int(os.getenv("SCRAPE_MAX_HEADINGS", "20") or 0)


def _fetch_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    )


@_fetch_retry()
def _get(url: str) -> requests.Response:
    return requests.get(
        url,
        headers={"User-Agent": USER_AGENT},
        timeout=REQUEST_TIMEOUT,
        allow_redirects=True,
    )


def fetch_page(url: str) -> Optional[tuple[str, str]]:
    """Fetch a page, returning ``(final_url, html)`` or ``None`` on failure."""

    try:
        response = _get(url)
    except requests.RequestException as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return None

    if response.status_code != 200:
        logger.info("Skipping %s due to status %s", url, response.status_code)
        return None

    final_url = str(response.url)
    return final_url, response.text


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        value = tag["content"].strip()
        return value or None
    return None


def _heading_texts(soup: BeautifulSoup, name: str) -> list[str] | None:
    texts = [tag.get_text(" ", strip=True) for tag in soup.find_all(name)]
    texts = [text for text in texts if text]
    if MAX_HEADINGS > 0:
        texts = texts[:MAX_HEADINGS]
    return texts or None


def extract_page_content(url: str, html: str) -> Page:
    """Parse HTML into a :class:`Page`.

    Fields that are missing or blank are left as ``None`` so they contribute
    nothing downstream.
    """
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else None

    og_title = _meta_content(soup, property="og:title")
    og_description = _meta_content(soup, property="og:description")
    social_meta = None
    if og_title or og_description:
        social_meta = SocialMeta(og_title=og_title, og_description=og_description)

    return Page(
        url=url,
        title=title or None,
        meta_description=_meta_content(soup, name="description"),
        h1_tags=_heading_texts(soup, "h1"),
        h2_tags=_heading_texts(soup, "h2"),
        meta_keywords=_meta_content(soup, name="keywords"),
        social_meta=social_meta,
    )


def build_crawl_data(urls: Iterable[str]) -> CrawlData:
    """Fetch and parse each URL in order.

    Failures are recorded in ``CrawlData.errors`` instead of raising.
    """

    pages: list[Page] = []
    errors: list[dict[str, str]] = []
    for url in urls:
        fetched = fetch_page(url)
        if fetched is None:
            errors.append({"url": url, "error": "fetch failed"})
            continue
        final_url, html = fetched
        pages.append(extract_page_content(final_url, html))

    logger.info("Crawled %d pages (%d failed)", len(pages), len(errors))
    return CrawlData(crawled_pages=pages, errors=errors)
