"""Tests for the HTTP surface in ``sitekeywords.main``."""

from fastapi.testclient import TestClient

import sitekeywords.main as main_module
from sitekeywords.schemas import CrawlData, Page

client = TestClient(main_module.app)


def _payload(page_count: int = 1) -> dict:
    return {
        "crawledPages": [
            {
                "url": f"https://example.com/{i}",
                "title": "Best SEO Tools For Beginners",
                "metaDescription": "Compare keyword research and rank tracking tools.",
                "h1Tags": ["SEO Tools"],
                "h2Tags": ["Keyword research", "Rank tracking"],
                "metaKeywords": "seo, content marketing",
                "socialMeta": {"ogTitle": "SEO Tools", "ogDescription": None},
            }
            for i in range(page_count)
        ]
    }


def test_extract_returns_ranked_keywords():
    response = client.post("/keywords/extract", json=_payload())

    assert response.status_code == 200
    body = response.json()
    keywords = body["keywords"]
    assert body["totalExtracted"] == len(keywords)
    # "seo" and "tools" tie on score; "seo" was seen first
    assert [item["keyword"] for item in keywords[:2]] == ["seo", "tools"]
    assert set(keywords[0]["sources"]) == {"title", "h1", "meta_keywords", "og_title"}
    by_keyword = {item["keyword"]: item for item in keywords}
    assert set(by_keyword["seo tools"]["sources"]) == {"title", "h1", "og_title"}
    assert by_keyword["seo tools"]["score"] == 26
    assert by_keyword["content marketing"]["sources"] == ["meta_keywords"]


def test_extract_handles_missing_pages():
    assert client.post("/keywords/extract", json={}).json() == {"keywords": [], "totalExtracted": 0}
    assert client.post("/keywords/extract", json={"crawledPages": []}).json()["keywords"] == []
    assert client.post("/keywords/extract").json()["keywords"] == []


def test_extract_applies_plan_limit(monkeypatch):
    monkeypatch.setattr(main_module, "FREE_PLAN_LIMIT", 3)

    body = client.post("/keywords/extract?plan=free", json=_payload()).json()

    assert len(body["keywords"]) == 3
    assert body["totalExtracted"] > 3


def test_extract_rejects_unknown_plan():
    response = client.post("/keywords/extract?plan=enterprise", json=_payload())

    assert response.status_code == 422


def test_extract_rejects_malformed_pages():
    response = client.post("/keywords/extract", json={"crawledPages": [{"title": 42}]})

    assert response.status_code == 422


def test_crawl_uses_page_adapter(monkeypatch):
    captured = {}

    def fake_build(urls):
        captured["urls"] = urls
        return CrawlData(
            crawled_pages=[Page(url=urls[0], title="Handmade Leather Wallets")],
            errors=[{"url": urls[1], "error": "fetch failed"}],
        )

    monkeypatch.setattr(main_module, "build_crawl_data", fake_build)

    response = client.post(
        "/keywords/crawl",
        json={"urls": [" https://shop.example.com ", "https://shop.example.com/404"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert captured["urls"] == ["https://shop.example.com", "https://shop.example.com/404"]
    assert "handmade leather wallets" in {item["keyword"] for item in body["keywords"]}
    assert body["errors"] == [{"url": "https://shop.example.com/404", "error": "fetch failed"}]


def test_crawl_rejects_non_http_urls():
    response = client.post("/keywords/crawl", json={"urls": ["ftp://example.com"]})

    assert response.status_code == 422


def test_suggest_returns_templates():
    response = client.get("/keywords/suggest", params={"niche": "pickleball", "count": 2})

    assert response.status_code == 200
    assert response.json() == {
        "niche": "pickleball",
        "suggestions": ["best pickleball tools", "pickleball guide"],
    }


def test_suggest_rejects_blank_niche():
    response = client.get("/keywords/suggest", params={"niche": "   "})

    assert response.status_code == 400
