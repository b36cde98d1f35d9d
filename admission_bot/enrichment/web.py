"""Web page fetching and web search for context enrichment."""

from __future__ import annotations

import asyncio
import logging
import re
from urllib.parse import parse_qs, urljoin, urlparse

import httpx
import trafilatura
from bs4 import BeautifulSoup

from admission_bot.config import settings
from admission_bot.enrichment.base import FetchResult

logger = logging.getLogger(__name__)

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
DUCKDUCKGO_HTML_URL = "https://html.duckduckgo.com/html/"
MAX_DOWNLOAD_BYTES = 5 * 1024 * 1024  # 5 MB
MAX_PAGE_CHARS = 1500
MAX_SEARCH_RESULTS = 3
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; AdmissionBot/1.0)"

STRIP_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "aside"]

_WS_RE = re.compile(r"\s+")


def _is_html(content_type: str) -> bool:
    """Check if a Content-Type header value indicates HTML."""
    ct = content_type.lower().split(";")[0].strip()
    return ct in ("text/html", "application/xhtml+xml")


def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def extract_page(html: str) -> tuple[str, str]:
    """Return ``(title, visible_text)`` for an HTML document.

    Prefers trafilatura's main-content extraction and falls back to the
    page text with scripts, styles and navigation chrome removed.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = _collapse(soup.title.get_text()) if soup.title else ""

    content = trafilatura.extract(html)
    if not content:
        for tag in soup(STRIP_TAGS):
            tag.decompose()
        body = soup.body or soup
        content = body.get_text(" ")

    return title, _collapse(content)[:MAX_PAGE_CHARS]


async def fetch_page(url: str) -> FetchResult:
    """Fetch *url* and extract its title and up to 1500 chars of text."""
    try:
        async with httpx.AsyncClient(
            timeout=settings.fetch_timeout,
            follow_redirects=True,
            headers={"User-Agent": DEFAULT_USER_AGENT},
            max_redirects=5,
        ) as client:
            resp = await client.get(url)

        if resp.status_code != 200:
            return FetchResult(error=f"HTTP {resp.status_code} fetching {url}")

        content_type = resp.headers.get("content-type", "")
        if not _is_html(content_type):
            return FetchResult(error=f"Not an HTML page (Content-Type: {content_type})")

        if len(resp.content) > MAX_DOWNLOAD_BYTES:
            return FetchResult(
                error=f"Page too large ({len(resp.content)} bytes, max {MAX_DOWNLOAD_BYTES})"
            )

        html = resp.text

    except httpx.TimeoutException:
        logger.warning("Timeout fetching %s", url)
        return FetchResult(error=f"Timeout fetching {url}")
    except httpx.HTTPError as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return FetchResult(error=f"Failed to fetch webpage: {exc}")

    # CPU-bound parsing off the event loop
    title, text = await asyncio.to_thread(extract_page, html)
    if not text:
        return FetchResult(error=f"Could not extract content from {url}")
    return FetchResult(data={"url": url, "title": title, "text": text})


def render_page(data: dict) -> str:
    lines = [f"URL: {data['url']}"]
    if data["title"]:
        lines.append(f"Title: {data['title']}")
    lines += ["", data["text"]]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def _unwrap_duckduckgo_link(href: str) -> str:
    """DuckDuckGo wraps result links as ``//duckduckgo.com/l/?uddg=<url>``."""
    absolute = urljoin("https://duckduckgo.com", href)
    parsed = urlparse(absolute)
    if parsed.path.startswith("/l/"):
        target = parse_qs(parsed.query).get("uddg")
        if target:
            return target[0]
    return absolute


def parse_duckduckgo_results(html: str, limit: int = MAX_SEARCH_RESULTS) -> list[dict[str, str]]:
    """Parse organic results from a DuckDuckGo HTML result page."""
    soup = BeautifulSoup(html, "html.parser")
    results: list[dict[str, str]] = []
    for block in soup.select("div.result"):
        if "result--ad" in (block.get("class") or []):
            continue
        link = block.select_one("a.result__a")
        if link is None or not link.get("href"):
            continue
        snippet = block.select_one(".result__snippet")
        results.append({
            "title": link.get_text(strip=True),
            "snippet": snippet.get_text(" ", strip=True) if snippet else "",
            "url": _unwrap_duckduckgo_link(link["href"]),
        })
        if len(results) >= limit:
            break
    return results


async def _search_brave(client: httpx.AsyncClient, query: str) -> FetchResult:
    headers = {
        "Accept": "application/json",
        "Accept-Encoding": "gzip",
        "X-Subscription-Token": settings.brave_search_api_key,
    }
    resp = await client.get(
        BRAVE_SEARCH_URL, headers=headers, params={"q": query, "count": MAX_SEARCH_RESULTS}
    )
    if resp.status_code != 200:
        return FetchResult(error=f"Brave Search API returned {resp.status_code}: {resp.text[:200]}")

    web_results = resp.json().get("web", {}).get("results", [])
    results = [
        {"title": r.get("title", ""), "snippet": r.get("description", ""), "url": r.get("url", "")}
        for r in web_results[:MAX_SEARCH_RESULTS]
    ]
    return FetchResult(data={"query": query, "results": results})


async def _search_duckduckgo(client: httpx.AsyncClient, query: str) -> FetchResult:
    resp = await client.get(
        DUCKDUCKGO_HTML_URL,
        params={"q": query},
        headers={"User-Agent": DEFAULT_USER_AGENT},
    )
    if resp.status_code != 200:
        return FetchResult(error=f"Search page returned {resp.status_code}")

    results = await asyncio.to_thread(parse_duckduckgo_results, resp.text)
    return FetchResult(data={"query": query, "results": results})


async def search(query: str) -> FetchResult:
    """Top organic results for *query*.

    Uses the Brave Search API when a key is configured, otherwise parses
    the DuckDuckGo HTML result page.
    """
    try:
        async with httpx.AsyncClient(timeout=settings.fetch_timeout, follow_redirects=True) as client:
            if settings.brave_search_api_key:
                result = await _search_brave(client, query)
            else:
                result = await _search_duckduckgo(client, query)
    except httpx.HTTPError as exc:
        logger.warning("Search request failed for %r: %s", query, exc)
        return FetchResult(error=f"Search request failed: {exc}")
    except ValueError as exc:
        logger.warning("Unreadable search response for %r: %s", query, exc)
        return FetchResult(error=f"Unreadable search response: {exc}")

    if result.success and not result.data["results"]:
        return FetchResult(error=f"No results for {query!r}")
    return result


def render_results(data: dict) -> str:
    lines = [f"Query: {data['query']}"]
    for i, r in enumerate(data["results"], start=1):
        lines += ["", f"{i}. {r['title']}", r["url"]]
        if r["snippet"]:
            lines.append(r["snippet"])
    return "\n".join(lines)
