"""Landing page scraper: static HTML extraction with a headless-browser fallback."""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Awaitable, Callable

import httpx
import structlog
from bs4 import BeautifulSoup
from playwright.async_api import async_playwright

from copy_forge.core.landing_cache import LandingPageCache, get_landing_page_cache
from copy_forge.errors import ValidationError
from copy_forge.utils.batch import process_sequentially
from copy_forge.utils.security import validate_url
from copy_forge.utils.timeutil import to_iso, utcnow

logger = structlog.get_logger()

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
REQUEST_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

STRIPPED_ELEMENTS = "script, style, nav, header, footer, aside, .advertisement, .ads, .social-share"
CONTENT_SELECTORS = (
    "main",
    '[role="main"]',
    ".main-content",
    ".content",
    ".post-content",
    ".article-content",
    ".page-content",
    "article",
    ".container",
    "body",
)
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

MIN_CONTENT_LENGTH = 100
MAX_CONTENT_LENGTH = 10000
TIMEOUT_SECONDS = 30
SETTLE_DELAY_SECONDS = 2
BATCH_DELAY_SECONDS = 1

_WHITESPACE = re.compile(r"\s+")

Renderer = Callable[[str], Awaitable[str]]


@dataclass
class PageData:
    title: str
    content: str
    description: str | None = None
    keywords: list[str] = field(default_factory=list)
    og_title: str | None = None
    og_description: str | None = None


@dataclass
class ScrapedContent:
    """Result of scraping one URL. ``processing_time_ms == 0`` means it came from cache."""
    url: str
    title: str
    content: str
    metadata: dict[str, Any]
    success: bool
    error: str | None = None
    processing_time_ms: int = 0

    @property
    def from_cache(self) -> bool:
        return self.success and self.processing_time_ms == 0

    @classmethod
    def failed(cls, url: str, error: str, processing_time_ms: int = 0) -> ScrapedContent:
        return cls(
            url=url,
            title="",
            content="",
            metadata={},
            success=False,
            error=error,
            processing_time_ms=processing_time_ms,
        )


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _meta(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip()
    return None


def extract_page(html: str) -> PageData:
    """Pull title, metadata and the main readable text out of an HTML document."""
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    if soup.title and soup.title.get_text(strip=True):
        title = soup.title.get_text(strip=True)
    elif soup.h1 and soup.h1.get_text(strip=True):
        title = soup.h1.get_text(strip=True)

    og_title = _meta(soup, property="og:title")
    og_description = _meta(soup, property="og:description")
    description = _meta(soup, name="description") or og_description
    keywords_raw = _meta(soup, name="keywords") or ""
    keywords = [k.strip() for k in keywords_raw.split(",") if k.strip()]

    for element in soup.select(STRIPPED_ELEMENTS):
        element.decompose()

    content = ""
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = collapse_whitespace(element.get_text(" "))
        if len(text) > MIN_CONTENT_LENGTH:
            content = text
            break
    if not content:
        content = collapse_whitespace(soup.get_text(" "))

    if len(content) > MAX_CONTENT_LENGTH:
        content = content[:MAX_CONTENT_LENGTH] + "..."

    return PageData(
        title=title or "No title found",
        content=content,
        description=description,
        keywords=keywords,
        og_title=og_title,
        og_description=og_description,
    )


async def render_with_browser(url: str) -> str:
    """Render a page in headless Chromium and return the resulting DOM as HTML."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=BROWSER_ARGS)
        try:
            page = await browser.new_page(
                user_agent=USER_AGENT, viewport={"width": 1920, "height": 1080}
            )
            await page.goto(url, wait_until="networkidle", timeout=TIMEOUT_SECONDS * 1000)
            await asyncio.sleep(SETTLE_DELAY_SECONDS)
            return await page.content()
        finally:
            await browser.close()


class WebScraper:
    """Cache-aware landing page scraper."""

    def __init__(
        self,
        cache: LandingPageCache,
        renderer: Renderer = render_with_browser,
        transport: httpx.AsyncBaseTransport | None = None,
        batch_delay_seconds: float = BATCH_DELAY_SECONDS,
    ) -> None:
        self.cache = cache
        self.renderer = renderer
        self._transport = transport
        self.batch_delay_seconds = batch_delay_seconds

    async def fetch_static(self, url: str) -> str:
        async with httpx.AsyncClient(
            timeout=TIMEOUT_SECONDS,
            headers=REQUEST_HEADERS,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.text

    async def scrape_content(self, url: str, use_cache: bool = True) -> ScrapedContent:
        url = validate_url(url)

        if use_cache:
            cached = self.cache.get(url)
            if cached is not None:
                logger.info("scraper.cache_hit", url=url)
                return ScrapedContent(
                    url=url,
                    title=cached.title or "",
                    content=cached.content,
                    metadata=cached.metadata,
                    success=True,
                    processing_time_ms=0,
                )

        started = time.monotonic()
        page: PageData | None = None
        method = "static"
        try:
            page = extract_page(await self.fetch_static(url))
        except Exception as e:
            logger.info("scraper.static_failed", url=url, error=str(e))

        if page is None or len(page.content) < MIN_CONTENT_LENGTH:
            method = "browser"
            try:
                page = extract_page(await self.renderer(url))
            except Exception as e:
                elapsed = int((time.monotonic() - started) * 1000)
                logger.warning("scraper.failed", url=url, error=str(e))
                return ScrapedContent.failed(url, f"Failed to scrape content: {e}", max(elapsed, 1))

        elapsed = max(int((time.monotonic() - started) * 1000), 1)
        metadata = {
            "description": page.description,
            "keywords": page.keywords,
            "og_title": page.og_title,
            "og_description": page.og_description,
            "scraped_at": to_iso(utcnow()),
            "method": method,
            "content_length": len(page.content),
        }
        if use_cache:
            self.cache.put(url, page.title, page.content, metadata)
        logger.info("scraper.scraped", url=url, method=method, chars=len(page.content))
        return ScrapedContent(
            url=url,
            title=page.title,
            content=page.content,
            metadata=metadata,
            success=True,
            processing_time_ms=elapsed,
        )

    async def scrape_multiple_urls(
        self, urls: list[str], use_cache: bool = True
    ) -> list[ScrapedContent]:
        """Scrape URLs one at a time with a politeness delay between requests."""

        async def _one(url: str) -> ScrapedContent:
            return await self.scrape_content(url, use_cache=use_cache)

        def _failed(url: str, e: Exception) -> ScrapedContent:
            if isinstance(e, ValidationError):
                return ScrapedContent.failed(url, str(e))
            return ScrapedContent.failed(url, f"Failed to scrape content: {e}")

        return await process_sequentially(
            urls, _one, _failed, delay_seconds=self.batch_delay_seconds, label="scraper"
        )


@lru_cache
def get_web_scraper() -> WebScraper:
    """Get cached web scraper instance."""
    return WebScraper(get_landing_page_cache())
