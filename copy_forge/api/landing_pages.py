"""Landing page scraping endpoint."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from copy_forge.api.models import ScrapedPageResponse, ScrapeRequest, ScrapeResponse
from copy_forge.core.scraper import WebScraper, get_web_scraper

router = APIRouter()


@router.post("/scrape", response_model=ScrapeResponse)
async def scrape_landing_pages(
    data: ScrapeRequest,
    scraper: WebScraper = Depends(get_web_scraper),
) -> ScrapeResponse:
    """Scrape URLs sequentially. Failures are reported per item."""
    results = await scraper.scrape_multiple_urls(data.urls, use_cache=data.use_cache)
    return ScrapeResponse(
        total=len(results),
        succeeded=sum(1 for r in results if r.success),
        from_cache=sum(1 for r in results if r.from_cache),
        results=[ScrapedPageResponse(**asdict(r)) for r in results],
    )
