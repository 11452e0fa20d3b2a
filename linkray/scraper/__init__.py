"""Scraper package: web fetch, content extraction and bounded crawling."""

from linkray.scraper.crawler import crawl_site
from linkray.scraper.extractor import extract_content, extract_links
from linkray.scraper.fetcher import fetch_page
from linkray.scraper.models import CrawlPage, CrawlResult, ScrapedContent

__all__ = [
    "fetch_page",
    "extract_content",
    "extract_links",
    "crawl_site",
    "CrawlPage",
    "CrawlResult",
    "ScrapedContent",
]
