"""Scraper package: discovery, fetching, ordering and rendering."""

from pagestitch.scraper.discovery import discover_links, find_best_prefix
from pagestitch.scraper.fetcher import build_client, fetch_page
from pagestitch.scraper.models import (
    FetchBatch,
    FetchFailure,
    PageContent,
    RenderedFragment,
    RenderMode,
    normalize_url,
)
from pagestitch.scraper.renderer import render_pages, write_document
from pagestitch.scraper.scheduler import fetch_all
from pagestitch.scraper.sequencer import sort_pages_by_url_order

__all__ = [
    "build_client",
    "discover_links",
    "fetch_all",
    "fetch_page",
    "find_best_prefix",
    "normalize_url",
    "render_pages",
    "sort_pages_by_url_order",
    "write_document",
    "FetchBatch",
    "FetchFailure",
    "PageContent",
    "RenderedFragment",
    "RenderMode",
]
