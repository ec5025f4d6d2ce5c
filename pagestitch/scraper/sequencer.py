"""Restore the caller's URL order after out-of-order fetching."""

from __future__ import annotations

import logging
import sys
from typing import Iterable, List

from pagestitch.scraper.models import PageContent, normalize_url

logger = logging.getLogger(__name__)


def sort_pages_by_url_order(
    pages: Iterable[PageContent],
    url_order: Iterable[str],
) -> List[PageContent]:
    """Return *pages* sorted by the position of their URL in *url_order*.

    Pages whose URL does not appear in *url_order* are kept and placed after
    all known pages, in the order they arrived.
    """
    pages = list(pages)
    logger.debug("Sorting %d fetched page(s) into the requested order", len(pages))

    rank: dict[str, int] = {}
    for i, url in enumerate(url_order):
        rank.setdefault(normalize_url(url), i)

    # sorted() is stable, so unknown URLs keep their arrival order.
    return sorted(pages, key=lambda page: rank.get(normalize_url(page.url), sys.maxsize))
