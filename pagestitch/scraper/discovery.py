"""Link discovery: turn one seed page into a list of same-section URLs.

The seed is fetched once, its internal links are collected, and the most
common path prefix among them is taken to be the site's content section
(e.g. ``/docs/``).  Only links under that prefix are kept, so pointing the
tool at one documentation page yields the rest of the documentation and not
the blog, the pricing page, or the login form.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from pagestitch.config import Settings, settings as default_settings
from pagestitch.scraper.fetcher import fetch_seed
from pagestitch.scraper.models import normalize_url

logger = logging.getLogger(__name__)

_WEB_SCHEMES = ("http", "https")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def extract_internal_links(html: str, base_url: str) -> List[str]:
    """Return the normalized links in *html* that share *base_url*'s host.

    Relative hrefs are resolved against *base_url*; fragments are removed
    before deduplication so ``a#one``, ``a#two`` and ``a`` collapse to one
    entry.  First-seen order is preserved.  Hosts are compared without the
    port, so a link to another port of the same host counts as internal.
    """
    base_host = urlsplit(base_url).hostname
    soup = BeautifulSoup(html, "html.parser")

    seen: set[str] = set()
    links: List[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href:
            continue
        try:
            url = normalize_url(urljoin(base_url, href))
        except ValueError:
            # Malformed href, e.g. an unbalanced IPv6 bracket or a bad port.
            continue
        parts = urlsplit(url)
        if parts.scheme not in _WEB_SCHEMES or parts.hostname != base_host:
            continue
        if url not in seen:
            seen.add(url)
            links.append(url)
    return links


def path_prefixes(url: str) -> List[str]:
    """Return every directory prefix of *url*'s path.

    ``/docs/api/v2`` → ``["/docs/", "/docs/api/", "/docs/api/v2/"]``.
    """
    segments = [s for s in urlsplit(url).path.split("/") if s]
    return ["/" + "/".join(segments[: i + 1]) + "/" for i in range(len(segments))]


def find_best_prefix(
    urls: Iterable[str],
    ratio: float = 0.7,
    minimum: int = 2,
) -> Optional[str]:
    """Return the path prefix shared by most of *urls*, or ``None``.

    A prefix qualifies when it occurs at least
    ``max(minimum, ceil(ratio * len(urls)))`` times.  Among qualifying
    prefixes the most frequent wins; ties go to the shortest prefix, then to
    the lexicographically smallest one.
    """
    urls = list(urls)
    counts: Counter[str] = Counter()
    for url in urls:
        counts.update(path_prefixes(url))

    # round() keeps float noise from pushing an exact product up a whole count.
    threshold = max(minimum, math.ceil(round(ratio * len(urls), 9)))
    candidates = [(prefix, n) for prefix, n in counts.items() if n >= threshold]
    if not candidates:
        return None

    prefix, _ = min(candidates, key=lambda item: (-item[1], len(item[0]), item[0]))
    return prefix


def _filter_by_prefix(urls: List[str], prefix: str) -> List[str]:
    return [u for u in urls if urlsplit(u).path.startswith(prefix)]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def discover_links(
    client: httpx.Client,
    seed: str,
    settings: Optional[Settings] = None,
) -> List[str]:
    """Fetch *seed* and return the sorted list of URLs in its content section.

    The seed itself is always part of the result.

    Raises:
        FetchError: If the seed page cannot be retrieved.
    """
    settings = settings or default_settings
    seed = normalize_url(seed)

    html = fetch_seed(client, seed)
    links = extract_internal_links(html, seed)
    logger.debug("Found %d internal link(s) on %s", len(links), seed)

    prefix = find_best_prefix(
        links,
        ratio=settings.prefix_ratio,
        minimum=settings.prefix_min_count,
    )
    if prefix is not None:
        logger.debug("Restricting links to prefix %r", prefix)
        links = _filter_by_prefix(links, prefix)
    else:
        logger.debug("No dominant path prefix; keeping all internal links")

    if seed not in links:
        links.append(seed)

    return sorted(links)
