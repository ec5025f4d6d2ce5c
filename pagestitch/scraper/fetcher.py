"""HTTP fetcher: one GET per page, outcome returned as a value."""

from __future__ import annotations

import logging
from typing import Optional, Union

import httpx

from pagestitch.config import Settings, settings as default_settings
from pagestitch.errors import FetchError
from pagestitch.scraper.models import FetchFailure, PageContent

logger = logging.getLogger(__name__)

FetchOutcome = Union[PageContent, FetchFailure]


def build_client(settings: Optional[Settings] = None) -> httpx.Client:
    """Return the HTTP client shared by every fetch of a run.

    The client is configured once (timeout, ``User-Agent``, redirects) and
    only read afterwards, so worker threads can use it concurrently.
    """
    settings = settings or default_settings
    return httpx.Client(
        headers={"User-Agent": settings.user_agent},
        timeout=settings.request_timeout,
        follow_redirects=True,
    )


def _describe(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def fetch_page(client: httpx.Client, url: str) -> FetchOutcome:
    """Fetch *url* and return a :class:`PageContent` or a :class:`FetchFailure`.

    Never raises for HTTP or network problems.  The reason is prefixed so the
    failure class can be told apart in the end-of-run report:

    - ``HTTP <code> <phrase>`` for a non-success status,
    - ``network: ...`` when the request could not be sent,
    - ``read body: ...`` when the response body could not be read or decoded.
    """
    try:
        with client.stream("GET", url) as response:
            if not response.is_success:
                reason = f"HTTP {response.status_code} {response.reason_phrase}".strip()
                return FetchFailure(url=url, reason=reason)
            try:
                response.read()
                html = response.text
            except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError) as exc:
                return FetchFailure(url=url, reason=f"read body: {_describe(exc)}")
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        return FetchFailure(url=url, reason=f"network: {_describe(exc)}")

    logger.debug("Fetched %s (%d chars)", url, len(html))
    return PageContent(url=url, html=html)


def fetch_seed(client: httpx.Client, url: str) -> str:
    """Fetch the discovery seed and return its HTML.

    Raises:
        FetchError: If the seed cannot be retrieved for any reason.
    """
    outcome = fetch_page(client, url)
    if isinstance(outcome, FetchFailure):
        raise FetchError(outcome.url, outcome.reason)
    return outcome.html
