"""Bounded concurrent fetching of many pages."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, List, Optional

import httpx

from pagestitch.scraper.fetcher import FetchOutcome, fetch_page
from pagestitch.scraper.models import FetchBatch, FetchFailure, normalize_url

logger = logging.getLogger(__name__)


def _unique(urls: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    unique: List[str] = []
    for url in urls:
        url = normalize_url(url)
        if url not in seen:
            seen.add(url)
            unique.append(url)
    return unique


def fetch_all(
    client: httpx.Client,
    urls: Iterable[str],
    concurrency: int,
    on_result: Optional[Callable[[str, Optional[FetchOutcome]], None]] = None,
) -> FetchBatch:
    """Fetch every URL in *urls* with at most *concurrency* requests in flight.

    The executor's workers pull URLs from its queue one at a time, so a new
    request starts as soon as any running one finishes.  Outcomes are
    collected in completion order; use
    :func:`~pagestitch.scraper.sequencer.sort_pages_by_url_order` to restore
    the input order.

    A failed page never stops the batch.  An exception escaping the fetcher
    itself is an internal fault: it is logged and counted in
    :attr:`FetchBatch.faults` rather than reported as a :class:`FetchFailure`.

    Args:
        client: Shared HTTP client from :func:`build_client`.
        urls: Pages to fetch; duplicates are fetched once.
        concurrency: Maximum number of simultaneous requests.
        on_result: Called as ``on_result(url, outcome)`` once per submitted URL,
            from the calling thread; *outcome* is ``None`` after a fault.

    Raises:
        ValueError: If *concurrency* is less than 1.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    batch = FetchBatch()
    targets = _unique(urls)
    if not targets:
        return batch

    with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="fetch") as pool:
        future_to_url = {pool.submit(fetch_page, client, url): url for url in targets}
        for future in as_completed(future_to_url):
            url = future_to_url[future]
            try:
                outcome = future.result()
            except Exception:
                logger.exception("Fetch worker crashed for %s", url)
                batch.faults += 1
                outcome = None
            else:
                if isinstance(outcome, FetchFailure):
                    logger.debug("Failed %s: %s", url, outcome.reason)
                    batch.failures.append(outcome)
                else:
                    batch.pages.append(outcome)

            if on_result is not None:
                on_result(url, outcome)

    return batch
