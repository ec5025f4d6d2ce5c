"""End-to-end run: targets → fetch → reorder → render.

The CLI calls :func:`resolve_targets` first (so it can show the discovered
list and ask for confirmation), then :func:`stitch` with the final list.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Union
from urllib.parse import urlsplit

import httpx

from pagestitch.config import Settings, settings as default_settings
from pagestitch.errors import InputError
from pagestitch.scraper.discovery import discover_links
from pagestitch.scraper.fetcher import FetchOutcome
from pagestitch.scraper.models import FetchFailure, RenderMode, StitchReport, normalize_url
from pagestitch.scraper.renderer import write_document
from pagestitch.scraper.scheduler import fetch_all
from pagestitch.scraper.sequencer import sort_pages_by_url_order

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

def is_web_url(value: str) -> bool:
    """Return ``True`` if *value* is an absolute http(s) URL."""
    try:
        parts = urlsplit(value.strip())
        parts.port  # raises on a malformed port
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)


def parse_targets(values: Iterable[str]) -> List[str]:
    """Validate URLs given directly by the user and normalize them.

    Raises:
        InputError: If any value is not an absolute http(s) URL.
    """
    urls: List[str] = []
    for value in values:
        if not is_web_url(value):
            raise InputError(f"Not a valid URL: {value!r}")
        urls.append(normalize_url(value))
    return urls


def read_url_file(path: Union[str, Path]) -> List[str]:
    """Read one URL per line from *path*.

    Blank lines and lines starting with ``#`` are ignored; lines that are not
    absolute http(s) URLs are dropped without complaint.

    Raises:
        InputError: If the file cannot be read.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Failed to read URL file: {path}: {exc}") from exc

    urls: List[str] = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if is_web_url(line):
            urls.append(normalize_url(line))
        else:
            logger.debug("Ignoring unparsable line in %s: %r", path, line)
    return urls


def resolve_targets(
    client: httpx.Client,
    urls: Sequence[str],
    discover: bool,
    confirm: Optional[Callable[[List[str]], bool]] = None,
    settings: Optional[Settings] = None,
) -> Optional[List[str]]:
    """Return the list of pages to fetch, or ``None`` if the user declined.

    With *discover* set, the single seed in *urls* is expanded through
    :func:`discover_links` and the result is passed to *confirm* before
    anything else happens.

    Raises:
        InputError: If *urls* is empty, or *discover* is set with more than
            one URL.
        FetchError: If the discovery seed cannot be fetched.
    """
    if not urls:
        raise InputError("No valid URLs were provided.")
    if not discover:
        return list(urls)
    if len(urls) != 1:
        raise InputError("Link discovery needs exactly one seed URL.")

    discovered = discover_links(client, urls[0], settings=settings)
    if confirm is not None and not confirm(discovered):
        logger.debug("Discovery result declined")
        return None
    return discovered


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

def rate_limit_hint(failures: Iterable[FetchFailure]) -> Optional[str]:
    """Return an operator hint when any failure looks like rate limiting."""
    if any(f.rate_limited for f in failures):
        return (
            "It looks like you are being rate-limited; "
            "try reducing the --parallel value (e.g. 2)."
        )
    return None


def stitch(
    client: httpx.Client,
    targets: Sequence[str],
    output_path: Union[str, Path],
    mode: Union[RenderMode, str, None] = None,
    parallel: Optional[int] = None,
    keep_in_memory: bool = False,
    on_result: Optional[Callable[[str, Optional[FetchOutcome]], None]] = None,
    settings: Optional[Settings] = None,
) -> StitchReport:
    """Fetch *targets*, put them back in order and write the document.

    Args:
        client: Shared HTTP client.
        targets: Pages in final document order.
        output_path: File to create (or truncate).
        mode: Rendering mode; defaults to ``settings.default_mode``.
        parallel: Maximum concurrent requests; defaults to
            ``settings.parallel_requests``.
        keep_in_memory: Keep the rendered document on the report.
        on_result: Progress callback forwarded to :func:`fetch_all`.

    Returns:
        A :class:`StitchReport`.  ``pages_processed`` counts every page that
        was fetched, including ones that rendered to nothing.

    Raises:
        InputError: If *targets* is empty.
        OutputError: If the output file cannot be written.
    """
    settings = settings or default_settings
    if not targets:
        raise InputError("No URLs found to process.")

    mode = RenderMode(mode or settings.default_mode)
    parallel = parallel or settings.parallel_requests
    targets = [normalize_url(u) for u in targets]

    batch = fetch_all(client, targets, parallel, on_result=on_result)
    pages = sort_pages_by_url_order(batch.pages, targets)

    rendered = write_document(
        pages,
        output_path,
        mode,
        keep_in_memory=keep_in_memory,
        settings=settings,
    )

    return StitchReport(
        targets=list(targets),
        pages_processed=len(pages),
        pages_rendered=rendered.rendered,
        failures=batch.failures,
        faults=batch.faults,
        output_path=Path(output_path),
        text=rendered.text,
    )
