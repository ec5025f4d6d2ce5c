"""Rendering pipeline: ordered pages → one Markdown document.

Pages are converted in parallel on a thread pool, but fragments are always
written in input order: the writer waits for the page at the head of the
queue even when later pages finished first.

Three modes are supported:

``raw``
    Convert the whole HTML document with ``markdownify``.
``body``
    Keep only ``<body>`` (or the whole document when there is none), drop
    ``<script>``/``<style>``/``<noscript>``, then convert.
``readability``
    Let ``trafilatura`` pick the main content and emit it as Markdown.  Pages
    where nothing substantial is found contribute nothing.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

import trafilatura
from bs4 import BeautifulSoup
from markdownify import ATX, markdownify

from pagestitch.config import Settings, settings as default_settings
from pagestitch.errors import OutputError
from pagestitch.scraper.models import PageContent, RenderedFragment, RenderMode, RenderResult

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 57
FRAGMENT_GAP = "\n\n\n"

_BLANK_RUNS = re.compile(r"\n(?:[ \t]*\n){2,}")
_FENCED_BLOCK = re.compile(r"^(```|~~~).*?^\1[ \t]*$", re.MULTILINE | re.DOTALL)


# ---------------------------------------------------------------------------
# Per-mode converters
# ---------------------------------------------------------------------------

def _to_markdown(html: str) -> str:
    return markdownify(html, heading_style=ATX)


def _clean(text: str) -> str:
    # Blank runs inside fenced code blocks are part of the code; leave them.
    pieces: List[str] = []
    pos = 0
    for match in _FENCED_BLOCK.finditer(text):
        pieces.append(_BLANK_RUNS.sub("\n\n", text[pos:match.start()]))
        pieces.append(match.group(0))
        pos = match.end()
    pieces.append(_BLANK_RUNS.sub("\n\n", text[pos:]))
    return "".join(pieces).strip()


def _render_raw(page: PageContent, settings: Settings) -> str:
    return _to_markdown(page.html)


def _render_body(page: PageContent, settings: Settings) -> str:
    soup = BeautifulSoup(page.html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    container = soup.body or soup
    return _to_markdown(str(container))


def _render_readability(page: PageContent, settings: Settings) -> str:
    text: str | None = trafilatura.extract(
        page.html,
        url=page.url,
        output_format="markdown",
        include_tables=True,
        include_links=True,
        include_images=False,
    )
    if not text or len(text.strip()) < settings.readability_min_chars:
        return ""
    return text


_RENDERERS = {
    RenderMode.RAW: _render_raw,
    RenderMode.BODY: _render_body,
    RenderMode.READABILITY: _render_readability,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render_page(
    page: PageContent,
    mode: Union[RenderMode, str],
    settings: Optional[Settings] = None,
) -> str:
    """Convert one page to Markdown, without its separator line.

    A page that cannot be converted yields ``""``, the same as a page with
    no content; the failure is logged.
    """
    settings = settings or default_settings
    renderer = _RENDERERS[RenderMode(mode)]
    try:
        return _clean(renderer(page, settings))
    except Exception:
        logger.warning("Could not convert %s; it will be left out", page.url, exc_info=True)
        return ""


def format_fragment(fragment: RenderedFragment, mode: Union[RenderMode, str]) -> str:
    """Return the block written to the document for *fragment*.

    ``raw`` and ``body`` blocks start with a separator line naming the URL.
    Empty fragments produce nothing, except in ``raw`` mode which does no
    content filtering and always keeps the separator.
    """
    mode = RenderMode(mode)
    if not fragment.text and mode is not RenderMode.RAW:
        return ""
    if mode is RenderMode.READABILITY:
        return fragment.text
    return f"{fragment.url} {SEPARATOR} \n\n{fragment.text}"


def render_pages(
    pages: Iterable[PageContent],
    mode: Union[RenderMode, str],
    workers: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> Iterator[RenderedFragment]:
    """Render *pages* concurrently and yield the fragments in input order."""
    settings = settings or default_settings
    mode = RenderMode(mode)
    pages = list(pages)
    workers = max(1, workers or settings.render_workers)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="render") as pool:
        futures = [pool.submit(render_page, page, mode, settings) for page in pages]
        for index, (page, future) in enumerate(zip(pages, futures)):
            yield RenderedFragment(index=index, url=page.url, text=future.result())


def write_document(
    pages: Iterable[PageContent],
    path: Union[str, Path],
    mode: Union[RenderMode, str],
    keep_in_memory: bool = False,
    settings: Optional[Settings] = None,
) -> RenderResult:
    """Render *pages* and stream them to *path* in order.

    The file is created (or truncated) before any rendering starts.  Each
    block is written as soon as it and every block before it are ready.

    Args:
        pages: Pages in final document order.
        path: Output file.
        mode: Rendering mode.
        keep_in_memory: Also return the full document text, e.g. for the
            clipboard.

    Raises:
        OutputError: If the file cannot be created or written.
    """
    path = Path(path)
    mode = RenderMode(mode)
    logger.debug("Generating markdown → %s", path)

    try:
        handle = path.open("w", encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"cannot create {path}: {exc}") from exc

    result = RenderResult()
    chunks: List[str] = []
    with handle:
        for fragment in render_pages(pages, mode, settings=settings):
            block = format_fragment(fragment, mode)
            if not block:
                continue
            if result.rendered:
                block = FRAGMENT_GAP + block
            try:
                handle.write(block)
                handle.flush()
            except OSError as exc:
                raise OutputError(f"cannot write {path}: {exc}") from exc
            result.rendered += 1
            if keep_in_memory:
                chunks.append(block)

    if keep_in_memory:
        result.text = "".join(chunks)
    return result
