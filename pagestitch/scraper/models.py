"""Data models for the fetch → sequence → render pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlsplit, urlunsplit


_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str) -> str:
    """Return the canonical string form of *url*.

    The fragment is dropped, the scheme and host are lower-cased, a default
    port (``:80`` for http, ``:443`` for https) is removed and an empty path
    on a host URL becomes ``/``.  User info is kept as written.  Every stage
    compares URLs through this function, so a URL is the same key whether it
    came from the command line, a file, or link discovery.

    Raises:
        ValueError: If the port is not a valid number.
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    netloc = parts.netloc
    if parts.hostname:
        host = parts.hostname
        if ":" in host:
            host = f"[{host}]"
        port = parts.port
        if port is not None and port != _DEFAULT_PORTS.get(scheme):
            host = f"{host}:{port}"
        userinfo, at, _ = netloc.rpartition("@")
        netloc = f"{userinfo}{at}{host}"
    path = parts.path
    if not path and netloc:
        path = "/"
    return urlunsplit((scheme, netloc, path, parts.query, ""))


class RenderMode(str, Enum):
    """How a page's HTML is turned into Markdown."""

    RAW = "raw"
    BODY = "body"
    READABILITY = "readability"


@dataclass(frozen=True)
class PageContent:
    """The HTML of one successfully fetched page."""

    url: str
    html: str


@dataclass(frozen=True)
class FetchFailure:
    """A page that could not be fetched, with a short human-readable reason."""

    url: str
    reason: str

    @property
    def rate_limited(self) -> bool:
        return "429" in self.reason or "Too Many Requests" in self.reason


@dataclass(frozen=True)
class RenderedFragment:
    """The Markdown for one page, tagged with its position in the document."""

    index: int
    url: str
    text: str


@dataclass
class FetchBatch:
    """Everything a batch fetch produced, in completion order."""

    pages: List[PageContent] = field(default_factory=list)
    failures: List[FetchFailure] = field(default_factory=list)
    faults: int = 0


@dataclass
class StitchReport:
    """Summary of a single run."""

    targets: List[str] = field(default_factory=list)
    pages_processed: int = 0
    pages_rendered: int = 0
    failures: List[FetchFailure] = field(default_factory=list)
    faults: int = 0
    output_path: Optional[Path] = None
    text: Optional[str] = None


@dataclass
class RenderResult:
    """What :func:`~pagestitch.scraper.renderer.write_document` produced."""

    rendered: int = 0
    text: Optional[str] = None
