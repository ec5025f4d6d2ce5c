"""Fatal error types.

Per-page problems are never raised; they travel as
:class:`~pagestitch.scraper.models.FetchFailure` values.  Anything defined
here aborts the whole run.
"""

from __future__ import annotations


class PagestitchError(Exception):
    """Base class for errors that abort a run."""


class InputError(PagestitchError):
    """The URL set is empty or contains an unusable URL."""


class FetchError(PagestitchError):
    """The seed page for link discovery could not be retrieved."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class OutputError(PagestitchError):
    """The output file could not be created or written."""
