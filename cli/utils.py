"""Small helpers for the CLI: output file names and the clipboard."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlsplit

import pyperclip
from slugify import slugify

# Like slugify's default, but dots and underscores survive so host names
# stay readable.
_DISALLOWED = r"[^-a-z0-9._]+"


def gen_filename(url: str) -> Path:
    """Derive an output file name from the first input URL.

    ``https://example.com/docs/intro`` → ``example.com_docs_intro.md``.
    """
    parts = urlsplit(url)
    host = parts.hostname or "output"
    path = parts.path.strip("/")
    name = f"{host}_{path}" if path else host
    slug = slugify(name, separator="_", regex_pattern=_DISALLOWED) or "output"
    return Path(f"{slug}.md")


def copy_to_clipboard(text: str) -> bool:
    """Copy *text* to the system clipboard; return ``False`` if unavailable."""
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException:
        return False
    return True
