"""pagestitch: fetch web pages and stitch them into one Markdown document."""

__version__ = "0.1.0"
