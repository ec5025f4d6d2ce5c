"""Tests for the rendering pipeline.

``trafilatura.extract`` is patched in the readability tests so that the
length threshold can be exercised deterministically.
"""

from __future__ import annotations

import threading
import time
from unittest.mock import patch

import pytest

from pagestitch.config import Settings
from pagestitch.errors import OutputError
from pagestitch.scraper.models import PageContent, RenderedFragment, RenderMode
from pagestitch.scraper.renderer import (
    FRAGMENT_GAP,
    SEPARATOR,
    format_fragment,
    render_page,
    render_pages,
    write_document,
)

_PAGE_HTML = """\
<!DOCTYPE html>
<html>
<head><title>Head Title</title><style>.x{color:red}</style></head>
<body>
  <h1>Getting started</h1>
  <p>Install the package and run it.</p>
  <script>alert('tracking');</script>
  <noscript>Enable JavaScript</noscript>
</body>
</html>
"""

_EMPTY_BODY_HTML = "<html><head><title>Nothing</title></head><body><script>var a = 1;</script></body></html>"

_LONG_TEXT = "Battery chemistry matters. " * 20


def _page(url: str, html: str = _PAGE_HTML) -> PageContent:
    return PageContent(url=url, html=html)


# ---------------------------------------------------------------------------
# render_page
# ---------------------------------------------------------------------------

class TestRenderPage:
    def test_body_mode_converts_body_to_markdown(self) -> None:
        text = render_page(_page("https://ex.com/a"), RenderMode.BODY)
        assert "# Getting started" in text
        assert "Install the package and run it." in text

    def test_body_mode_strips_scripts_and_head(self) -> None:
        text = render_page(_page("https://ex.com/a"), "body")
        assert "alert" not in text
        assert "Head Title" not in text
        assert "Enable JavaScript" not in text

    def test_body_mode_without_body_uses_whole_document(self) -> None:
        text = render_page(_page("https://ex.com/a", "<p>Loose fragment.</p>"), "body")
        assert text == "Loose fragment."

    def test_body_mode_empty_body_is_empty(self) -> None:
        assert render_page(_page("https://ex.com/a", _EMPTY_BODY_HTML), "body") == ""

    def test_raw_mode_keeps_everything_outside_scripts(self) -> None:
        text = render_page(_page("https://ex.com/a"), RenderMode.RAW)
        assert "Head Title" in text
        assert "Getting started" in text

    def test_output_is_trimmed_and_blank_runs_collapsed(self) -> None:
        html = "<body><p>one</p><br><br><br><br><p>two</p></body>"
        text = render_page(_page("https://ex.com/a", html), "body")
        assert not text.startswith("\n") and not text.endswith("\n")
        assert "\n\n\n" not in text

    def test_blank_runs_inside_fenced_code_are_kept(self) -> None:
        markdown = "Intro\n\n\n\n```\nline one\n\n\n\nline two\n```\n\n\n\nAfter"
        with patch("pagestitch.scraper.renderer.markdownify", return_value=markdown):
            text = render_page(_page("https://ex.com/a"), "body")

        assert text == "Intro\n\n```\nline one\n\n\n\nline two\n```\n\nAfter"

    def test_readability_mode_returns_extracted_text(self) -> None:
        with patch("pagestitch.scraper.renderer.trafilatura.extract", return_value=_LONG_TEXT) as mock_extract:
            text = render_page(_page("https://ex.com/a"), RenderMode.READABILITY)

        assert text == _LONG_TEXT.strip()
        assert mock_extract.call_args.kwargs["output_format"] == "markdown"

    def test_readability_mode_nothing_extracted(self) -> None:
        with patch("pagestitch.scraper.renderer.trafilatura.extract", return_value=None):
            assert render_page(_page("https://ex.com/a"), "readability") == ""

    def test_readability_mode_below_minimum_length(self) -> None:
        settings = Settings(readability_min_chars=100)
        with patch("pagestitch.scraper.renderer.trafilatura.extract", return_value="Too short."):
            assert render_page(_page("https://ex.com/a"), "readability", settings) == ""

    def test_conversion_error_degrades_to_empty(self) -> None:
        with patch("pagestitch.scraper.renderer.markdownify", side_effect=RecursionError("deep")):
            assert render_page(_page("https://ex.com/a"), "body") == ""

    def test_unknown_mode_rejected(self) -> None:
        with pytest.raises(ValueError):
            render_page(_page("https://ex.com/a"), "pdf")


# ---------------------------------------------------------------------------
# format_fragment
# ---------------------------------------------------------------------------

class TestFormatFragment:
    def test_body_fragment_has_url_separator(self) -> None:
        frag = RenderedFragment(index=0, url="https://ex.com/a", text="Hello")
        assert format_fragment(frag, "body") == f"https://ex.com/a {SEPARATOR} \n\nHello"

    def test_readability_fragment_has_no_separator(self) -> None:
        frag = RenderedFragment(index=0, url="https://ex.com/a", text="Hello")
        assert format_fragment(frag, "readability") == "Hello"

    def test_empty_fragment_contributes_nothing_when_filtering(self) -> None:
        frag = RenderedFragment(index=0, url="https://ex.com/a", text="")
        assert format_fragment(frag, "body") == ""
        assert format_fragment(frag, "readability") == ""

    def test_empty_raw_fragment_keeps_separator(self) -> None:
        frag = RenderedFragment(index=0, url="https://ex.com/a", text="")
        assert format_fragment(frag, "raw").startswith("https://ex.com/a =")


# ---------------------------------------------------------------------------
# render_pages
# ---------------------------------------------------------------------------

class TestRenderPages:
    def test_yields_in_input_order_despite_completion_order(self) -> None:
        pages = [_page(f"https://ex.com/{i}", html=str(i)) for i in range(5)]

        def slow_first(page, mode, settings):
            # Earlier pages take longer, so they finish last.
            time.sleep(0.05 * (5 - int(page.html)))
            return f"text {page.html}"

        with patch("pagestitch.scraper.renderer.render_page", side_effect=slow_first):
            fragments = list(render_pages(pages, "body", workers=5))

        assert [f.index for f in fragments] == [0, 1, 2, 3, 4]
        assert [f.url for f in fragments] == [p.url for p in pages]
        assert [f.text for f in fragments] == [f"text {i}" for i in range(5)]

    def test_no_pages(self) -> None:
        assert list(render_pages([], "body")) == []


# ---------------------------------------------------------------------------
# write_document
# ---------------------------------------------------------------------------

class TestWriteDocument:
    def test_writes_fragments_in_order_skipping_empty_pages(self, tmp_path) -> None:
        first = _page("https://ex.com/1", "<body><p>First page text.</p></body>")
        empty = _page("https://ex.com/2", _EMPTY_BODY_HTML)
        third = _page("https://ex.com/3", "<body><p>Third page text.</p></body>")
        out = tmp_path / "out.md"

        result = write_document([first, empty, third], out, RenderMode.BODY)

        expected = (
            f"https://ex.com/1 {SEPARATOR} \n\nFirst page text."
            + FRAGMENT_GAP
            + f"https://ex.com/3 {SEPARATOR} \n\nThird page text."
        )
        assert out.read_text(encoding="utf-8") == expected
        assert "https://ex.com/2" not in expected
        assert result.rendered == 2
        assert result.text is None

    def test_ready_fragment_is_written_before_later_pages_finish(self, tmp_path) -> None:
        out = tmp_path / "out.md"
        pages = [_page("https://ex.com/0", "zero"), _page("https://ex.com/1", "one")]
        release = threading.Event()

        def render(page, mode, settings):
            if page.html == "one":
                release.wait(timeout=5)
            return f"Page {page.html}"

        with patch("pagestitch.scraper.renderer.render_page", side_effect=render):
            writer = threading.Thread(target=write_document, args=(pages, out, "body"))
            writer.start()
            try:
                deadline = time.monotonic() + 5
                partial = ""
                while "Page zero" not in partial and time.monotonic() < deadline:
                    time.sleep(0.01)
                    if out.exists():
                        partial = out.read_text(encoding="utf-8")
            finally:
                release.set()
                writer.join(timeout=5)

        assert "Page zero" in partial
        assert "Page one" not in partial
        assert out.read_text(encoding="utf-8").endswith("Page one")

    def test_keep_in_memory_returns_file_contents(self, tmp_path) -> None:
        pages = [_page("https://ex.com/1"), _page("https://ex.com/2")]
        out = tmp_path / "out.md"

        result = write_document(pages, out, "body", keep_in_memory=True)

        assert result.text == out.read_text(encoding="utf-8")
        assert result.text.index("https://ex.com/1") < result.text.index("https://ex.com/2")

    def test_truncates_existing_file(self, tmp_path) -> None:
        out = tmp_path / "out.md"
        out.write_text("stale content from a previous run", encoding="utf-8")

        write_document([_page("https://ex.com/1")], out, "body")

        assert "stale content" not in out.read_text(encoding="utf-8")

    def test_no_pages_creates_empty_file(self, tmp_path) -> None:
        out = tmp_path / "out.md"
        result = write_document([], out, "body")
        assert out.read_text(encoding="utf-8") == ""
        assert result.rendered == 0

    def test_unwritable_path_raises_output_error(self, tmp_path) -> None:
        with pytest.raises(OutputError):
            write_document([_page("https://ex.com/1")], tmp_path / "missing" / "out.md", "body")
