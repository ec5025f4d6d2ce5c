"""pagestitch CLI: scrape URLs into a single Markdown file.

Usage:
    pagestitch https://docs.example.com/guide/         # page + its section
    pagestitch --single https://example.com/post       # just that page
    pagestitch https://a.com/x https://b.com/y          # several pages
    pagestitch --urls urls.txt                          # one URL per line
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from pagestitch.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging
from typing import List, Optional

import typer

from pagestitch.config import settings
from pagestitch.errors import InputError, PagestitchError
from pagestitch.pipeline import (
    parse_targets,
    rate_limit_hint,
    read_url_file,
    resolve_targets,
    stitch,
)
from pagestitch.scraper.fetcher import build_client
from pagestitch.scraper.models import RenderMode

from cli.utils import copy_to_clipboard, gen_filename

app = typer.Typer(
    name="pagestitch",
    help="Scrape URLs and save their content as a single Markdown file.",
    add_completion=False,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO; keep it out of the way.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _confirm_links(links: List[str], assume_yes: bool) -> bool:
    """Show the discovered links and ask whether to go on."""
    typer.echo(f"\n🔍 Found {len(links)} internal links to process:")
    for i, url in enumerate(links, start=1):
        typer.echo(f"   {i:<3} - {url}")
    typer.echo("")
    if assume_yes:
        return True
    return typer.confirm("Proceed with scraping these links?", default=True)


@app.command()
def main(
    urls: Optional[List[str]] = typer.Argument(
        None,
        metavar="URL",
        help=(
            "URLs to process. With a single URL, the internal links of its "
            "section are scraped too (unless --single)."
        ),
    ),
    urls_file: Optional[Path] = typer.Option(
        None, "--urls", "-u", help="Read URLs from a file (one per line)."
    ),
    single: bool = typer.Option(
        False, "--single", "-s", help="Process only the given URL, without its internal links."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file (default: derived from the first URL)."
    ),
    parallel: int = typer.Option(
        settings.parallel_requests, "--parallel", "-p", min=1,
        help="Number of concurrent download requests.",
    ),
    mode: RenderMode = typer.Option(
        RenderMode(settings.default_mode), "--mode", "-m",
        help="raw: whole page | body: <body> without scripts | readability: main content only.",
    ),
    clipboard: bool = typer.Option(
        False, "--clipboard", "-c", help="Also copy the Markdown to the clipboard."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed processing steps."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask before scraping discovered links."),
) -> None:
    """Scrape URLs and save their content as a single Markdown file."""
    _configure_logging(verbose)

    if urls and urls_file is not None:
        typer.echo("❌ Give URLs either as arguments or with --urls, not both.", err=True)
        raise typer.Exit(code=2)
    if not urls and urls_file is None:
        typer.echo("❌ No URLs given. Pass URLs as arguments or use --urls.", err=True)
        raise typer.Exit(code=2)

    try:
        if urls_file is not None:
            if verbose:
                typer.echo(f"📂 Reading URLs from file: {urls_file}")
            targets = read_url_file(urls_file)
        else:
            targets = parse_targets(urls or [])
        if not targets:
            raise InputError("No valid URLs were provided.")

        output_path = output or gen_filename(targets[0])
        discover = urls_file is None and len(targets) == 1 and not single

        with build_client(settings) as client:
            targets = resolve_targets(
                client,
                targets,
                discover,
                confirm=lambda links: _confirm_links(links, yes),
            )
            if targets is None:
                typer.echo("🚫 Operation aborted by user.")
                return
            if discover:
                typer.echo("🚀 Proceeding with scraping...\n")

            with typer.progressbar(length=len(targets), label="Fetching") as bar:
                report = stitch(
                    client,
                    targets,
                    output_path,
                    mode=mode,
                    parallel=parallel,
                    keep_in_memory=clipboard,
                    on_result=lambda url, outcome: bar.update(1),
                )
    except PagestitchError as exc:
        typer.echo(f"❌ {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"✅ {report.pages_processed} pages successfully processed.")
    if verbose and report.pages_rendered != report.pages_processed:
        typer.echo(f"   ({report.pages_rendered} with content)")
    typer.echo(f"📄 {report.output_path.resolve()}")

    if report.failures:
        typer.echo(f"\n⚠️  {len(report.failures)} pages failed to fetch:")
        for failure in report.failures:
            typer.echo(f"   - {failure.url}: {failure.reason}")
        hint = rate_limit_hint(report.failures)
        if hint:
            typer.echo(f"\n💡 {hint}")

    if report.faults:
        typer.echo(f"\n⚠️  {report.faults} fetch task(s) crashed unexpectedly; see the log above.")

    if clipboard and report.text is not None:
        if copy_to_clipboard(report.text):
            typer.echo("📋 Content copied to clipboard.")
        else:
            typer.echo("⚠️  Could not access the clipboard.")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
