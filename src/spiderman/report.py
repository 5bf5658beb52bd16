"""
Rendering of crawl results for the terminal.
"""
from __future__ import annotations

import json
import sys
from dataclasses import asdict
from typing import Iterable, List, Sequence, TextIO

from spiderman.models import CrawlStats, PageResult

HEADERS = ("PAGE", "DISCOVERED URLS")


def _border(widths: Sequence[int]) -> str:
    return "+" + "+".join("-" * (w + 2) for w in widths) + "+"


def _row(cells: Sequence[str], widths: Sequence[int], center: bool = False) -> str:
    padded = [c.center(w) if center else c.ljust(w) for c, w in zip(cells, widths)]
    return "| " + " | ".join(padded) + " |"


def render_table(result: PageResult) -> str:
    """
    Render one page and its discovered links as an ASCII table.

    Each link gets its own line in the right-hand column; a page without
    links shows the "None" marker.
    """
    links = result.display_links()
    widths = [
        max(len(HEADERS[0]), len(result.url)),
        max(len(HEADERS[1]), *(len(link) for link in links)),
    ]
    lines = [
        _border(widths),
        _row(HEADERS, widths, center=True),
        _border(widths),
    ]
    for i, link in enumerate(links):
        lines.append(_row((result.url if i == 0 else "", link), widths))
    lines.append(_border(widths))
    return "\n".join(lines) + "\n"


def print_result(result: PageResult, out: TextIO = sys.stdout) -> None:
    """Print the table for one page followed by its warnings."""
    out.write(render_table(result) + "\n")
    if result.warnings:
        out.write("\n".join(result.warnings) + "\n\n")
    out.flush()


def results_to_json(results: Iterable[PageResult], pretty: bool = False) -> str:
    payload = [asdict(r) for r in results]
    return json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)


def summarize(results: Iterable[PageResult]) -> CrawlStats:
    stats = CrawlStats()
    for result in results:
        stats.record_page(result)
    return stats


def print_summary(stats: CrawlStats, out: TextIO = sys.stderr) -> None:
    """Print crawl summary to stderr."""
    out.write("=" * 50 + "\n")
    out.write("CRAWL SUMMARY\n")
    out.write("=" * 50 + "\n\n")

    out.write(f"Total pages crawled:    {stats.pages_crawled}\n")
    out.write(f"Links discovered:       {stats.links_discovered}\n")
    out.write(f"Invalid links ignored:  {stats.invalid_links}\n")
    out.write(f"Pages with warnings:    {stats.pages_with_warnings}\n\n")

    if stats.error_counts:
        out.write("Errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            label = "Connection errors" if error_type == "connection_error" else f"HTTP {error_type}"
            out.write(f"  {label}: {count}\n")
    else:
        out.write("No errors encountered.\n")

    out.write("\n")
