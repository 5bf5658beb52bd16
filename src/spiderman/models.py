"""
Data structures passed between the frontier, the workers and the reporting layer.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

NO_LINKS_MARKER = "None"


@dataclass(frozen=True, slots=True)
class Location:
    """A unit of crawl work: a URL, the page it was found on and the depth left."""
    url: str
    parent: Optional[str] = None
    depth: int = 0


def child_depth(depth: int) -> int:
    """Depth handed to links found on a page at `depth` (0 stays unbounded)."""
    return depth - 1 if depth > 0 else 0


def is_depth_exhausted(depth: int) -> bool:
    """True if a page at `depth` is the last level: fetched, but not expanded."""
    return depth == 1


@dataclass(slots=True)
class PageResult:
    """Result data for a single crawled page."""
    url: str
    parent: Optional[str] = None
    status_code: Optional[int] = None
    links: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    invalid_links: int = 0

    def display_links(self) -> List[str]:
        """Links as reported to the user, with a marker when there are none."""
        return list(self.links) if self.links else [NO_LINKS_MARKER]


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during crawl for summary output."""
    pages_crawled: int = 0
    pages_with_warnings: int = 0
    links_discovered: int = 0
    invalid_links: int = 0
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_error(self, status_code: Optional[int]) -> None:
        """Record an error by status code category."""
        if status_code is None:
            self.error_counts["connection_error"] += 1
        elif status_code >= 400:
            self.error_counts[str(status_code)] += 1

    def record_page(self, result: PageResult) -> None:
        """Fold one page result into the totals."""
        self.pages_crawled += 1
        self.links_discovered += len(result.links)
        self.invalid_links += result.invalid_links
        if result.warnings:
            self.pages_with_warnings += 1
        if result.status_code is None or result.status_code >= 400:
            self.record_error(result.status_code)
