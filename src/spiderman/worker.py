"""
Fetch workers: pull locations from the frontier, fetch them and feed the
links they contain back in.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Tuple

import requests
from bs4 import BeautifulSoup, SoupStrainer
from bs4.builder import ParserRejectedMarkup

from spiderman.config import CrawlConfig
from spiderman.filters import filter_links
from spiderman.frontier import Frontier
from spiderman.models import Location, PageResult, child_depth, is_depth_exhausted

log = logging.getLogger(__name__)

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


def extract_links(html: str) -> List[str]:
    """Extract all href values from <a> tags, in document order."""
    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    return [a["href"] for a in soup.find_all("a", href=True) if a.get("href")]


def fetch_and_extract(
    http: requests.Session,
    location: Location,
    domain: str,
    timeout: float,
) -> Tuple[PageResult, List[Location]]:
    """
    Fetch one location and work out which of its links should be crawled next.

    Every failure is reported as a warning on the returned PageResult together
    with an empty list of children; nothing here raises for a bad page.
    """
    result = PageResult(url=location.url, parent=location.parent)
    on_page = f" on page {location.parent}" if location.parent else ""

    try:
        resp = http.get(location.url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        result.warnings.append(f"Warning: Failed to get url {location.url}: {e}{on_page}")
        return result, []

    result.status_code = resp.status_code
    if resp.status_code >= 400:
        result.warnings.append(
            f"Warning: {location.url} raised a status code {resp.status_code}{on_page}"
        )
        return result, []

    # Last level: reported, but not expanded
    if is_depth_exhausted(location.depth):
        return result, []

    content_type = (resp.headers.get("content-type") or "").lower()
    if content_type and "html" not in content_type:
        return result, []

    try:
        hrefs = extract_links(resp.text)
    except ParserRejectedMarkup as e:
        result.warnings.append(f"Warning: Failed to parse html body for url {location.url}: {e}")
        return result, []

    links, invalid = filter_links(hrefs, base=location.url, domain=domain)
    if invalid:
        quoted = " ".join(f"'{href}'" for href in invalid)
        result.warnings.append(f"Warning: These URLs are invalid and will be ignored: [{quoted}]")
        result.invalid_links = len(invalid)
    result.links = links

    depth = child_depth(location.depth)
    children = [Location(url=url, parent=location.url, depth=depth) for url in links]
    return result, children


class FetchWorker:
    """One worker loop. Workers only ever talk to the frontier, never to each other."""

    def __init__(
        self,
        worker_id: int,
        frontier: Frontier,
        http: requests.Session,
        config: CrawlConfig,
        report: Callable[[PageResult], None],
    ) -> None:
        self.worker_id = worker_id
        self.frontier = frontier
        self.http = http
        self.config = config
        self.report = report

    def run(self) -> int:
        """Process locations until the frontier closes. Returns the number of pages fetched."""
        processed = 0
        while True:
            location = self.frontier.next()
            if location is None:
                log.debug("worker=%d exit processed=%d", self.worker_id, processed)
                return processed

            children: List[Location] = []
            try:
                log.debug("worker=%d fetch url=%s depth=%d", self.worker_id, location.url, location.depth)
                result, children = fetch_and_extract(
                    self.http, location, self.config.domain, self.config.timeout
                )
                for warning in result.warnings:
                    log.info("worker=%d %s", self.worker_id, warning)
                self.report(result)
            except BaseException:
                self.frontier.cancel()
                raise
            finally:
                self.frontier.resolve(location, children)
            processed += 1

            # Be a good neighbour: per-worker pause after every request
            if self.config.wait > 0:
                self.frontier.wait(self.config.wait)
