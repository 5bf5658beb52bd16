"""
Bounded-depth, single-domain web crawler.
Fetches every same-domain page reachable from a root URL once and reports the links found on each.
"""
__version__ = "1.0.0"

from spiderman.config import ConfigurationError, CrawlConfig
from spiderman.models import CrawlStats, Location, PageResult
from spiderman.session import CrawlSession, crawl

__all__ = [
    "crawl",
    "ConfigurationError",
    "CrawlConfig",
    "CrawlSession",
    "CrawlStats",
    "Location",
    "PageResult",
]
