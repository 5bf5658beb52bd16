"""
Link filtering: decides which hrefs found on a page become crawl candidates.

Everything in here is pure. Hrefs are processed in document order so that the
reported child links are reproducible between runs.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

# Hrefs starting with any of these are never resolved or crawled
DISALLOWED_PREFIXES: Tuple[str, ...] = (
    "mailto:",
    "spiderman://",
    "tel:",
    "?",
    "#",
    "ftp://",
    "file://",
    "telnet://",
    "gopher://",
    "javascript:",
)

ALLOWED_SCHEMES = frozenset(("http", "https"))
DEFAULT_PORTS = {"http": 80, "https": 443}


def contains_disallowed_prefix(href: str) -> bool:
    """Check whether an href uses a scheme or marker we never follow."""
    return href.strip().lower().startswith(DISALLOWED_PREFIXES)


def resolve(href: str, base: str) -> str:
    """
    Resolve an href against the page it was found on.

    The fragment is dropped. Raises ValueError if the result is not a
    well-formed absolute http(s) URL.
    """
    joined, _ = urldefrag(urljoin(base, href.strip()))
    parsed = urlparse(joined)
    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"unsupported scheme {parsed.scheme!r}")
    if not parsed.hostname:
        raise ValueError("missing host")
    # Accessing .port validates it
    parsed.port
    return joined


def _origin(url: str) -> Tuple[str, str, Optional[int]]:
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    return scheme, (parsed.hostname or "").lower(), parsed.port or DEFAULT_PORTS.get(scheme)


def is_external(url: str, domain: str) -> bool:
    """Check if a resolved URL lives on a different scheme/host than the crawl root."""
    return _origin(url) != _origin(domain)


def is_eligible(href: str, domain: str, base: Optional[str] = None) -> bool:
    """True if the href would be accepted as a child link of `base`."""
    if contains_disallowed_prefix(href):
        return False
    try:
        url = resolve(href, base or domain)
    except ValueError:
        return False
    return not is_external(url, domain)


def filter_links(hrefs: Iterable[str], base: str, domain: str) -> Tuple[List[str], List[str]]:
    """
    Split the hrefs of one page into accepted child URLs and invalid hrefs.

    Disallowed-scheme and external links are dropped silently; only hrefs that
    fail to resolve are returned as invalid so they can be warned about.
    """
    accepted: List[str] = []
    invalid: List[str] = []
    for href in hrefs:
        if contains_disallowed_prefix(href):
            continue
        try:
            url = resolve(href, base)
        except ValueError:
            invalid.append(href)
            continue
        if is_external(url, domain):
            continue
        accepted.append(url)
    return accepted, invalid


def canonical_url(url: str) -> str:
    """
    Normalize URL for deduplication.

    - Lower-cases scheme and host
    - Removes default ports (:80, :443)
    - Empty path becomes "/"
    - Drops fragments, keeps querystrings (they matter for uniqueness)
    """
    parsed = urlparse(urldefrag(url)[0])
    scheme = parsed.scheme.lower()
    hostname = (parsed.hostname or "").lower()
    port = parsed.port
    if ":" in hostname:
        hostname = f"[{hostname}]"

    if port and port != DEFAULT_PORTS.get(scheme):
        netloc = f"{hostname}:{port}"
    else:
        netloc = hostname

    return urlunparse((scheme, netloc, parsed.path or "/", parsed.params, parsed.query, ""))
