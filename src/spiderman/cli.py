"""
Command-line interface for spider-man.
"""
from __future__ import annotations

import argparse
import re
import sys
from typing import List, Optional
from urllib.parse import urlparse, urlunparse

from spiderman import __version__
from spiderman.config import (
    ConfigurationError,
    CrawlConfig,
    DEFAULT_DEPTH,
    DEFAULT_PARALLEL,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
)
from spiderman.log import configure_logging
from spiderman.report import print_result, print_summary, results_to_json, summarize
from spiderman.session import CrawlSession

INVALID_DOMAIN = "The domain name provided is not valid!"
ROOT_DOMAIN_ONLY = "Please only provide the root domain name!"
INVALID_DEPTH = "The depth flag provided is not valid!"
INVALID_PARALLEL = "The parallel flag provided is not valid!"

# Seconds per duration unit
DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
# "ms" is tried before "m"
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_NUMBER_ONLY = re.compile(r"(\d+(?:\.\d*)?|\.\d+)$")


def parse_duration(value: str) -> float:
    """
    Parse a duration such as "1s", "250ms" or "1m30s" into seconds.

    A bare "0" is accepted; any other number needs a unit.
    """
    text = value.strip()
    if text == "0":
        return 0.0
    if not text:
        raise argparse.ArgumentTypeError(f'invalid duration "{value}"')

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            if _NUMBER_ONLY.match(text, pos):
                raise argparse.ArgumentTypeError(f'missing unit in duration "{value}"')
            raise argparse.ArgumentTypeError(f'invalid duration "{value}"')
        total += float(match.group(1)) * DURATION_UNITS[match.group(2)]
        pos = match.end()
    return total


def parse_domain(raw: str) -> str:
    """Check the crawl root is an absolute http(s) URL without a path and return it."""
    try:
        parsed = urlparse(raw.strip())
        parsed.port
    except ValueError as e:
        raise ConfigurationError(INVALID_DOMAIN) from e

    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ConfigurationError(INVALID_DOMAIN)
    if parsed.path not in ("", "/") or parsed.params or parsed.query or parsed.fragment:
        raise ConfigurationError(ROOT_DOMAIN_ONLY)

    return urlunparse((parsed.scheme, parsed.netloc, "", "", "", ""))


def build_config(args: argparse.Namespace) -> CrawlConfig:
    """Turn parsed crawl arguments into a validated CrawlConfig."""
    domain = parse_domain(args.domain)
    if args.depth < 0:
        raise ConfigurationError(INVALID_DEPTH)
    if args.parallel < 1:
        raise ConfigurationError(INVALID_PARALLEL)

    config = CrawlConfig(
        domain=domain,
        depth=args.depth,
        parallel=args.parallel,
        wait=args.wait,
        timeout=args.timeout,
        user_agent=args.user_agent,
        retries=args.retries,
    )
    config.validate()
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spider-man",
        description="Your friendly neighbourhood web crawler.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    crawl = subparsers.add_parser(
        "crawl",
        help="Crawl a domain",
        description="Crawl a single domain and print the links discovered on every page.",
    )
    crawl.add_argument("domain", help="Root URL to crawl (e.g. https://example.com)")
    crawl.add_argument("-d", "--depth", type=int, default=DEFAULT_DEPTH, help="How deep to crawl (default: 0, unlimited)")
    crawl.add_argument("-p", "--parallel", type=int, default=DEFAULT_PARALLEL, help="How many parallel requests are made to the domain (default: 5)")
    crawl.add_argument("-w", "--wait", type=parse_duration, default="1s", help="How long each worker waits between requests, e.g. 500ms (default: 1s)")
    crawl.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Request timeout in seconds (default: 15)")
    crawl.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    crawl.add_argument("--retries", type=int, default=0, help="Retries for connection errors and 5xx responses (default: 0)")
    crawl.add_argument("--json", action="store_true", help="Print the results as JSON instead of tables")
    crawl.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    crawl.add_argument("--verbose", action="store_true", help="Show progress and summary")
    crawl.add_argument("--log-level", default=None, help="Log level (default: WARNING, INFO with --verbose)")
    crawl.add_argument("--log-json", action="store_true", help="Emit log lines as JSON")
    return parser


def run_crawl(args: argparse.Namespace) -> int:
    config = build_config(args)
    session = CrawlSession(config)

    if args.json:
        results = session.run()
        print(results_to_json(results, pretty=args.pretty))
    else:
        results = session.run(on_result=print_result)

    if args.verbose:
        print_summary(summarize(results))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    level = args.log_level or ("INFO" if args.verbose else "WARNING")
    configure_logging(level, json_output=args.log_json)

    try:
        return run_crawl(args)
    except ConfigurationError as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1
    except KeyboardInterrupt:
        sys.stderr.write("Interrupted.\n")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
