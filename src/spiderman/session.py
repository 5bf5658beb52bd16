"""
Crawl session: runs a pool of fetch workers against one frontier.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from queue import Queue
from typing import Callable, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from spiderman.config import CrawlConfig, DEFAULT_PARALLEL, DEFAULT_TIMEOUT, DEFAULT_WAIT
from spiderman.frontier import Frontier
from spiderman.models import Location, PageResult
from spiderman.worker import FetchWorker

log = logging.getLogger(__name__)

# Put on the results queue by each worker as it exits
_WORKER_DONE = object()


def build_http_session(config: CrawlConfig) -> requests.Session:
    """Shared HTTP session for all workers, with optional bounded retries."""
    session = requests.Session()
    session.headers["User-Agent"] = config.user_agent
    if config.retries > 0:
        retry = Retry(
            total=config.retries,
            connect=config.retries,
            read=config.retries,
            status=config.retries,
            backoff_factor=0.5,
            status_forcelist=(500, 502, 503, 504),
            allowed_methods=frozenset(("GET", "HEAD")),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_maxsize=max(config.parallel, 10))
        session.mount("http://", adapter)
        session.mount("https://", adapter)
    return session


class CrawlSession:
    """
    One crawl of one domain.

    Page results are streamed to `on_result` in the calling thread as workers
    produce them, and returned as a list once the crawl is over. Each session
    owns its own frontier, so several sessions can run side by side.
    """

    def __init__(self, config: CrawlConfig, http: Optional[requests.Session] = None) -> None:
        self.config = config
        self.http = http
        self.frontier = Frontier()

    def cancel(self) -> None:
        self.frontier.cancel()

    def run(self, on_result: Optional[Callable[[PageResult], None]] = None) -> List[PageResult]:
        if self.frontier.started:
            raise RuntimeError("CrawlSession.run() can only be called once; create a new session")
        self.config.validate()
        config = self.config
        http = self.http if self.http is not None else build_http_session(config)

        results: Queue = Queue()
        collected: List[PageResult] = []

        def work(worker: FetchWorker) -> int:
            try:
                return worker.run()
            finally:
                results.put(_WORKER_DONE)

        log.info(
            "crawl start domain=%s depth=%d parallel=%d wait=%.3fs",
            config.domain, config.depth, config.parallel, config.wait,
        )
        self.frontier.start()
        self.frontier.seed(Location(url=config.domain, parent=None, depth=config.depth))

        try:
            with ThreadPoolExecutor(max_workers=config.parallel, thread_name_prefix="fetch") as executor:
                futures = [
                    executor.submit(work, FetchWorker(i, self.frontier, http, config, results.put))
                    for i in range(config.parallel)
                ]
                remaining = config.parallel
                try:
                    while remaining:
                        item = results.get()
                        if item is _WORKER_DONE:
                            remaining -= 1
                            continue
                        collected.append(item)
                        if on_result is not None:
                            on_result(item)
                except BaseException:
                    # Reporting failed or we were interrupted: let the workers drain
                    self.frontier.cancel()
                    raise
                pages = sum(f.result() for f in futures)
        finally:
            if self.http is None:
                http.close()

        self.frontier.join(timeout=5)
        if self.frontier.failure is not None:
            raise self.frontier.failure
        log.info("crawl finished domain=%s pages=%d", config.domain, pages)
        return collected


def crawl(
    domain: str,
    depth: int = 0,
    parallel: int = DEFAULT_PARALLEL,
    wait: float = DEFAULT_WAIT,
    timeout: float = DEFAULT_TIMEOUT,
    on_result: Optional[Callable[[PageResult], None]] = None,
    http: Optional[requests.Session] = None,
) -> List[PageResult]:
    """Crawl a domain and return one PageResult per distinct page fetched."""
    config = CrawlConfig(domain=domain, depth=depth, parallel=parallel, wait=wait, timeout=timeout)
    return CrawlSession(config, http=http).run(on_result=on_result)
