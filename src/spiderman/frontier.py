"""
The crawl frontier: deduplication and completion detection.

Three queues connect the frontier to the rest of the crawl:

- intake:  locations discovered by the session (the root) and by workers
- output:  distinct locations ready to be fetched
- pending: signed deltas applied to the count of unresolved work

Two actor threads own the mutable state. The dedup actor is the only reader
and writer of the visited set; the counter actor is the only reader and writer
of the pending count. When the count reaches zero the counter actor closes
intake, the dedup actor then closes output and pending, and both actors exit.
Each of those close signals is sent exactly once.
"""
from __future__ import annotations

import logging
import threading
from queue import Queue
from typing import Optional, Sequence, Set

from spiderman.filters import canonical_url
from spiderman.models import Location

log = logging.getLogger(__name__)

_CLOSE = object()
_CANCEL = object()


class Frontier:
    """Queue + visited set + pending counter for one crawl session."""

    def __init__(self) -> None:
        self._intake: Queue = Queue()
        self._output: Queue = Queue()
        self._pending: Queue = Queue()
        self._cancelled = threading.Event()
        self._closed = threading.Event()

        # Owned by the dedup actor
        self._visited: Set[str] = set()
        # Owned by the counter actor
        self._count = 0
        self.zero_crossings = 0
        self.min_pending = 0
        # First exception raised inside an actor thread
        self.failure: Optional[Exception] = None

        self._dedup_thread = threading.Thread(target=self._dedup, name="frontier-dedup", daemon=True)
        self._counter_thread = threading.Thread(target=self._count_pending, name="frontier-pending", daemon=True)
        self._started = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._counter_thread.start()
        self._dedup_thread.start()

    def seed(self, location: Location) -> None:
        """Admit the root location; accounts for it with a +1 before it is queued."""
        self._pending.put(1)
        self._intake.put(location)

    def resolve(self, location: Location, children: Sequence[Location]) -> None:
        """
        Mark `location` as done and queue the children found on it.

        The net delta (children minus the finished location) goes out as a
        single message ahead of the children, so the counter can never read
        zero while any of them is still in flight.
        """
        delta = len(children) - 1
        log.debug("frontier resolve url=%s children=%d delta=%+d", location.url, len(children), delta)
        self._pending.put(delta)
        if self._cancelled.is_set():
            return
        for child in children:
            self._intake.put(child)

    def next(self) -> Optional[Location]:
        """Block until a location is ready to fetch. Returns None once the crawl is over."""
        if self._cancelled.is_set():
            return None
        item = self._output.get()
        if item is _CLOSE:
            # Hand the close on so every waiting worker sees it
            self._output.put(_CLOSE)
            return None
        if self._cancelled.is_set():
            return None
        return item

    def cancel(self) -> None:
        """Stop the crawl early: workers drain and exit, nothing new is admitted."""
        if self._cancelled.is_set():
            return
        log.info("frontier cancelled")
        self._cancelled.set()
        self._pending.put(_CANCEL)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the actor threads to exit. Returns True if both have."""
        for thread in (self._counter_thread, self._dedup_thread):
            if thread.is_alive():
                thread.join(timeout)
        return not (self._counter_thread.is_alive() or self._dedup_thread.is_alive())

    def wait(self, seconds: float) -> bool:
        """Sleep for `seconds`, waking early on cancel. Returns True if cancelled."""
        return self._cancelled.wait(seconds)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending(self) -> int:
        """Current pending count. Only meaningful once the frontier is closed."""
        return self._count

    # ------------------------------------------------------------------
    # Actors
    # ------------------------------------------------------------------

    def _close_intake(self) -> None:
        self._closed.set()
        self._intake.put(_CLOSE)

    def _fail(self, exc: Exception) -> None:
        log.exception("frontier actor failed, cancelling crawl")
        if self.failure is None:
            self.failure = exc
        self._cancelled.set()

    def _count_pending(self) -> None:
        try:
            while True:
                msg = self._pending.get()
                if msg is _CLOSE:
                    return
                if msg is _CANCEL:
                    if not self._closed.is_set():
                        self._close_intake()
                    continue
                if msg == 0:
                    continue
                self._count += msg
                self.min_pending = min(self.min_pending, self._count)
                if self._count == 0:
                    self.zero_crossings += 1
                    if not self._closed.is_set():
                        log.debug("frontier pending reached zero, closing intake")
                        self._close_intake()
        except Exception as e:
            self._fail(e)
            if not self._closed.is_set():
                self._close_intake()

    def _dedup(self) -> None:
        try:
            while True:
                location = self._intake.get()
                if location is _CLOSE:
                    break
                if self._cancelled.is_set():
                    self._pending.put(-1)
                    continue
                key = canonical_url(location.url)
                if key in self._visited:
                    log.debug("frontier skip-dup url=%s", location.url)
                    self._pending.put(-1)
                    continue
                self._visited.add(key)
                log.debug("frontier admit url=%s depth=%d", location.url, location.depth)
                self._output.put(location)
        except Exception as e:
            self._fail(e)
        finally:
            self._output.put(_CLOSE)
            self._pending.put(_CLOSE)
