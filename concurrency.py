"""
Shared Crawl State Module

This module provides the thread-safe pieces shared by crawl workers: the
visited-URL set, the append-only result collector and request pacing.
"""

import logging
import threading
import time
from typing import Iterable, List, Optional, Set, Tuple

from models import ErrorResult, PageOutcome, PageResult


class VisitedSet:
    """Set of URLs already crawled or enqueued; only ever grows"""

    def __init__(self, urls: Iterable[str] = ()):
        self._urls: Set[str] = set(urls)
        self._lock = threading.Lock()

    def add_if_new(self, url: str) -> bool:
        """
        Atomically claim a URL.

        Returns:
            True if the URL was not yet present and has now been added
        """
        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)


class ResultCollector:
    """Append-only, ordered collections of result and error rows"""

    def __init__(self):
        self._results: List[PageResult] = []
        self._errors: List[ErrorResult] = []
        self._fetch_failures: List[Tuple[str, str]] = []
        self._pages = 0
        self._lock = threading.Lock()

    def add_page(self, outcome: PageOutcome) -> int:
        """
        Record everything one page visit produced, keeping its rows contiguous.

        Returns:
            Running total of result rows
        """
        with self._lock:
            self._pages += 1
            if outcome.fetch_error is not None:
                self._fetch_failures.append((outcome.url, outcome.fetch_error))
            self._results.extend(outcome.results)
            self._errors.extend(outcome.errors)
            return len(self._results)

    @property
    def results(self) -> Tuple[PageResult, ...]:
        with self._lock:
            return tuple(self._results)

    @property
    def errors(self) -> Tuple[ErrorResult, ...]:
        with self._lock:
            return tuple(self._errors)

    @property
    def fetch_failures(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self._fetch_failures)

    @property
    def pages(self) -> int:
        with self._lock:
            return self._pages


class RequestPacer:
    """Fixed delay before each page request, per worker or shared by all workers"""

    def __init__(self, delay: float, shared: bool = False, stop_event: Optional[threading.Event] = None):
        """
        Initialize the pacer.

        Args:
            delay: Seconds to wait before each request
            shared: If True, enforce the delay between any two requests across
                all workers; otherwise every worker simply waits before its own
            stop_event: Set to cut a pending wait short
        """
        self.delay = delay
        self.shared = shared
        self.stop_event = stop_event or threading.Event()
        self._lock = threading.Lock()
        self._last_request_time: Optional[float] = None
        self.logger = logging.getLogger(__name__)

    def wait(self) -> bool:
        """
        Block until the next request may go out.

        Returns:
            False if the crawl was stopped while waiting
        """
        if self.delay <= 0:
            return not self.stop_event.is_set()

        if not self.shared:
            return not self.stop_event.wait(self.delay)

        with self._lock:
            if self._last_request_time is not None:
                elapsed = time.monotonic() - self._last_request_time
                if elapsed < self.delay:
                    sleep_time = self.delay - elapsed
                    self.logger.debug(f"Rate limiting: sleeping {sleep_time:.2f}s")
                    if self.stop_event.wait(sleep_time):
                        return False
            elif self.stop_event.is_set():
                return False
            self._last_request_time = time.monotonic()
        return True
