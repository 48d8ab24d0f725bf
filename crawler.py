"""
Main Crawling Logic Module

This module contains the AssetCrawler class that drives the crawl of a single
site: it owns the visited set and the frontier, fetches pages on a bounded
worker pool, hands each page to the asset classifier and size prober, and
collects result and error rows.
"""

import logging
import threading
import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Deque, Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from concurrency import RequestPacer, ResultCollector, VisitedSet
from config import CrawlConfig
from discovery import AssetClassifier, extract_links, extract_title, parse_page
from models import (
    CrawlResults, ErrorResult, PageOutcome, PageResult,
    ProbeFailure, ProbeNotFound, ProbeSuccess
)
from prober import SizeProber
from reporter import CrawlObserver
from utils import canonical_page_url, in_scope, resolve_url


# Seconds the coordinator waits for a page before re-checking stop conditions
POLL_INTERVAL = 0.2


class AssetCrawler:
    """Crawls one site and records references to the asset domain"""

    def __init__(self, config: CrawlConfig, session: requests.Session = None,
                 prober: SizeProber = None, observer: CrawlObserver = None):
        self.config = config
        self.settings = config.settings
        self.target = config.crawl_target()
        self.logger = logging.getLogger(__name__)

        if session is None:
            session = requests.Session()
        session.headers.update({'User-Agent': self.settings.user_agent})
        self.session = session

        self.prober = prober or SizeProber(self.session, timeout=self.settings.probe_timeout)
        self.classifier = AssetClassifier(self.target.asset_domain)
        self.observer = observer or CrawlObserver()

        self.stop_event = threading.Event()
        self.visited = VisitedSet()
        self.collector = ResultCollector()
        self.pacer = RequestPacer(
            self.settings.delay_between_requests,
            shared=self.settings.global_rate_limit,
            stop_event=self.stop_event
        )

        self.logger.info(f"AssetCrawler initialized for {self.target.base_url} "
                         f"(asset domain: {self.target.asset_domain})")

    def stop(self) -> None:
        """Ask a running crawl to stop; safe to call from any thread"""
        self.stop_event.set()

    def crawl(self) -> CrawlResults:
        """
        Crawl every in-scope page reachable from the base URL.

        Pages are taken from a FIFO frontier by up to max_workers workers.
        Each URL is claimed in the visited set before it is enqueued, so no
        page is fetched twice. Stopping (stop(), Ctrl+C, time or page limit)
        abandons work in flight and returns what was collected so far.

        Returns:
            CrawlResults with result rows, error rows and crawl statistics
        """
        start_time = time.monotonic()
        start_url = canonical_page_url(self.target.base_url)
        self.visited.add_if_new(start_url)

        frontier: Deque[str] = deque([start_url])
        in_flight: Dict[Future, str] = {}
        pages_submitted = 0
        stopped = False
        max_workers = self.settings.max_workers
        max_pages = self.settings.max_pages

        self.logger.info(f"Starting crawl of {start_url} with {max_workers} worker(s)")
        self.observer.on_crawl_start(self.target.base_url)

        executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="page-crawler")
        try:
            while in_flight or frontier:
                if self.stop_event.is_set():
                    stopped = True
                    break

                if self._time_limit_reached(start_time):
                    self.logger.warning(f"Time limit of {self.settings.time_limit}s reached, stopping crawl")
                    self.stop()
                    stopped = True
                    break

                while frontier and len(in_flight) < max_workers:
                    if max_pages is not None and pages_submitted >= max_pages:
                        break
                    url = frontier.popleft()
                    self.observer.on_page_start(url)
                    in_flight[executor.submit(self.crawl_page, url)] = url
                    pages_submitted += 1

                if not in_flight:
                    # Page limit reached with pages still waiting in the frontier
                    self.logger.warning(f"Page limit of {max_pages} reached, "
                                        f"{len(frontier)} page(s) left uncrawled")
                    stopped = True
                    break

                done, _ = wait(in_flight, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
                for future in done:
                    url = in_flight.pop(future)
                    outcome = self._outcome_of(future, url)
                    if outcome is None or self.stop_event.is_set():
                        continue
                    self._record(outcome)
                    frontier.extend(outcome.links)

        except KeyboardInterrupt:
            self.logger.warning("Crawl interrupted by user, returning partial results")
            self.stop()
            stopped = True
        finally:
            if in_flight:
                self.logger.info(f"Abandoning {len(in_flight)} page(s) in flight")
            executor.shutdown(wait=False, cancel_futures=True)

        results = CrawlResults(
            target=self.target,
            results=self.collector.results,
            errors=self.collector.errors,
            pages_crawled=self.collector.pages,
            fetch_failures=self.collector.fetch_failures,
            duration=time.monotonic() - start_time,
            stopped=stopped
        )

        self.logger.info(f"Crawl finished in {results.duration:.1f}s: {results.pages_crawled} pages, "
                         f"{len(results.results)} items, {len(results.errors)} errors"
                         + (" (partial)" if stopped else ""))
        self.observer.on_crawl_complete(results)
        return results

    def crawl_page(self, url: str) -> Optional[PageOutcome]:
        """
        Visit a single, already claimed page.

        Args:
            url: Absolute page URL

        Returns:
            PageOutcome, or None if the crawl was stopped before the page finished
        """
        if not self.pacer.wait():
            return None

        outcome = PageOutcome(url=url)

        content = self.fetch_page(url, outcome)
        if content is None:
            return outcome

        if self.stop_event.is_set():
            return None

        soup = parse_page(content)
        outcome.title = extract_title(soup)

        for item_type, item_url in self.classifier.extract_candidates(soup):
            if self.stop_event.is_set():
                return None

            probe_url = resolve_url(url, item_url) or item_url
            probe = self.prober.probe(probe_url)

            file_size = probe.byte_size if isinstance(probe, ProbeSuccess) else None
            outcome.results.append(PageResult(
                page_url=url,
                page_title=outcome.title,
                item_type=item_type,
                item_url=item_url,
                file_size=file_size
            ))

            if isinstance(probe, (ProbeNotFound, ProbeFailure)):
                outcome.errors.append(ErrorResult(
                    page_url=url,
                    item_type=item_type,
                    item_url=item_url,
                    error_message=probe.message
                ))

        outcome.links = self.claim_links(url, soup)
        return outcome

    def fetch_page(self, url: str, outcome: PageOutcome) -> Optional[bytes]:
        """Fetch page content; on failure store the message on the outcome and return None"""
        try:
            response = self.session.get(url, timeout=self.settings.request_timeout)
            response.raise_for_status()
            return response.content
        except requests.RequestException as e:
            self.logger.warning(f"Error crawling {url}: {e}")
            outcome.fetch_error = str(e)
            return None

    def claim_links(self, page_url: str, soup: BeautifulSoup) -> List[str]:
        """
        Resolve the page's anchors and claim the in-scope ones not seen before.

        Returns:
            Newly claimed absolute URLs, in document order
        """
        new_links = []
        for href in extract_links(soup):
            absolute_url = resolve_url(page_url, href)
            if absolute_url is None:
                continue

            absolute_url = canonical_page_url(absolute_url)
            if not in_scope(absolute_url, self.target.base_url, strict=self.target.strict_scope):
                continue

            if self.visited.add_if_new(absolute_url):
                new_links.append(absolute_url)

        if new_links:
            self.logger.debug(f"Queued {len(new_links)} new links from {page_url}")
        return new_links

    def _outcome_of(self, future: Future, url: str) -> Optional[PageOutcome]:
        try:
            return future.result()
        except Exception as e:
            self.logger.error(f"Unexpected error processing {url}: {e}", exc_info=True)
            return PageOutcome(url=url, fetch_error=str(e))

    def _record(self, outcome: PageOutcome) -> None:
        total_items = self.collector.add_page(outcome)
        if outcome.fetch_error is not None:
            self.observer.on_fetch_error(outcome.url, outcome.fetch_error)
        for error in outcome.errors:
            self.observer.on_probe_error(error)
        self.observer.on_page_complete(outcome, total_items)

    def _time_limit_reached(self, start_time: float) -> bool:
        time_limit = self.settings.time_limit
        return time_limit is not None and time.monotonic() - start_time >= time_limit
