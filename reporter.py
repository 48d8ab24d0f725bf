"""
Progress Reporting and Export Module

This module handles real-time progress reporting through an observer the
crawler calls, the final run summary, and exporting result and error rows
to CSV files.
"""

import csv
import os
from datetime import datetime
from typing import Dict, Optional, Tuple

from tqdm import tqdm

from models import CrawlResults, ErrorResult, PageOutcome
from utils import clean_for_filename, extract_host, format_duration, format_file_size, get_file_timestamp


RESULT_HEADER = ['PageUrl', 'PageTitle', 'ItemType', 'ItemUrl', 'FileSize']
ERROR_HEADER = ['PageUrl', 'ItemType', 'ItemUrl', 'ErrorMessage']


class CrawlObserver:
    """Receives crawl events; every hook is a no-op by default"""

    def on_crawl_start(self, base_url: str) -> None:
        pass

    def on_page_start(self, url: str) -> None:
        pass

    def on_page_complete(self, outcome: PageOutcome, total_items: int) -> None:
        pass

    def on_probe_error(self, error: ErrorResult) -> None:
        pass

    def on_fetch_error(self, url: str, message: str) -> None:
        pass

    def on_crawl_complete(self, results: CrawlResults) -> None:
        pass


class ProgressReporter(CrawlObserver):
    """Prints per-page and per-error notices and keeps a page counter"""

    def __init__(self, show_progress_bar: bool = True):
        self.show_progress_bar = show_progress_bar
        self.stats: Dict[str, int] = {
            'pages_crawled': 0,
            'items_found': 0,
            'probe_errors': 0,
            'fetch_errors': 0
        }
        self.progress_bar: Optional[tqdm] = None

    def _write(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        status_msg = f"[{timestamp}] {message}"
        if self.progress_bar is not None:
            self.progress_bar.write(status_msg)
        else:
            print(status_msg)

    def on_crawl_start(self, base_url: str) -> None:
        self._write(f"The final URL being crawled is: {base_url}")
        if self.show_progress_bar:
            self.progress_bar = tqdm(desc="Pages crawled", unit="pages", leave=True)

    def on_page_start(self, url: str) -> None:
        self._write(f"Crawling: {url}")

    def on_page_complete(self, outcome: PageOutcome, total_items: int) -> None:
        self.stats['pages_crawled'] += 1
        self.stats['items_found'] = total_items
        if outcome.fetched:
            self._write(f"Found {len(outcome.results)} items on {outcome.url}. "
                        f"Total items found: {total_items}")
        if self.progress_bar is not None:
            self.progress_bar.update(1)

    def on_probe_error(self, error: ErrorResult) -> None:
        self.stats['probe_errors'] += 1
        self._write(f"Error fetching {error.item_type.value} {error.item_url}: {error.error_message}")

    def on_fetch_error(self, url: str, message: str) -> None:
        self.stats['fetch_errors'] += 1
        self._write(f"Error crawling {url}: {message}")

    def on_crawl_complete(self, results: CrawlResults) -> None:
        if self.progress_bar is not None:
            self.progress_bar.close()
            self.progress_bar = None


def generate_report(results: CrawlResults) -> str:
    """Generate the final run summary"""
    report_lines = []
    report_lines.append("=" * 60)
    report_lines.append("ASSET CRAWLER - FINAL REPORT")
    report_lines.append("=" * 60)
    report_lines.append(f"Base URL: {results.target.base_url}")
    report_lines.append(f"Asset domain: {results.target.asset_domain}")
    report_lines.append(f"Duration: {format_duration(results.duration)}")
    if results.stopped:
        report_lines.append("Crawl stopped early - results are partial")
    report_lines.append("")
    report_lines.append(f"Pages crawled: {results.pages_crawled}")
    report_lines.append(f"Asset references found: {len(results.results)}")
    report_lines.append(f"Assets with known size: {results.sized_items}")
    report_lines.append(f"Total known size: {format_file_size(results.total_size)}")
    report_lines.append(f"Probe errors: {len(results.errors)}")
    report_lines.append(f"Pages that could not be fetched: {len(results.fetch_failures)}")

    for url, message in results.fetch_failures[:5]:
        report_lines.append(f"  - {url}: {message}")
    if len(results.fetch_failures) > 5:
        report_lines.append(f"  ... and {len(results.fetch_failures) - 5} more")

    report_lines.append("=" * 60)
    return "\n".join(report_lines)


def build_output_paths(base_url: str, asset_domain: str, output_dir: str = ".",
                       timestamp: Optional[str] = None) -> Tuple[str, str]:
    """
    Build the result and error file paths for a crawl

    Returns:
        (results path, errors path) named {host}_{asset}_{timestamp}_results.csv
        and {host}_{asset}_{timestamp}_errors.csv
    """
    host = clean_for_filename(extract_host(base_url) or base_url)
    asset = clean_for_filename(asset_domain)
    timestamp = timestamp or get_file_timestamp()
    prefix = f"{host}_{asset}_{timestamp}"
    return (
        os.path.join(output_dir, f"{prefix}_results.csv"),
        os.path.join(output_dir, f"{prefix}_errors.csv")
    )


def export_results(results: CrawlResults, output_dir: str = ".",
                   timestamp: Optional[str] = None) -> Tuple[str, str]:
    """
    Write result and error rows to two CSV files

    Args:
        results: Finished (or partial) crawl results
        output_dir: Directory to write into; created if missing
        timestamp: Override for the file name timestamp

    Returns:
        (results path, errors path)
    """
    os.makedirs(output_dir, exist_ok=True)
    results_path, errors_path = build_output_paths(
        results.target.base_url, results.target.asset_domain, output_dir, timestamp
    )

    with open(results_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(RESULT_HEADER)
        for row in results.results:
            writer.writerow([
                row.page_url,
                row.page_title,
                row.item_type.value,
                row.item_url,
                '' if row.file_size is None else row.file_size
            ])

    with open(errors_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(ERROR_HEADER)
        for error in results.errors:
            writer.writerow([
                error.page_url,
                error.item_type.value,
                error.item_url,
                error.error_message
            ])

    return results_path, errors_path
