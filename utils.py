"""
Common Utilities Module

This module contains helper functions used across the asset crawler,
including URL resolution and scope checks, entity decoding, logging setup,
output file naming and human-readable formatting.
"""

import html
import logging
import math
import re
from datetime import datetime
from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse, urldefrag


def resolve_url(base: str, href: str) -> Optional[str]:
    """
    Resolve an href against an absolute base URL

    Args:
        base: Absolute URL the href was found relative to
        href: Raw href (relative, absolute, protocol-relative or fragment-only)

    Returns:
        Absolute URL, or None if either part cannot be parsed
    """
    if base is None or href is None:
        return None

    try:
        parsed_base = urlparse(base)
        if not (parsed_base.scheme and parsed_base.netloc):
            return None

        resolved = urljoin(base, href.strip())
        parsed = urlparse(resolved)
        # Accessing port validates it
        parsed.port
    except ValueError:
        return None

    if not parsed.scheme:
        return None
    if parsed.scheme in ('http', 'https') and not parsed.netloc:
        return None

    return resolved


def decode_entities(raw: str) -> str:
    """Decode HTML character entities (e.g. &amp;) in extracted URL text"""
    if not raw:
        return ""
    return html.unescape(raw)


def in_scope(url: str, base_url: str, strict: bool = False) -> bool:
    """
    Check whether an absolute URL belongs to the crawl scope

    The default check is a plain string prefix match against the base URL,
    which also admits hosts such as https://example.com.evil.com for a base of
    https://example.com. With strict=True the scheme, host and port must also
    be equal.
    """
    if not url or not base_url:
        return False

    if not url.startswith(base_url):
        return False

    if not strict:
        return True

    try:
        candidate = urlparse(url)
        base = urlparse(base_url)
        return (
            candidate.scheme.lower() == base.scheme.lower()
            and (candidate.hostname or "") == (base.hostname or "")
            and candidate.port == base.port
        )
    except ValueError:
        return False


def canonical_page_url(url: str) -> str:
    """Drop the fragment and give an empty path '/' so one page has one key"""
    defragged, _ = urldefrag(url)
    parsed = urlparse(defragged)
    if parsed.netloc and not parsed.path:
        parsed = parsed._replace(path='/')
    return urlunparse(parsed)


def extract_host(url: str) -> str:
    """Extract host name from URL"""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def clean_for_filename(value: str) -> str:
    """Make a host or domain safe for use in a file name (dots become underscores)"""
    value = value.strip().replace('.', '_')
    return re.sub(r'[<>:"/\\|?*\s]', '_', value)


def get_file_timestamp() -> str:
    """
    Get current timestamp suitable for filenames

    Returns:
        Timestamp string safe for filenames (YYYYMMDDHHMMSS)
    """
    return datetime.now().strftime("%Y%m%d%H%M%S")


def setup_logging(log_level: str = "INFO", log_file: str = None):
    """
    Set up logging configuration for the crawler

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
    """
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, log_level.upper()))
    console_format = '%(asctime)s - %(levelname)s - %(message)s'
    console_handler.setFormatter(logging.Formatter(console_format, datefmt='%H:%M:%S'))
    handlers.append(console_handler)

    # File handler always logs at debug level
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(log_format, datefmt='%Y-%m-%d %H:%M:%S'))
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=handlers,
        force=True
    )

    logger = logging.getLogger('asset_crawler')
    logger.info(f"Logging initialized at {log_level} level" + (f" (file: {log_file})" if log_file else ""))

    # Reduce noise from third-party libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "234 KB")
    """
    if size_bytes <= 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = min(int(math.floor(math.log(size_bytes, 1024))), len(size_names) - 1)
    p = math.pow(1024, i)
    s = round(size_bytes / p, 2)

    return f"{s} {size_names[i]}"


def format_duration(seconds: float) -> str:
    """
    Format duration in human-readable format

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "2h 15m 30s", "45.0s")
    """
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes = int(seconds // 60)
    remaining_seconds = int(seconds % 60)

    if minutes < 60:
        return f"{minutes}m {remaining_seconds}s"

    hours = int(minutes // 60)
    remaining_minutes = int(minutes % 60)

    return f"{hours}h {remaining_minutes}m {remaining_seconds}s"
