"""
Asset Size Probing Module

This module determines the byte size of discovered assets with a HEAD request
and classifies every outcome (sized, not found, transport fault) as a value.
"""

import logging
from typing import Optional

import requests

from models import ProbeFailure, ProbeNotFound, ProbeOutcome, ProbeSuccess


class SizeProber:
    """Issues metadata-only requests to find asset sizes"""

    def __init__(self, session: requests.Session, timeout: float = 10):
        """
        Initialize the prober.

        Args:
            session: Shared HTTP session carrying the crawler's User-Agent
            timeout: HEAD request timeout in seconds
        """
        self.session = session
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def probe(self, url: str) -> ProbeOutcome:
        """
        Probe an asset URL for its size.

        A 404 gives ProbeNotFound and a raised request gives ProbeFailure.
        Every other answer is a ProbeSuccess, with a size only when the
        response succeeded and declared a usable Content-Length.

        Args:
            url: Absolute asset URL

        Returns:
            ProbeOutcome; this method never raises
        """
        try:
            response = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            self.logger.warning(f"HEAD request failed for {url}: {e}")
            return ProbeFailure(message=str(e))
        except Exception as e:
            self.logger.error(f"Unexpected error probing {url}: {e}")
            return ProbeFailure(message=str(e))

        if response.status_code == 404:
            self.logger.debug(f"Asset not found: {url}")
            return ProbeNotFound()

        if not 200 <= response.status_code < 300:
            self.logger.debug(f"HEAD request for {url} returned {response.status_code}, size unknown")
            return ProbeSuccess(byte_size=None)

        return ProbeSuccess(byte_size=parse_content_length(response.headers.get('Content-Length')))


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """Parse a Content-Length header value; None if missing or not a non-negative integer"""
    if value is None:
        return None
    try:
        size = int(str(value).strip())
    except ValueError:
        return None
    return size if size >= 0 else None
