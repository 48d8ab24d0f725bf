"""
Asset Discovery and Link Extraction Module

This module handles parsing crawled pages, identifying image, video and anchor
references that point at the configured asset domain, and collecting the
outbound anchor links used to continue the crawl.
"""

import logging
from typing import Iterator, List, Tuple, Union

from bs4 import BeautifulSoup

from models import ItemType


NO_TITLE = "No Title"

# (item type, CSS selector, attribute) in scan order
ASSET_SELECTORS = (
    (ItemType.IMAGE, 'img[src]', 'src'),
    (ItemType.VIDEO, 'video > source[src]', 'src'),
    (ItemType.ANCHOR, 'a[href]', 'href'),
)


def parse_page(content: Union[bytes, str]) -> BeautifulSoup:
    """Parse page content into a document tree; bytes let the parser honour <meta charset>"""
    return BeautifulSoup(content or "", 'html.parser')


def extract_title(soup: BeautifulSoup) -> str:
    """Return the page title text, or 'No Title' if the page has no <title>"""
    if soup.title is None:
        return NO_TITLE
    return soup.title.get_text(strip=True)


def extract_links(soup: BeautifulSoup) -> List[str]:
    """Return every anchor href on the page, in document order"""
    return [link['href'] for link in soup.find_all('a', href=True)]


class AssetClassifier:
    """Identifies page elements that reference the asset domain"""

    def __init__(self, asset_domain: str):
        if not asset_domain:
            raise ValueError("Asset domain must not be empty")
        self.asset_domain = asset_domain
        self.logger = logging.getLogger(__name__)

    def is_asset_url(self, url: str) -> bool:
        return self.asset_domain in url

    def extract_candidates(self, soup: BeautifulSoup) -> Iterator[Tuple[ItemType, str]]:
        """
        Yield (item type, decoded URL) for every element referencing the asset domain

        Images are scanned first, then video sources, then anchors. The
        sequence is produced lazily and can only be consumed once.

        Args:
            soup: Parsed page

        Yields:
            Tuples of ItemType and the attribute value, entities already
            decoded once by the parser
        """
        for item_type, selector, attribute in ASSET_SELECTORS:
            for node in soup.select(selector):
                item_url = node.get(attribute)
                if not item_url:
                    continue
                if self.is_asset_url(item_url):
                    yield item_type, item_url
