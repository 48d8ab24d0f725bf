"""
Data Models Module

This module contains all the dataclass definitions used throughout the asset crawler,
including crawl targets, result rows, probe outcomes and the overall crawl results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


class ItemType(str, Enum):
    """Kind of page element an asset reference was found in"""
    IMAGE = "Image"
    VIDEO = "Video"
    ANCHOR = "Anchor"


@dataclass(frozen=True)
class CrawlTarget:
    """Scope anchor and asset domain, fixed for the whole crawl"""
    base_url: str
    asset_domain: str
    strict_scope: bool = False


@dataclass(frozen=True)
class PageResult:
    """One matching asset reference found on a crawled page"""
    page_url: str
    page_title: str
    item_type: ItemType
    item_url: str
    file_size: Optional[int] = None


@dataclass(frozen=True)
class ErrorResult:
    """An asset reference whose size probe failed"""
    page_url: str
    item_type: ItemType
    item_url: str
    error_message: str


@dataclass(frozen=True)
class ProbeSuccess:
    """Probe answered; byte_size is None when the server gave no usable length"""
    byte_size: Optional[int] = None


@dataclass(frozen=True)
class ProbeNotFound:
    """Probe answered with 404"""
    message: str = "404 Not Found"


@dataclass(frozen=True)
class ProbeFailure:
    """Probe raised a transport-level fault"""
    message: str


ProbeOutcome = Union[ProbeSuccess, ProbeNotFound, ProbeFailure]


@dataclass
class PageOutcome:
    """Everything a single page visit produced"""
    url: str
    title: Optional[str] = None
    results: List[PageResult] = field(default_factory=list)
    errors: List[ErrorResult] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    fetch_error: Optional[str] = None

    @property
    def fetched(self) -> bool:
        return self.fetch_error is None


@dataclass
class CrawlResults:
    """Overall crawling results"""
    target: CrawlTarget
    results: Tuple[PageResult, ...]
    errors: Tuple[ErrorResult, ...]
    pages_crawled: int
    fetch_failures: List[Tuple[str, str]]
    duration: float
    stopped: bool = False

    @property
    def sized_items(self) -> int:
        return sum(1 for r in self.results if r.file_size is not None)

    @property
    def total_size(self) -> int:
        return sum(r.file_size for r in self.results if r.file_size is not None)
