# linkz/crawler/models.py
"""
Data models shared by the fetcher, the link extractor and the poller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from linkz.utils import LinkResolutionError


@dataclass(slots=True)
class PageData:
    """Holds the URL a document was fetched from and its decoded body."""

    url: str
    content: str


@dataclass(slots=True)
class Extraction:
    """Sorted unique links of one document plus the hrefs that were skipped."""

    links: List[str] = field(default_factory=list)
    errors: List[LinkResolutionError] = field(default_factory=list)


@dataclass(slots=True)
class TickOutcome:
    """What a single tick produced. Either ``error`` is set or ``links`` is."""

    tick: int
    links: List[str] = field(default_factory=list)
    new_links: List[str] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
