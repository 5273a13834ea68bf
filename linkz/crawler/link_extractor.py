# linkz/crawler/link_extractor.py
"""
Link extraction for linkz: anchors → absolute, filtered, sorted, unique URLs.
"""
from __future__ import annotations

from typing import Iterable, List

from bs4 import BeautifulSoup
from bs4.element import Tag

from linkz.crawler.models import Extraction, PageData
from linkz.logger import logger
from linkz.utils import LinkResolutionError, canonicalize_url, resolve_url

DEFAULT_EXCLUSIONS: tuple[str, ...] = ("javascript:void(0)", "mailto:")


def parse_hrefs(html: str) -> List[str]:
    """Return the ``href`` value of every ``<a>`` tag, in document order."""
    soup = BeautifulSoup(html, "html.parser")
    hrefs: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        hrefs.append(href_val.strip())
    return hrefs


def is_excluded(link: str, exclusions: Iterable[str]) -> bool:
    """Case-sensitive substring match against the exclusion list."""
    return any(ex in link for ex in exclusions)


def extract_links(
    page: PageData,
    exclusions: Iterable[str] = DEFAULT_EXCLUSIONS,
    *,
    collapse_equivalent: bool = True,
) -> Extraction:
    """
    Extract every anchor of *page* as an absolute URL.

    Hrefs that are already absolute URLs are kept byte for byte. Other hrefs
    are joined against ``page.url``; with *collapse_equivalent* the joined URL
    is canonicalized (lower-case scheme and host, no default port) so that a
    relative ``/a`` on ``HTTP://Example.com:80/`` gives ``http://example.com/a``.
    Hrefs that cannot be resolved are collected in :attr:`Extraction.errors`
    and skipped. Exclusions are checked on the final string. The result is
    sorted and free of duplicates.
    """
    exclusions = tuple(exclusions)
    result = Extraction()
    collected: set[str] = set()
    for href in parse_hrefs(page.content):
        try:
            link = resolve_url(page.url, href)
        except LinkResolutionError as exc:
            logger.debug("Skipping href %r on %s: %s", href, page.url, exc.reason)
            result.errors.append(exc)
            continue
        if collapse_equivalent and link != href:
            link = canonicalize_url(link)
        if is_excluded(link, exclusions):
            continue
        collected.add(link)
    result.links = sorted(collected)
    logger.debug(
        "Extracted %d links from %s (%d skipped)", len(result.links), page.url, len(result.errors)
    )
    return result


__all__ = ["DEFAULT_EXCLUSIONS", "parse_hrefs", "is_excluded", "extract_links"]
