# File: tests/conftest.py
from __future__ import annotations

import asyncio
import io
from collections.abc import AsyncIterator, Callable
from typing import Optional, Sequence, Union

import pytest
from aiohttp import web

from linkz.config import WatchConfig
from linkz.crawler.models import PageData
from linkz.poller import Poller, PollerState
from linkz.report import Reporter


class FakeFetcher:
    """
    Stand-in for linkz.crawler.fetcher.Fetcher.

    Returns the scripted bodies in order (the last one repeats), raising the
    item instead when it is an exception. Tracks how many fetches overlap;
    *on_fetch* runs just before a fetch returns.
    """

    def __init__(
        self,
        pages: Sequence[Union[str, Exception]],
        delay: float = 0.0,
        on_fetch: Optional[Callable[[], None]] = None,
    ) -> None:
        self.pages = list(pages)
        self.delay = delay
        self.on_fetch = on_fetch
        self.calls = 0
        self.urls: list[str] = []
        self.active = 0
        self.max_active = 0

    async def fetch(self, url: str) -> str:
        self.calls += 1
        index = min(self.calls, len(self.pages)) - 1
        self.urls.append(url)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.on_fetch is not None:
                self.on_fetch()
            item = self.pages[index]
            if isinstance(item, Exception):
                raise item
            return item
        finally:
            self.active -= 1


def anchors(*hrefs: str) -> str:
    """Build a small HTML document with one anchor per href."""
    body = "".join(f'<a href="{h}">link</a>' for h in hrefs)
    return f"<html><body>{body}</body></html>"


def lines(stream: io.StringIO) -> list[str]:
    return stream.getvalue().splitlines()


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def basic_config() -> WatchConfig:
    """Return a basic valid WatchConfig."""
    return WatchConfig(
        target_url="http://example.com",
        interval=1,
        timeout=2.0,
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def out_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def err_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def reporter(out_stream, err_stream) -> Reporter:
    return Reporter(out=out_stream, err=err_stream)


@pytest.fixture()
def make_poller(reporter):
    """Factory: make_poller(fetcher, interval=0.01, **kwargs) for http://example.com."""

    def _make(fetcher, interval: float = 0.01, target: str = "http://example.com", **kwargs) -> Poller:
        return Poller(PollerState(target), fetcher, reporter, interval=interval, **kwargs)

    return _make


@pytest.fixture()
def mock_page_data() -> PageData:
    """Provide a simple PageData instance with HTML content."""
    html = anchors("/link1", "http://external.com", "mailto:someone@example.com")
    return PageData(url="http://example.com/", content=html)
