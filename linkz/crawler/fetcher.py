# linkz/crawler/fetcher.py
"""
Fetcher module: one aiohttp session, optional retry/backoff, typed failures.
"""
from __future__ import annotations

import asyncio
import random
from typing import Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout, TCPConnector

from linkz.config import WatchConfig
from linkz.logger import logger


class FetchError(Exception):
    """Network failure, non-2xx status or undecodable body for *url*."""

    def __init__(self, url: str, cause: str) -> None:
        super().__init__(f"{url}: {cause}")
        self.url = url
        self.cause = cause


class _RetryableStatus(ClientError):
    def __init__(self, status: int, reason: Optional[str]) -> None:
        super().__init__(f"HTTP {status} {reason or ''}".rstrip())
        self.status = status


class Fetcher:
    """Fetches documents for the poller. Use as ``async with Fetcher(config)``."""

    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(self, config: WatchConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> Fetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                connector=TCPConnector(ssl=self.config.verify_ssl),
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> str:
        """
        GET *url* and return its decoded body.

        Raises FetchError on any failure; 429/5xx and network errors are
        retried ``config.retry_times`` times with exponential backoff.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")
        attempts = 0
        while True:
            try:
                async with self.session.get(url) as resp:
                    if resp.status in self._RETRY_STATUS:
                        raise _RetryableStatus(resp.status, resp.reason)
                    if not 200 <= resp.status < 300:
                        raise FetchError(url, f"HTTP {resp.status} {resp.reason or ''}".rstrip())
                    try:
                        return await resp.text()
                    except (UnicodeDecodeError, LookupError) as exc:
                        raise FetchError(url, f"undecodable body: {exc}") from exc
            except (ClientError, asyncio.TimeoutError) as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    raise FetchError(url, str(exc) or type(exc).__name__) from exc
                backoff = min(60, 2**attempts + random.random())
                logger.debug(
                    "Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff
                )
                await asyncio.sleep(backoff)


__all__ = ["FetchError", "Fetcher"]
