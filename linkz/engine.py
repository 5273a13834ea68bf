# File: linkz/engine.py
"""linkz.engine: сборка Fetcher, PollerState, Reporter и Poller и запуск опроса."""

from __future__ import annotations

from typing import Optional

from linkz.config import WatchConfig
from linkz.crawler.fetcher import Fetcher
from linkz.poller import Poller, PollerState
from linkz.report import Reporter

__all__ = ["start_watch"]


async def start_watch(
    cfg: WatchConfig,
    reporter: Optional[Reporter] = None,
    max_ticks: Optional[int] = None,
) -> PollerState:
    """
    Открывает HTTP-сессию и опрашивает cfg.target_url до остановки.

    Parameters
    ----------
    cfg : WatchConfig
        Проверенная конфигурация.
    reporter : Reporter, optional
        Куда писать новые ссылки и ошибки (по умолчанию stdout/stderr).
    max_ticks : int, optional
        Остановиться после указанного числа тиков; при None работать бесконечно.

    Returns
    -------
    PollerState
        Состояние после остановки (целевой URL и все увиденные ссылки).
    """
    state = PollerState(cfg.target_url)
    async with Fetcher(cfg) as fetcher:
        poller = Poller.from_config(cfg, fetcher, reporter or Reporter(), state=state)
        await poller.run(max_ticks=max_ticks)
    return state

