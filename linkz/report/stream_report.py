"""linkz.report.stream_report: вывод новых ссылок в stdout и диагностик в stderr."""

from __future__ import annotations

from typing import IO, Iterable, Optional, Union

import click

from linkz.logger import logger


class Reporter:
    """Пишет по одной строке на новую ссылку и по одной строке на ошибку.

    Args:
        out: поток для новых ссылок (по умолчанию stdout).
        err: поток для диагностик (по умолчанию stderr).
    """

    def __init__(self, out: Optional[IO[str]] = None, err: Optional[IO[str]] = None) -> None:
        self.out = out
        self.err = err
        self.reported = 0
        self.errors = 0

    def report(self, links: Iterable[str]) -> None:
        """Выводит ссылки в порядке, в котором их вернул Differ."""
        for link in links:
            click.echo(link, file=self.out)
            self.reported += 1

    def error(self, cause: Union[BaseException, str]) -> None:
        """Выводит ``Error: <cause>``. Сама никогда не бросает исключений."""
        message = f"Error: {cause}"
        self.errors += 1
        logger.debug("Reported error: %s", cause)
        try:
            if self.err is None:
                click.echo(message, err=True)
            else:
                click.echo(message, file=self.err)
        except (OSError, ValueError) as exc:
            logger.error("Could not write to error stream: %s", exc)


__all__ = ["Reporter"]
