# File: linkz/utils.py
"""linkz.utils: проверка, разрешение и канонизация URL для извлекаемых ссылок."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urljoin, urlsplit

from linkz.logger import logger

__all__: Sequence[str] = (
    "LinkResolutionError",
    "validate_url",
    "resolve_url",
    "canonicalize_url",
)

_DEFAULT_PORTS = {"http": 80, "https": 443}


class LinkResolutionError(ValueError):
    """Ссылку *href* не удалось разрешить относительно *base*."""

    def __init__(self, base: str, href: str, reason: str) -> None:
        super().__init__(f"cannot resolve {href!r} against {base}: {reason}")
        self.base = base
        self.href = href
        self.reason = reason


def validate_url(url: str) -> bool:
    """Возвращает True, если у URL есть непустая схема и хост (и корректный порт)."""
    try:
        parsed = urlsplit(url)
        # .port бросает ValueError на мусорном порту
        parsed.port
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.hostname)


def resolve_url(base: str, href: str) -> str:
    """Разрешает *href* относительно *base*.

    Абсолютный URL возвращается без изменений, остальные формы (относительный
    путь, ``//host/...``, ``?query``, ``#fragment``) склеиваются по обычным
    правилам. Неразрешимая ссылка даёт :class:`LinkResolutionError`.
    """
    if validate_url(href):
        return href
    try:
        absolute = urljoin(base, href)
        urlsplit(absolute).port
    except ValueError as exc:
        raise LinkResolutionError(base, href, str(exc)) from exc
    if not urlsplit(absolute).scheme:
        raise LinkResolutionError(base, href, "result has no scheme")
    logger.debug("Resolved %s -> %s", href, absolute)
    return absolute


def canonicalize_url(url: str) -> str:
    """Приводит схему и хост к нижнему регистру, убирает порт по умолчанию, пустой путь → ``/``.

    Путь, запрос и фрагмент остаются байт в байт, включая пустые ``?`` и ``#``.
    URL без хоста (``mailto:``, ``javascript:``) возвращаются как есть.
    """
    parsed = urlsplit(url)
    if not parsed.hostname:
        return url
    authority_start = len(parsed.scheme) + 1
    if url[authority_start:authority_start + 2] != "//":
        return url
    rest = url[authority_start + 2 + len(parsed.netloc):]
    if not rest.startswith("/"):
        rest = "/" + rest
    scheme = parsed.scheme.lower()
    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    port = parsed.port
    netloc = host if port is None or _DEFAULT_PORTS.get(scheme) == port else f"{host}:{port}"
    if parsed.username is not None:
        userinfo = parsed.username
        if parsed.password is not None:
            userinfo += f":{parsed.password}"
        netloc = f"{userinfo}@{netloc}"
    return f"{scheme}://{netloc}{rest}"
