# File: linkz/report/__init__.py
"""linkz.report: вывод результатов опроса (новые ссылки и ошибки)."""

from .stream_report import Reporter

__all__ = ["Reporter"]
