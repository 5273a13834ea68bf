# File: linkz/store.py
"""linkz.store: накопительное множество уже выданных ссылок и вычисление разницы."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence, Set

from linkz.logger import logger

__all__: Sequence[str] = ("SeenStore", "diff")


class SeenStore:
    """Упорядоченное множество ссылок, только добавление, без сохранения на диск.

    Не потокобезопасно само по себе: доступ идёт под замком PollerState.
    """

    def __init__(self, links: Iterable[str] = ()) -> None:
        self._order: List[str] = []
        self._index: Set[str] = set()
        self.record(links)

    def __contains__(self, link: object) -> bool:
        return link in self._index

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def snapshot(self) -> List[str]:
        """Копия содержимого в порядке добавления."""
        return list(self._order)

    def record(self, links: Iterable[str]) -> int:
        """Добавляет ещё не известные ссылки, возвращает число добавленных."""
        added = 0
        for link in links:
            if link in self._index:
                continue
            self._index.add(link)
            self._order.append(link)
            added += 1
        return added

    def diff_and_record(self, fresh: Iterable[str]) -> List[str]:
        """Возвращает новые ссылки из *fresh* и сразу запоминает их."""
        new_links = diff(self, fresh)
        self.record(new_links)
        if new_links:
            logger.debug("Seen-set grew by %d to %d", len(new_links), len(self))
        return new_links


def diff(seen: SeenStore, fresh: Iterable[str]) -> List[str]:
    """Ссылки из *fresh*, которых нет в *seen*, в исходном порядке и без повторов."""
    result: List[str] = []
    emitted: Set[str] = set()
    for link in fresh:
        if link in seen or link in emitted:
            continue
        emitted.add(link)
        result.append(link)
    return result
