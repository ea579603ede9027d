from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Hashable, Sequence

DEFAULT_TTL_SECONDS = 60.0


@dataclass
class CacheEntry:
    items: Sequence[Any]
    fetched_at: float
    complete: bool = False


class CatalogCache(ABC):
    @abstractmethod
    def get(self, key: Hashable, *, min_items: int = 0) -> list[Any] | None:
        """Retorna os itens em cache, ou None se expirado/insuficiente."""

    @abstractmethod
    def set(self, key: Hashable, items: Sequence[Any], *, complete: bool = False) -> None:
        """Substitui o conteúdo da chave.

        ``complete`` indica que a origem não tem mais itens além destes.
        """

    @abstractmethod
    def invalidate(self, key: Hashable) -> None:
        """Remove a chave do cache."""

    @abstractmethod
    def clear(self) -> None:
        """Remove todas as chaves."""


class InMemoryCatalogCache(CatalogCache):
    """Cache em memória com TTL por chave.

    Uma entrada só é considerada fresca se ainda estiver dentro do TTL e
    tiver pelo menos ``min_items`` itens, ou se guardar o catálogo inteiro.
    Nesse caso devolve no máximo ``min_items`` itens (todos quando
    ``min_items`` é zero).
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[Hashable, CacheEntry] = {}
        self._lock = Lock()

    def get(self, key: Hashable, *, min_items: int = 0) -> list[Any] | None:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if now - entry.fetched_at >= self.ttl_seconds:
                self._store.pop(key, None)
                return None
            if not entry.complete and len(entry.items) < min_items:
                return None
            items = list(entry.items)
        if min_items:
            return items[:min_items]
        return items

    def set(self, key: Hashable, items: Sequence[Any], *, complete: bool = False) -> None:
        with self._lock:
            self._store[key] = CacheEntry(items=tuple(items), fetched_at=self._clock(), complete=complete)

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
