import logging
import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

QueryKey = Tuple[Hashable, ...]


class _CacheEntry:
    def __init__(self, data: Any, fetched_at: float):
        self.data = data
        self.fetched_at = fetched_at
        self.invalidated = False


class QueryCache:
    """Кэш результатов запросов с ленивым перезапросом.

    Ключи являются кортежами. invalidate(key) помечает устаревшими все записи,
    ключ которых начинается с key; данные перезапрашиваются при следующем
    fetch. Записи старше stale_time также считаются устаревшими.
    """

    def __init__(self, stale_time: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.stale_time = stale_time
        self._clock = clock
        self._entries: Dict[QueryKey, _CacheEntry] = {}

    def get(self, key: QueryKey) -> Optional[Any]:
        """Получение закэшированных данных без перезапроса"""
        entry = self._entries.get(key)
        return entry.data if entry else None

    def set(self, key: QueryKey, data: Any) -> None:
        self._entries[key] = _CacheEntry(data, self._clock())

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.invalidated:
            return True
        return self._clock() - entry.fetched_at >= self.stale_time

    async def fetch(self, key: QueryKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Получение данных из кэша или через loader, если запись устарела"""
        if not self.is_stale(key):
            return self._entries[key].data

        data = await loader()
        self.set(key, data)
        return data

    def invalidate(self, key: QueryKey) -> int:
        """Пометка устаревшими записей с префиксом key"""
        count = 0
        for entry_key, entry in self._entries.items():
            if entry_key[:len(key)] == key:
                entry.invalidated = True
                count += 1
        logger.debug(f"Invalidated {count} cache entries for {key}")
        return count

    def clear(self) -> None:
        self._entries.clear()
