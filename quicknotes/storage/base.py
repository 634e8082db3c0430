"""
Client-local key-value storage.

'KeyValueStorage' is the persistent store that survives restarts of the
client: it holds the guest identity, the serialized guest user and the
service-managed session keys. Everything that reads or clears these keys
receives a storage instance instead of touching a global.

Concrete implementations: 'InMemoryStorage', 'SqlStorage'.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class KeyValueStorage(ABC):
    """Abstract client-local key-value store."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    async def keys(self) -> List[str]:
        pass

    async def clear(self) -> None:
        for key in await self.keys():
            await self.remove(key)


class InMemoryStorage(KeyValueStorage):
    """Non-persistent storage, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> List[str]:
        return list(self._data.keys())
