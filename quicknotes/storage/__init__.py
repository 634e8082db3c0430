from quicknotes.storage.base import KeyValueStorage, InMemoryStorage
from quicknotes.storage.sql import SqlStorage

__all__ = [
    "KeyValueStorage",
    "InMemoryStorage",
    "SqlStorage"
]
