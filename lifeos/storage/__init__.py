"""Key/value store implementations."""

from lifeos.storage.json_file import JsonFileKeyValueStore
from lifeos.storage.memory import InMemoryKeyValueStore

__all__ = ["InMemoryKeyValueStore", "JsonFileKeyValueStore"]
