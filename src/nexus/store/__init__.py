"""Persistent key/value store module for Nexus Studio.

Provides durable storage for serialized session collections and galleries.
"""

from .base import KeyValueStore
from .factory import create_key_value_store
from .in_memory import InMemoryKeyValueStore

__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "create_key_value_store",
]
