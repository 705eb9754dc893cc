"""
Nexus Studio: a multi-tool over the Gemini API (chat sessions, streamed
replies, image editing with undo/redo, image, story and video generation).

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .errors import (
    NexusError,
    PersistenceError,
    SessionNotFoundError,
    StreamInProgressError,
    TransportError,
    UnsupportedCapability,
    ValidationError,
)
from .history import EditHistory, EditState, ImageEditSession, VersionedList
from .sessions import ChatService, PersonaCatalog, SessionRegistry, StreamAssembler
from .store import KeyValueStore, create_key_value_store

__all__ = [
    "ChatService",
    "EditHistory",
    "EditState",
    "ImageEditSession",
    "KeyValueStore",
    "NexusError",
    "PersistenceError",
    "PersonaCatalog",
    "SessionNotFoundError",
    "SessionRegistry",
    "StreamAssembler",
    "StreamInProgressError",
    "TransportError",
    "UnsupportedCapability",
    "ValidationError",
    "VersionedList",
    "create_key_value_store",
]
