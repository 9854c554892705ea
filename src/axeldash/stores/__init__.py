from __future__ import annotations

from .knowledge import EntryNotFound, InvalidMemoryType, KnowledgeStore
from .logs import LogStore

__all__ = [
    "EntryNotFound",
    "InvalidMemoryType",
    "KnowledgeStore",
    "LogStore",
]
