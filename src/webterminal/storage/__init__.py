"""Persistence for sessions, command history and the synthetic file tree."""

from webterminal.storage.base import HistoryStore, StoreError
from webterminal.storage.memory import MemoryHistoryStore
from webterminal.storage.recorder import CommandRecorder

__all__ = ["CommandRecorder", "HistoryStore", "MemoryHistoryStore", "StoreError"]
