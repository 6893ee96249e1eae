"""Abstract base class for session, history and file-tree persistence.

The server only ever talks to this interface, so the in-memory store
shipped here can be swapped for a database-backed one without touching
the session registry, the connection handler or the REST routes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from webterminal.domain.models import (
    CommandCreate,
    CommandRecord,
    FileCreate,
    FileNode,
    Session,
    SessionCreate,
)

logger = logging.getLogger(__name__)


class HistoryStore(ABC):
    """Abstract interface for durable session state.

    Holds three kinds of records: sessions, the append-only command
    history of each session, and a synthetic file tree per session.

    Example usage::

        store = MemoryHistoryStore()
        session = await store.create_session(SessionCreate(user_id="user"))
        await store.add_command(CommandCreate(
            session_id=session.id, command="pwd", output="/tmp\\n", exit_code="0",
        ))
        history = await store.get_command_history(session.id)
    """

    # -- Sessions -----------------------------------------------------------

    @abstractmethod
    async def create_session(
        self, new_session: SessionCreate, session_id: str | None = None
    ) -> Session:
        """Store a new session record.

        Args:
            new_session: Initial user, directory and environment.
            session_id: Identifier to use. A fresh uuid4 is generated
                        when omitted.

        Returns:
            The stored Session.
        """
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Session | None:
        """Return the session record, or None if it does not exist."""
        ...

    @abstractmethod
    async def update_session(self, session_id: str, **updates: Any) -> Session | None:
        """Apply field updates to a session and bump ``last_activity``.

        Returns:
            The updated Session, or None if it does not exist.
        """
        ...

    # -- Command history ----------------------------------------------------

    @abstractmethod
    async def add_command(self, new_command: CommandCreate) -> CommandRecord:
        """Append an executed command to its session's history."""
        ...

    @abstractmethod
    async def get_command_history(
        self, session_id: str, limit: int = 50
    ) -> list[CommandRecord]:
        """Return the most recent ``limit`` commands, oldest first."""
        ...

    # -- Synthetic file tree ------------------------------------------------

    @abstractmethod
    async def create_file(self, new_file: FileCreate) -> FileNode:
        ...

    @abstractmethod
    async def get_file(self, session_id: str, path: str) -> FileNode | None:
        ...

    @abstractmethod
    async def get_files_by_path(self, session_id: str, parent_path: str) -> list[FileNode]:
        """Return every node below ``parent_path`` (excluding the parent itself)."""
        ...

    @abstractmethod
    async def update_file(self, file_id: str, **updates: Any) -> FileNode | None:
        ...

    @abstractmethod
    async def delete_file(self, file_id: str) -> bool:
        ...

    @abstractmethod
    async def get_file_tree(self, session_id: str) -> list[FileNode]:
        """Return all nodes of a session, directories first, then by name."""
        ...


class StoreError(Exception):
    """Raised when a store operation cannot be completed."""

    def __init__(self, message: str, store: str = "") -> None:
        super().__init__(message)
        self.store = store
