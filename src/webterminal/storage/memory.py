"""In-memory HistoryStore implementation.

Keeps everything in dictionaries for the lifetime of the process.
Records are copied on the way in and out so callers never share
mutable state with the store.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from webterminal.domain.models import (
    CommandCreate,
    CommandRecord,
    FileCreate,
    FileNode,
    Session,
    SessionCreate,
)
from webterminal.storage.base import HistoryStore, StoreError

logger = logging.getLogger(__name__)

_SAMPLE_APP_PY = """#!/usr/bin/env python3
import os
import sys

def main():
    print("Hello, WebTerminal!")

if __name__ == "__main__":
    main()"""

_SAMPLE_README = (
    "Welcome to WebTerminal!\n\n"
    "This is a real Linux environment running in your browser.\n\n"
    "Try running some commands:\n- ls -la\n- cat app.py\n- python3 app.py"
)

_SAMPLE_CONFIG = """{
  "terminal": {
    "theme": "dark",
    "fontSize": 14,
    "fontFamily": "JetBrains Mono"
  },
  "environment": {
    "shell": "/bin/bash",
    "locale": "en_US.UTF-8"
  }
}"""

# (path, content, is_directory, permissions)
_INITIAL_TREE: list[tuple[str, str | None, bool, str]] = [
    ("/home", None, True, "755"),
    ("/home/user", None, True, "755"),
    ("/home/user/projects", None, True, "755"),
    ("/home/user/projects/webapp", None, True, "755"),
    ("/home/user/app.py", _SAMPLE_APP_PY, False, "755"),
    ("/home/user/readme.txt", _SAMPLE_README, False, "644"),
    ("/home/user/config.json", _SAMPLE_CONFIG, False, "644"),
]


class MemoryHistoryStore(HistoryStore):
    """Process-local store for sessions, command history and file trees."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._commands: list[CommandRecord] = []
        self._files: dict[str, FileNode] = {}

    # -- Sessions -----------------------------------------------------------

    async def create_session(
        self, new_session: SessionCreate, session_id: str | None = None
    ) -> Session:
        sid = session_id or str(uuid.uuid4())
        if sid in self._sessions:
            raise StoreError(f"Session {sid} already exists", store="memory")
        now = datetime.now()
        session = Session(
            id=sid,
            user_id=new_session.user_id,
            current_directory=new_session.current_directory,
            environment_vars=dict(new_session.environment_vars),
            created_at=now,
            last_activity=now,
        )
        self._sessions[sid] = session
        await self._initialize_file_tree(sid)
        logger.debug("Stored session %s", sid)
        return session.model_copy(deep=True)

    async def get_session(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def update_session(self, session_id: str, **updates: Any) -> Session | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        updates.pop("id", None)
        updated = session.model_copy(
            update={**updates, "last_activity": datetime.now()}, deep=True
        )
        self._sessions[session_id] = updated
        return updated.model_copy(deep=True)

    # -- Command history ----------------------------------------------------

    async def add_command(self, new_command: CommandCreate) -> CommandRecord:
        record = CommandRecord(
            id=str(uuid.uuid4()),
            session_id=new_command.session_id,
            command=new_command.command,
            output=new_command.output,
            exit_code=new_command.exit_code,
            timestamp=datetime.now(),
        )
        self._commands.append(record)
        return record

    async def get_command_history(
        self, session_id: str, limit: int = 50
    ) -> list[CommandRecord]:
        # sorted() is stable, so equal timestamps keep insertion order
        history = sorted(
            (c for c in self._commands if c.session_id == session_id),
            key=lambda c: c.timestamp,
        )
        return history[-limit:] if limit > 0 else []

    # -- Synthetic file tree ------------------------------------------------

    async def create_file(self, new_file: FileCreate) -> FileNode:
        now = datetime.now()
        node = FileNode(
            id=str(uuid.uuid4()),
            session_id=new_file.session_id,
            path=new_file.path,
            name=new_file.name,
            content=new_file.content,
            is_directory=new_file.is_directory,
            permissions=new_file.permissions,
            created_at=now,
            updated_at=now,
        )
        self._files[node.id] = node
        return node

    async def get_file(self, session_id: str, path: str) -> FileNode | None:
        for node in self._files.values():
            if node.session_id == session_id and node.path == path:
                return node
        return None

    async def get_files_by_path(self, session_id: str, parent_path: str) -> list[FileNode]:
        return [
            node
            for node in self._files.values()
            if node.session_id == session_id
            and node.path.startswith(parent_path)
            and node.path != parent_path
        ]

    async def update_file(self, file_id: str, **updates: Any) -> FileNode | None:
        node = self._files.get(file_id)
        if node is None:
            return None
        updates.pop("id", None)
        updated = node.model_copy(update={**updates, "updated_at": datetime.now()})
        self._files[file_id] = updated
        return updated

    async def delete_file(self, file_id: str) -> bool:
        return self._files.pop(file_id, None) is not None

    async def get_file_tree(self, session_id: str) -> list[FileNode]:
        nodes = [n for n in self._files.values() if n.session_id == session_id]
        return sorted(nodes, key=lambda n: (not n.is_directory, n.name))

    async def _initialize_file_tree(self, session_id: str) -> None:
        """Seed the synthetic tree shown in the UI's file explorer."""
        for path, content, is_directory, permissions in _INITIAL_TREE:
            await self.create_file(
                FileCreate(
                    session_id=session_id,
                    path=path,
                    name=path.rsplit("/", 1)[-1],
                    content=content,
                    is_directory=is_directory,
                    permissions=permissions,
                )
            )
