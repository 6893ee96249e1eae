"""Session registry: sandboxes, environments and connection bindings.

The registry owns three things:

* the on-disk sandbox of each session (``<sandbox root>/<session id>``),
  created and seeded on first initialization and never deleted;
* the default environment a session's commands run with;
* the table binding each live connection to exactly one session.

The binding table is the only state shared between connections, so
every access to it goes through a lock.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import threading
import uuid
from pathlib import Path

from webterminal.config.settings import SandboxConfig
from webterminal.domain.models import Session, SessionCreate
from webterminal.sandbox.seed import seed_sandbox
from webterminal.storage.base import HistoryStore

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class SessionRegistry:
    """Creates sessions and tracks which connection owns which session."""

    def __init__(self, store: HistoryStore, config: SandboxConfig | None = None) -> None:
        self._store = store
        self._config = config or SandboxConfig()
        self._bindings: dict[str, Session] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> SandboxConfig:
        return self._config

    @property
    def active_connections(self) -> int:
        with self._lock:
            return len(self._bindings)

    def sandbox_path(self, session_id: str) -> Path:
        """Return the sandbox root of a session, validating the id."""
        if not SESSION_ID_PATTERN.match(session_id):
            raise InvalidSessionId(f"Invalid session id: {session_id!r}")
        return self._config.root / session_id

    def default_environment(self, root: Path) -> dict[str, str]:
        home = str(root)
        user = self._config.user
        return {
            "HOME": home,
            "USER": user,
            "PATH": f"{home}/.npm-global/bin:{self._config.system_path}",
            "SHELL": "/bin/bash",
            "TERM": "xterm-256color",
            "PWD": home,
            "NODE_ENV": "development",
            "NPM_CONFIG_PREFIX": f"{home}/.npm-global",
            "NPM_CONFIG_CACHE": f"{home}/.npm-cache",
            "NPM_CONFIG_INIT_AUTHOR_NAME": user,
            "NPM_CONFIG_INIT_LICENSE": "MIT",
        }

    async def create_session(self) -> Session:
        """Store a new session record pointing at its (not yet seeded) sandbox."""
        session_id = str(uuid.uuid4())
        root = self.sandbox_path(session_id)
        session = await self._store.create_session(
            SessionCreate(
                user_id=self._config.user,
                current_directory=str(root),
                environment_vars=self.default_environment(root),
            ),
            session_id=session_id,
        )
        logger.info("Created session %s", session_id)
        return session

    async def init_session(self, session_id: str) -> Session:
        """Prepare a session for use on a connection.

        Idempotent: the sandbox is seeded with create-if-absent semantics
        and, once stored, the session record is reused as-is.

        Raises:
            InvalidSessionId: If the id could escape the sandbox root.
            OSError: If the sandbox cannot be created.
        """
        root = self.sandbox_path(session_id)
        await asyncio.to_thread(seed_sandbox, root)

        record = await self._store.get_session(session_id)
        if record is None:
            record = await self._store.create_session(
                SessionCreate(
                    user_id=self._config.user,
                    current_directory=str(root),
                    environment_vars=self.default_environment(root),
                ),
                session_id=session_id,
            )
            logger.info("Initialized new session %s at %s", session_id, root)

        cwd = record.current_directory
        if not _is_directory_within(cwd, root):
            cwd = str(root)
        environment = {**self.default_environment(root), **record.environment_vars}
        environment["PWD"] = cwd

        if cwd != record.current_directory or environment != record.environment_vars:
            updated = await self._store.update_session(
                session_id, current_directory=cwd, environment_vars=environment
            )
            if updated is not None:
                record = updated

        return record.model_copy(
            update={"current_directory": cwd, "environment_vars": environment}, deep=True
        )

    def bind(self, connection_id: str, session: Session) -> None:
        """Bind a connection to a session.

        Raises:
            AlreadyBound: If the connection already owns a session.
        """
        with self._lock:
            if connection_id in self._bindings:
                raise AlreadyBound(
                    f"Connection {connection_id} is already bound to session "
                    f"{self._bindings[connection_id].id}"
                )
            self._bindings[connection_id] = session
        logger.debug("Bound connection %s to session %s", connection_id, session.id)

    def unbind(self, connection_id: str) -> Session | None:
        """Remove a connection's binding. Never raises."""
        with self._lock:
            session = self._bindings.pop(connection_id, None)
        if session is not None:
            logger.debug("Unbound connection %s from session %s", connection_id, session.id)
        return session

    def get(self, connection_id: str) -> Session | None:
        with self._lock:
            return self._bindings.get(connection_id)

    async def update_directory(self, session: Session, new_path: str) -> None:
        """Move a session to ``new_path`` after checking it on disk.

        The session is left untouched when the check or the store write
        fails.

        Raises:
            DirectoryNotFound: If nothing exists at ``new_path``.
            NotADirectory: If ``new_path`` is not a directory.
            DirectoryPermissionDenied: If the directory cannot be entered.
            StoreError: If the new directory cannot be persisted.
        """
        if not os.path.lexists(new_path):
            raise DirectoryNotFound(new_path)
        if not os.path.isdir(new_path):
            if not os.path.exists(new_path):
                # dangling symlink
                raise DirectoryNotFound(new_path)
            raise NotADirectory(new_path)
        if not os.access(new_path, os.X_OK):
            raise DirectoryPermissionDenied(new_path)

        environment = {**session.environment_vars, "PWD": new_path}
        await self._store.update_session(
            session.id, current_directory=new_path, environment_vars=environment
        )
        session.current_directory = new_path
        session.environment_vars = environment
        logger.debug("Session %s moved to %s", session.id, new_path)


def _is_directory_within(path: str, root: Path) -> bool:
    candidate = Path(path)
    if not candidate.is_dir():
        return False
    try:
        candidate.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


class SessionError(Exception):
    """Base class for session registry failures."""


class InvalidSessionId(SessionError):
    """Raised when a session id is not safe to use as a directory name."""


class AlreadyBound(SessionError):
    """Raised when binding a connection that already owns a session."""


class DirectoryNotFound(SessionError):
    """Raised when a directory change targets a path that does not exist."""


class NotADirectory(SessionError):
    """Raised when a directory change targets something other than a directory."""


class DirectoryPermissionDenied(SessionError):
    """Raised when a directory change targets a directory that cannot be entered."""
