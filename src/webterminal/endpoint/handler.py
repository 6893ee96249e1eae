"""Per-connection protocol handler for the terminal WebSocket.

Each connection moves through three states::

    UNINITIALIZED --init--> ACTIVE --close--> CLOSED

Inbound envelopes are processed one at a time, so replies leave in the
order their messages arrived. Different connections have their own
handler and never wait on each other.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import platform
import uuid
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from webterminal.domain.models import (
    EXIT_NOT_FOUND,
    CommandCreate,
    CommandData,
    CommandResult,
    InboundMessage,
    InitData,
    MessageType,
    OutputData,
    PromptData,
    Session,
    TerminalSize,
)
from webterminal.execution.executor import ProcessExecutor
from webterminal.execution.interceptor import CommandInterceptor
from webterminal.sandbox.registry import SessionError, SessionRegistry
from webterminal.storage.base import StoreError
from webterminal.storage.recorder import CommandRecorder

logger = logging.getLogger(__name__)

SendFunc = Callable[[dict[str, Any]], Awaitable[None]]

ERROR_BAD_MESSAGE = "Failed to process message"
ERROR_NOT_INITIALIZED = "Session not initialized"
ERROR_INIT_FAILED = "Failed to initialize session"
ERROR_UNKNOWN_TYPE = "Unknown message type"


class ConnectionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


def envelope(message_type: MessageType, data: Any) -> dict[str, Any]:
    """Build an outbound ``{"type", "data"}`` message."""
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    return {"type": message_type.value, "data": data}


class ConnectionHandler:
    """Drives one terminal connection.

    The transport is abstracted as a ``send`` coroutine taking a JSON-able
    dict, which keeps the handler independent of the WebSocket library.
    """

    def __init__(
        self,
        send: SendFunc,
        registry: SessionRegistry,
        interceptor: CommandInterceptor,
        executor: ProcessExecutor,
        recorder: CommandRecorder,
        connection_id: str | None = None,
    ) -> None:
        self._send = send
        self._registry = registry
        self._interceptor = interceptor
        self._executor = executor
        self._recorder = recorder
        self._connection_id = connection_id or str(uuid.uuid4())
        self._state = ConnectionState.UNINITIALIZED
        self._session: Session | None = None
        self._lock = asyncio.Lock()

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    async def open(self) -> None:
        """Announce the connection before any inbound message is handled."""
        logger.info("Terminal connection %s established", self._connection_id)
        await self._emit(MessageType.CONNECTED, {})

    async def close(self) -> None:
        """Release the session binding and flush pending history.

        Safe to call more than once.
        """
        if self._state is ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CLOSED
        self._registry.unbind(self._connection_id)
        await self._recorder.flush()
        logger.info(
            "Terminal connection %s closed (session %s)",
            self._connection_id, self._session.id if self._session else "-",
        )

    async def handle_text(self, text: str | bytes) -> None:
        """Parse one raw inbound payload and dispatch it."""
        try:
            message = InboundMessage.model_validate_json(text)
        except ValidationError as e:
            logger.debug("Malformed message on %s: %s", self._connection_id, e)
            await self._emit(MessageType.ERROR, ERROR_BAD_MESSAGE)
            return
        await self.handle_message(message)

    async def handle_message(self, message: InboundMessage) -> None:
        async with self._lock:
            if self._state is ConnectionState.CLOSED:
                return
            logger.debug("Received %s on %s", message.type, self._connection_id)
            try:
                await self._dispatch(message)
            except SessionNotInitialized:
                await self._emit(MessageType.ERROR, ERROR_NOT_INITIALIZED)
            except ValidationError as e:
                logger.debug("Invalid %s payload on %s: %s", message.type, self._connection_id, e)
                await self._emit(MessageType.ERROR, ERROR_BAD_MESSAGE)

    async def _dispatch(self, message: InboundMessage) -> None:
        if message.type == MessageType.INIT.value:
            await self._handle_init(InitData.model_validate(message.data))
        elif message.type == MessageType.COMMAND.value:
            session = self._require_session()
            await self._handle_command(CommandData.model_validate(message.data), session)
        elif message.type == MessageType.RESIZE.value:
            self._require_session()
            size = TerminalSize.model_validate(message.data)
            await self._emit(MessageType.RESIZE_ACK, size)
        else:
            await self._emit(MessageType.ERROR, ERROR_UNKNOWN_TYPE)

    def _require_session(self) -> Session:
        if self._session is None or self._state is not ConnectionState.ACTIVE:
            raise SessionNotInitialized(ERROR_NOT_INITIALIZED)
        return self._session

    async def _handle_init(self, data: InitData) -> None:
        try:
            session = await self._registry.init_session(data.session_id)
        except (SessionError, StoreError, OSError):
            logger.exception("Failed to initialize session %r", data.session_id)
            await self._emit(MessageType.ERROR, ERROR_INIT_FAILED)
            return

        # Re-init replaces the current binding
        self._registry.unbind(self._connection_id)
        self._registry.bind(self._connection_id, session)
        self._session = session
        self._state = ConnectionState.ACTIVE
        logger.info(
            "Connection %s initialized session %s in %s",
            self._connection_id, session.id, session.current_directory,
        )

        await self._emit(
            MessageType.OUTPUT,
            OutputData(output=self._welcome_banner(session), exit_code="0"),
        )
        await self._emit(MessageType.PROMPT, self._prompt(session))

    async def _handle_command(self, data: CommandData, session: Session) -> None:
        command = data.command
        if not command.strip():
            return

        try:
            result = await self._run(command, session)
        except Exception:
            logger.exception("Command failed on %s: %r", self._connection_id, command[:80])
            result = CommandResult(
                output=f"bash: {command}: command not found\n",
                exit_code=EXIT_NOT_FOUND,
            )

        await self._recorder.record(CommandCreate.from_result(session.id, command, result))
        await self._emit(MessageType.OUTPUT, OutputData.from_result(result))
        if result.directory_changed:
            await self._emit(MessageType.PROMPT, self._prompt(session))

    async def _run(self, command: str, session: Session) -> CommandResult:
        result = await self._interceptor.intercept(command, session)
        if result is not None:
            return result
        if CommandInterceptor.is_semi_builtin(command):
            logger.debug("Running filesystem command for real: %s", command[:50])
        return await self._executor.execute(
            command, session.current_directory, session.environment_vars
        )

    def _prompt(self, session: Session) -> PromptData:
        config = self._registry.config
        directory = os.path.basename(session.current_directory.rstrip("/")) or "/"
        return PromptData(user=config.user, hostname=config.hostname, directory=directory)

    @staticmethod
    def _welcome_banner(session: Session) -> str:
        return (
            "Welcome to WebTerminal v1.0 - Development Environment\n"
            f"Connected to {platform.system()} {platform.release()}"
            f" • Session: {session.id[:8]}\n"
            f"Working Directory: {session.current_directory}\n"
            "\n"
            "Quick Start:\n"
            "- Try 'node hello.js' or 'python3 app.py'\n"
            "- Run 'cat welcome.txt' for an overview\n"
            "- Use 'cd sample-project' for a ready project\n"
            "- Type 'help' for built-in commands\n"
            "\n"
        )

    async def _emit(self, message_type: MessageType, data: Any) -> None:
        if self._state is ConnectionState.CLOSED:
            return
        await self._send(envelope(message_type, data))


class SessionNotInitialized(Exception):
    """Raised when a session-bound operation runs before ``init``."""
