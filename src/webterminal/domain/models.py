"""Core domain models for the webterminal system.

These models represent the data flowing through the server: sessions
and their sandboxed environment, the results of running a command, the
append-only command history, the synthetic file tree shown in the UI,
and the JSON envelopes exchanged over the terminal WebSocket.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Base for models whose JSON form uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class MessageType(str, enum.Enum):
    """Envelope ``type`` values used on the terminal WebSocket."""

    # Inbound
    INIT = "init"
    COMMAND = "command"
    RESIZE = "resize"

    # Outbound
    CONNECTED = "connected"
    OUTPUT = "output"
    ERROR = "error"
    PROMPT = "prompt"
    RESIZE_ACK = "resize_ack"


# ---------------------------------------------------------------------------
# Command Results
# ---------------------------------------------------------------------------


class ExitCode(BaseModel):
    """Exit status of a command.

    Either a numeric status or a raw, non-numeric one, such as a signal
    name some shells report. Always rendered as text on the wire and in
    history.
    """

    model_config = ConfigDict(frozen=True)

    value: int | str

    @classmethod
    def numeric(cls, code: int) -> ExitCode:
        return cls(value=int(code))

    @classmethod
    def raw(cls, status: str) -> ExitCode:
        return cls(value=status)

    @classmethod
    def parse(cls, text: str | int) -> ExitCode:
        """Build an ExitCode from its textual form ("0", "127", "SIGKILL")."""
        if isinstance(text, int):
            return cls.numeric(text)
        stripped = text.strip()
        if stripped.lstrip("-").isdigit():
            return cls.numeric(int(stripped))
        return cls.raw(stripped)

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.value, int)

    @property
    def succeeded(self) -> bool:
        return self.value == 0

    def __str__(self) -> str:
        return str(self.value)


EXIT_OK = ExitCode.numeric(0)
EXIT_FAILURE = ExitCode.numeric(1)
EXIT_NOT_FOUND = ExitCode.numeric(127)


class CommandResult(BaseModel):
    """Outcome of a built-in or executed command."""

    model_config = ConfigDict(frozen=True)

    output: str = Field(default="", description="Combined output shown to the user")
    exit_code: ExitCode = Field(default=EXIT_OK)
    directory_changed: bool = Field(
        default=False, description="True when the session's working directory moved"
    )


# ---------------------------------------------------------------------------
# Session Models
# ---------------------------------------------------------------------------


class SessionCreate(_CamelModel):
    """Fields supplied when a session record is first stored."""

    user_id: str | None = Field(default=None)
    current_directory: str = Field(default="/home/user")
    environment_vars: dict[str, str] = Field(default_factory=dict)


class Session(_CamelModel):
    """Server-side state of one terminal session.

    ``current_directory`` always points inside the session's sandbox once
    the session has been initialized over a connection.
    """

    id: str = Field(description="Opaque session identifier")
    user_id: str | None = Field(default=None)
    current_directory: str = Field(description="Absolute working directory")
    environment_vars: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)
    last_activity: datetime = Field(default_factory=datetime.now)


# ---------------------------------------------------------------------------
# History Models
# ---------------------------------------------------------------------------


class CommandCreate(_CamelModel):
    """A command waiting to be appended to a session's history."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    command: str
    output: str
    exit_code: str

    @classmethod
    def from_result(cls, session_id: str, command: str, result: CommandResult) -> CommandCreate:
        return cls(
            session_id=session_id,
            command=command,
            output=result.output,
            exit_code=str(result.exit_code),
        )


class CommandRecord(_CamelModel):
    """An executed command as stored in history. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    command: str
    output: str
    exit_code: str = Field(description="Exit status as text")
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def status(self) -> ExitCode:
        return ExitCode.parse(self.exit_code)


class FileCreate(_CamelModel):
    session_id: str
    path: str
    name: str
    content: str | None = Field(default=None)
    is_directory: bool = Field(default=False)
    permissions: str = Field(default="644")


class FileNode(_CamelModel):
    """An entry of the synthetic file tree rendered by the UI.

    Not authoritative over the real sandbox contents.
    """

    id: str
    session_id: str
    path: str
    name: str
    content: str | None = Field(default=None)
    is_directory: bool = Field(default=False)
    permissions: str = Field(default="644")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


# ---------------------------------------------------------------------------
# Wire Protocol Models
# ---------------------------------------------------------------------------


class InboundMessage(BaseModel):
    """Envelope received from the browser: ``{"type": ..., "data": ...}``."""

    type: str
    data: Any = None


class InitData(_CamelModel):
    session_id: str = Field(min_length=1)


class CommandData(BaseModel):
    command: str


class TerminalSize(BaseModel):
    cols: int
    rows: int


class OutputData(_CamelModel):
    output: str
    exit_code: str

    @classmethod
    def from_result(cls, result: CommandResult) -> OutputData:
        return cls(output=result.output, exit_code=str(result.exit_code))


class PromptData(BaseModel):
    user: str
    hostname: str
    directory: str
