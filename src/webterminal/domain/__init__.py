"""Domain models for webterminal.

This package contains the core data structures, enumerations, and value
objects used throughout the system. All models use Pydantic v2 for
validation and serialization.
"""

from webterminal.domain.models import (
    CommandCreate,
    CommandRecord,
    CommandResult,
    ExitCode,
    FileCreate,
    FileNode,
    MessageType,
    Session,
    SessionCreate,
)

__all__ = [
    "CommandCreate",
    "CommandRecord",
    "CommandResult",
    "ExitCode",
    "FileCreate",
    "FileNode",
    "MessageType",
    "Session",
    "SessionCreate",
]
