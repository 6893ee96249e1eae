"""Per-session sandboxes and the connection-to-session registry."""

from webterminal.sandbox.registry import (
    AlreadyBound,
    DirectoryNotFound,
    DirectoryPermissionDenied,
    InvalidSessionId,
    NotADirectory,
    SessionError,
    SessionRegistry,
)

__all__ = [
    "AlreadyBound",
    "DirectoryNotFound",
    "DirectoryPermissionDenied",
    "InvalidSessionId",
    "NotADirectory",
    "SessionError",
    "SessionRegistry",
]
