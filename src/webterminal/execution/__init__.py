"""Command execution module for webterminal.

Built-in commands are answered by the CommandInterceptor from session
state; everything else runs through the ProcessExecutor.

Public API:
    CommandInterceptor -- Built-in command dispatcher
    ProcessExecutor -- Shell process runner with limits and a blocklist
"""

from webterminal.execution.executor import (
    ExecutionError,
    ExecutorFailure,
    LimitKind,
    ProcessExecutor,
    split_command,
)
from webterminal.execution.interceptor import CommandInterceptor

__all__ = [
    "CommandInterceptor",
    "ExecutionError",
    "ExecutorFailure",
    "LimitKind",
    "ProcessExecutor",
    "split_command",
]
