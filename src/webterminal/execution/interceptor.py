"""Built-in command handling.

Only commands whose answer depends on session state rather than on
file contents are answered here: ``cd``, ``pwd``, ``clear`` and
``help``. ``ls``, ``cat``, ``mkdir`` and ``touch`` are recognized but
always run for real so their output matches the filesystem exactly.
Anything else is left to the process executor.
"""

from __future__ import annotations

import logging
import os

from webterminal.domain.models import EXIT_FAILURE, EXIT_OK, CommandResult, Session
from webterminal.execution.executor import split_command
from webterminal.sandbox.registry import (
    DirectoryNotFound,
    DirectoryPermissionDenied,
    NotADirectory,
    SessionRegistry,
)

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\x1b[2J\x1b[H"

BUILTINS = frozenset({"clear", "pwd", "cd", "help"})
SEMI_BUILTINS = frozenset({"ls", "cat", "mkdir", "touch"})

HELP_TEXT = """WebTerminal Commands:
Built-in commands:
  clear     - Clear the terminal screen
  pwd       - Print current directory
  cd        - Change directory
  help      - Show this help message

Filesystem commands (run for real in your sandbox):
  ls        - List directory contents
  cat       - Display file contents
  mkdir     - Create directories
  touch     - Create files

System information:
  whoami    - Current user
  uname     - System information
  date      - Current date and time
  env       - Environment variables

Development:
  node, npm, python3, git

Commands run in a per-session sandbox with a 30 second timeout.
Privileged commands (sudo, su, reboot, ...) are not permitted.
"""


class CommandInterceptor:
    """Answers built-in commands from session state.

    ``intercept`` returns None for anything that must run as a process.
    """

    def __init__(self, registry: SessionRegistry, help_text: str = HELP_TEXT) -> None:
        self._registry = registry
        self._help_text = help_text

    @staticmethod
    def is_semi_builtin(command_line: str) -> bool:
        verb, _ = split_command(command_line)
        return verb in SEMI_BUILTINS

    async def intercept(self, command_line: str, session: Session) -> CommandResult | None:
        verb, args = split_command(command_line)
        if verb not in BUILTINS:
            return None

        logger.debug("Built-in %s for session %s", verb, session.id)
        if verb == "clear":
            return CommandResult(output=CLEAR_SCREEN, exit_code=EXIT_OK)
        if verb == "pwd":
            return CommandResult(output=session.current_directory + "\n", exit_code=EXIT_OK)
        if verb == "help":
            return CommandResult(output=self._help_text, exit_code=EXIT_OK)
        return await self._change_directory(args, session)

    async def _change_directory(self, args: list[str], session: Session) -> CommandResult:
        home = session.environment_vars.get("HOME", session.current_directory)
        target = args[0] if args else home

        if target == "~":
            new_path = home
        elif target.startswith("~/"):
            new_path = os.path.normpath(os.path.join(home, target[2:]))
        elif target == "..":
            new_path = os.path.dirname(session.current_directory)
        elif os.path.isabs(target):
            new_path = os.path.normpath(target)
        else:
            new_path = os.path.normpath(os.path.join(session.current_directory, target))

        try:
            await self._registry.update_directory(session, new_path)
        except DirectoryNotFound:
            return _cd_error(target, "No such file or directory")
        except NotADirectory:
            return _cd_error(target, "Not a directory")
        except DirectoryPermissionDenied:
            return _cd_error(target, "Permission denied")

        return CommandResult(output="", exit_code=EXIT_OK, directory_changed=True)


def _cd_error(target: str, reason: str) -> CommandResult:
    return CommandResult(output=f"bash: cd: {target}: {reason}\n", exit_code=EXIT_FAILURE)
