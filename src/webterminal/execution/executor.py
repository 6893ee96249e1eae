"""Process executor for commands that are not handled as built-ins.

Runs a command line through a shell inside the session's working
directory and environment. Every run is bounded by a wall-clock
timeout and a cap on combined stdout+stderr; exceeding either kills
the whole process group and returns what was captured so far.

The blocklist is a plain substring filter. It keeps the obvious
foot-guns out of a shared host but is not an isolation boundary.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import signal

from webterminal.config.settings import DEFAULT_BLOCKLIST, ExecutorConfig
from webterminal.domain.models import EXIT_FAILURE, EXIT_OK, CommandResult, ExitCode

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024
_DRAIN_TIMEOUT = 5.0


def split_command(command_line: str) -> tuple[str, list[str]]:
    """Split a command line into its verb and whitespace-delimited arguments."""
    parts = command_line.strip().split()
    if not parts:
        return "", []
    return parts[0], parts[1:]


class LimitKind(str, enum.Enum):
    """Which resource limit stopped a process."""

    TIMEOUT = "timeout"
    OUTPUT = "output"


class ProcessExecutor:
    """Runs shell command lines as child processes with resource limits."""

    def __init__(
        self,
        shell: str = "/bin/bash",
        timeout: float = 30.0,
        max_output_bytes: int = 1024 * 1024,
        blocklist: list[str] | None = None,
    ) -> None:
        self._shell = shell
        self._timeout = timeout
        self._max_output_bytes = max_output_bytes
        self._blocklist = list(DEFAULT_BLOCKLIST if blocklist is None else blocklist)

    @classmethod
    def from_config(cls, config: ExecutorConfig) -> ProcessExecutor:
        return cls(
            shell=config.shell,
            timeout=config.timeout,
            max_output_bytes=config.max_output_bytes,
            blocklist=config.blocklist,
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def max_output_bytes(self) -> int:
        return self._max_output_bytes

    def blocked_pattern(self, command_line: str) -> str | None:
        """Return the first blocklist entry found in the command line, if any."""
        for pattern in self._blocklist:
            if pattern in command_line:
                return pattern
        return None

    async def execute(
        self, command_line: str, cwd: str, env: dict[str, str]
    ) -> CommandResult:
        """Run ``command_line`` in ``cwd`` with ``env`` layered over os.environ.

        Raises:
            ExecutorFailure: If the process could not be spawned at all.
        """
        verb, _ = split_command(command_line)

        pattern = self.blocked_pattern(command_line)
        if pattern is not None:
            logger.warning("Blocked command %r (matched %r)", command_line[:80], pattern)
            return CommandResult(
                output=f"bash: {verb}: Operation not permitted in sandboxed environment\n",
                exit_code=EXIT_FAILURE,
            )

        try:
            process = await asyncio.create_subprocess_exec(
                self._shell, "-c", command_line,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env={**os.environ, **env},
                start_new_session=True,
            )
        except OSError as e:
            raise ExecutorFailure(f"Failed to spawn {verb!r}: {e}", command=command_line) from e

        logger.debug("Spawned pid=%d for %r in %s", process.pid, command_line[:80], cwd)
        try:
            stdout, stderr, limit = await self._collect(process)
            returncode = await process.wait()
        except asyncio.CancelledError:
            if process.returncode is None:
                self._kill(process)
            logger.info("Cancelled pid=%d for %r", process.pid, command_line[:80])
            raise

        if limit is not None:
            logger.warning(
                "Killed pid=%d (%s limit) for %r", process.pid, limit.value, command_line[:80]
            )
        return self._build_result(command_line, stdout, stderr, returncode, limit)

    async def _collect(
        self, process: asyncio.subprocess.Process
    ) -> tuple[bytes, bytes, LimitKind | None]:
        """Read both pipes until EOF or the timeout fires.

        Past the output cap the process is killed and the rest of each
        pipe is read and dropped, so both readers always end at EOF.
        """
        stdout = bytearray()
        stderr = bytearray()
        limit: LimitKind | None = None

        async def pump(stream: asyncio.StreamReader, buffer: bytearray) -> None:
            nonlocal limit
            while True:
                chunk = await stream.read(_READ_CHUNK)
                if not chunk:
                    return
                room = self._max_output_bytes - len(stdout) - len(stderr)
                if len(chunk) <= room:
                    buffer.extend(chunk)
                    continue
                buffer.extend(chunk[:max(room, 0)])
                if limit is None:
                    limit = LimitKind.OUTPUT
                    self._kill(process)

        assert process.stdout is not None and process.stderr is not None
        readers = [
            asyncio.ensure_future(pump(process.stdout, stdout)),
            asyncio.ensure_future(pump(process.stderr, stderr)),
        ]
        try:
            _, pending = await asyncio.wait(readers, timeout=self._timeout)
            if pending:
                if limit is None:
                    limit = LimitKind.TIMEOUT
                self._kill(process)
                _, pending = await asyncio.wait(pending, timeout=_DRAIN_TIMEOUT)
                if pending:
                    logger.warning("Pipes of pid=%d still open after kill", process.pid)
        finally:
            for reader in readers:
                reader.cancel()

        return bytes(stdout), bytes(stderr), limit

    def _build_result(
        self,
        command_line: str,
        stdout: bytes,
        stderr: bytes,
        returncode: int,
        limit: LimitKind | None,
    ) -> CommandResult:
        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")

        if limit is None and returncode == 0:
            return CommandResult(output=out + err, exit_code=EXIT_OK)

        verb, _ = split_command(command_line)
        message = f"Command failed: {command_line}"
        if limit is LimitKind.TIMEOUT:
            message = f"bash: {verb}: command timed out after {self._timeout:g}s"
        elif limit is LimitKind.OUTPUT:
            message = f"bash: {verb}: output exceeded {self._max_output_bytes} bytes"
        output = out or err or message

        if returncode < 0:
            logger.debug("%r ended by %s", command_line[:80], _signal_name(-returncode))
            exit_code = EXIT_FAILURE
        else:
            exit_code = ExitCode.numeric(returncode)
        return CommandResult(output=output + "\n", exit_code=exit_code)

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        """SIGKILL the process group started for this command."""
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError:
            process.kill()


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"SIG{signum}"


class ExecutionError(Exception):
    """Base class for process executor failures."""

    def __init__(self, message: str, command: str = "") -> None:
        super().__init__(message)
        self.command = command


class ExecutorFailure(ExecutionError):
    """Raised when a command's process cannot be spawned."""
