"""Shared test fixtures for the webterminal test suite.

Provides the common building blocks used across unit tests: a sandbox
root under tmp_path, an in-memory store, the session registry, a real
process executor with short limits, and a connection handler wired to
a list that captures everything it sends.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from webterminal.config.settings import SandboxConfig
from webterminal.endpoint.handler import ConnectionHandler
from webterminal.execution.executor import ProcessExecutor
from webterminal.execution.interceptor import CommandInterceptor
from webterminal.sandbox.registry import SessionRegistry
from webterminal.storage.memory import MemoryHistoryStore
from webterminal.storage.recorder import CommandRecorder


# ---------------------------------------------------------------------------
# Sandbox / Store Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sandbox_root(tmp_path: Path) -> Path:
    """Directory under which session sandboxes are created."""
    return tmp_path / "sandboxes"


@pytest.fixture
def sandbox_config(sandbox_root: Path) -> SandboxConfig:
    return SandboxConfig(root=sandbox_root)


@pytest.fixture
def store() -> MemoryHistoryStore:
    return MemoryHistoryStore()


@pytest.fixture
def registry(store: MemoryHistoryStore, sandbox_config: SandboxConfig) -> SessionRegistry:
    return SessionRegistry(store, sandbox_config)


# ---------------------------------------------------------------------------
# Execution Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def executor() -> ProcessExecutor:
    """A real executor with limits small enough for tests."""
    return ProcessExecutor(timeout=5.0, max_output_bytes=64 * 1024)


@pytest.fixture
def interceptor(registry: SessionRegistry) -> CommandInterceptor:
    return CommandInterceptor(registry)


@pytest.fixture
def recorder(store: MemoryHistoryStore) -> CommandRecorder:
    """A recorder that is not started; ``flush()`` writes inline."""
    return CommandRecorder(store, queue_size=100)


# ---------------------------------------------------------------------------
# Connection Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sent() -> list[dict[str, Any]]:
    """Every message a handler sends, in order."""
    return []


@pytest.fixture
def handler(
    sent: list[dict[str, Any]],
    registry: SessionRegistry,
    interceptor: CommandInterceptor,
    executor: ProcessExecutor,
    recorder: CommandRecorder,
) -> ConnectionHandler:
    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    return ConnectionHandler(
        send=send,
        registry=registry,
        interceptor=interceptor,
        executor=executor,
        recorder=recorder,
        connection_id="conn-1",
    )
