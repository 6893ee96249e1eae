"""Tests for the in-memory history store."""

from __future__ import annotations

import pytest

from webterminal.domain.models import CommandCreate, FileCreate, SessionCreate
from webterminal.storage.base import HistoryStore, StoreError
from webterminal.storage.memory import MemoryHistoryStore


def _command(session_id: str, command: str, exit_code: str = "0") -> CommandCreate:
    return CommandCreate(session_id=session_id, command=command, output="", exit_code=exit_code)


class TestHistoryStoreInterface:
    def test_cannot_instantiate_abstract_class(self) -> None:
        with pytest.raises(TypeError):
            HistoryStore()  # type: ignore[abstract]

    def test_store_error_carries_store_name(self) -> None:
        error = StoreError("duplicate", store="memory")
        assert str(error) == "duplicate"
        assert error.store == "memory"


class TestSessions:
    @pytest.mark.asyncio
    async def test_create_generates_id(self, store: MemoryHistoryStore) -> None:
        session = await store.create_session(SessionCreate(user_id="user"))
        assert session.id
        assert session.current_directory == "/home/user"
        assert await store.get_session(session.id) == session

    @pytest.mark.asyncio
    async def test_create_with_explicit_id(self, store: MemoryHistoryStore) -> None:
        session = await store.create_session(SessionCreate(), session_id="abc123")
        assert session.id == "abc123"

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, store: MemoryHistoryStore) -> None:
        await store.create_session(SessionCreate(), session_id="abc123")
        with pytest.raises(StoreError):
            await store.create_session(SessionCreate(), session_id="abc123")

    @pytest.mark.asyncio
    async def test_get_missing(self, store: MemoryHistoryStore) -> None:
        assert await store.get_session("nope") is None

    @pytest.mark.asyncio
    async def test_update_bumps_last_activity(self, store: MemoryHistoryStore) -> None:
        session = await store.create_session(SessionCreate())
        updated = await store.update_session(session.id, current_directory="/tmp")
        assert updated is not None
        assert updated.current_directory == "/tmp"
        assert updated.id == session.id
        assert updated.last_activity >= session.last_activity

    @pytest.mark.asyncio
    async def test_update_missing(self, store: MemoryHistoryStore) -> None:
        assert await store.update_session("nope", current_directory="/tmp") is None

    @pytest.mark.asyncio
    async def test_returned_sessions_are_copies(self, store: MemoryHistoryStore) -> None:
        session = await store.create_session(SessionCreate(environment_vars={"A": "1"}))
        session.environment_vars["A"] = "2"
        stored = await store.get_session(session.id)
        assert stored is not None
        assert stored.environment_vars == {"A": "1"}


class TestCommandHistory:
    @pytest.mark.asyncio
    async def test_history_oldest_first(self, store: MemoryHistoryStore) -> None:
        for command in ("one", "two", "three"):
            await store.add_command(_command("s1", command))
        history = await store.get_command_history("s1")
        assert [c.command for c in history] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_history_limit_keeps_most_recent(self, store: MemoryHistoryStore) -> None:
        for i in range(5):
            await store.add_command(_command("s1", f"cmd{i}"))
        history = await store.get_command_history("s1", limit=2)
        assert [c.command for c in history] == ["cmd3", "cmd4"]

    @pytest.mark.asyncio
    async def test_history_is_per_session(self, store: MemoryHistoryStore) -> None:
        await store.add_command(_command("s1", "ls"))
        await store.add_command(_command("s2", "pwd"))
        history = await store.get_command_history("s2")
        assert [c.command for c in history] == ["pwd"]

    @pytest.mark.asyncio
    async def test_record_fields(self, store: MemoryHistoryStore) -> None:
        record = await store.add_command(_command("s1", "false", exit_code="1"))
        assert record.id
        assert record.exit_code == "1"
        assert record.timestamp is not None


class TestFileTree:
    @pytest.mark.asyncio
    async def test_new_session_gets_initial_tree(self, store: MemoryHistoryStore) -> None:
        session = await store.create_session(SessionCreate())
        tree = await store.get_file_tree(session.id)
        paths = {node.path for node in tree}
        assert "/home/user" in paths
        assert "/home/user/app.py" in paths
        assert len(tree) == 7

    @pytest.mark.asyncio
    async def test_tree_lists_directories_first(self, store: MemoryHistoryStore) -> None:
        session = await store.create_session(SessionCreate())
        tree = await store.get_file_tree(session.id)
        flags = [node.is_directory for node in tree]
        assert flags == sorted(flags, reverse=True)
        directories = [node.name for node in tree if node.is_directory]
        assert directories == sorted(directories)

    @pytest.mark.asyncio
    async def test_get_files_by_path(self, store: MemoryHistoryStore) -> None:
        session = await store.create_session(SessionCreate())
        children = await store.get_files_by_path(session.id, "/home/user/projects")
        assert [node.path for node in children] == ["/home/user/projects/webapp"]

    @pytest.mark.asyncio
    async def test_file_crud(self, store: MemoryHistoryStore) -> None:
        node = await store.create_file(
            FileCreate(session_id="s1", path="/notes.txt", name="notes.txt", content="hi")
        )
        assert node.permissions == "644"
        assert await store.get_file("s1", "/notes.txt") == node

        updated = await store.update_file(node.id, content="bye")
        assert updated is not None
        assert updated.content == "bye"

        assert await store.delete_file(node.id) is True
        assert await store.delete_file(node.id) is False
        assert await store.get_file("s1", "/notes.txt") is None
        assert await store.update_file(node.id, content="x") is None
