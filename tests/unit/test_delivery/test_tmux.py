"""Tests for the tmux workspace and TmuxChannel."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from papernote.delivery.base import DeliveryError
from papernote.delivery.tmux import TmuxChannel, TmuxWorkspace
from papernote.utils.process import CommandResult


def _result(returncode: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(returncode=returncode, stdout=stdout, stderr=stderr)


def _commands(run: AsyncMock) -> list[tuple[str, ...]]:
    """tmux subcommand argv (after `tmux -L socket`) for each call."""
    return [call.args[3:] for call in run.await_args_list]


@pytest.fixture
def workspace() -> TmuxWorkspace:
    return TmuxWorkspace(socket="paper-claude", session="main")


class TestRouteMessage:
    @pytest.mark.asyncio
    async def test_pastes_and_submits(self, workspace: TmuxWorkspace) -> None:
        run = AsyncMock(return_value=_result(stdout="0.0\n0.1\n0.2\n"))
        with patch("papernote.delivery.tmux.run_command", run):
            await workspace.route_message("refactor utils.py\nthen run tests")

        assert run.await_args_list[0].args[:3] == ("tmux", "-L", "paper-claude")
        assert _commands(run) == [
            ("list-panes", "-t", "main", "-F", "#{window_index}.#{pane_index}"),
            ("set-buffer", "--", "refactor utils.py\nthen run tests"),
            ("paste-buffer", "-t", "main:0.0"),
            ("send-keys", "-t", "main:0.0", "Enter"),
        ]

    @pytest.mark.asyncio
    async def test_text_starting_with_dash(self, workspace: TmuxWorkspace) -> None:
        run = AsyncMock(return_value=_result(stdout="0.0\n"))
        with patch("papernote.delivery.tmux.run_command", run):
            await workspace.route_message("-v flag should be documented")
        assert ("set-buffer", "--", "-v flag should be documented") in _commands(run)

    @pytest.mark.asyncio
    async def test_failing_step_raises(self, workspace: TmuxWorkspace) -> None:
        run = AsyncMock(side_effect=[
            _result(stdout="0.0\n"),
            _result(),
            _result(returncode=1, stderr="can't find pane"),
        ])
        with patch("papernote.delivery.tmux.run_command", run):
            with pytest.raises(DeliveryError, match="paste-buffer") as exc_info:
                await workspace.route_message("hello")
        assert exc_info.value.channel == "tmux"

    @pytest.mark.asyncio
    async def test_missing_tmux_binary(self, workspace: TmuxWorkspace) -> None:
        run = AsyncMock(side_effect=FileNotFoundError("tmux"))
        with patch("papernote.delivery.tmux.run_command", run):
            assert await workspace.session_exists() is False


class TestEnsureSession:
    @pytest.mark.asyncio
    async def test_existing_session_is_left_alone(self, workspace: TmuxWorkspace) -> None:
        run = AsyncMock(return_value=_result())
        with patch("papernote.delivery.tmux.run_command", run):
            created = await workspace.ensure_session("claude", "notes.md", "papernote watch")
        assert created is False
        assert _commands(run) == [("has-session", "-t", "main")]

    @pytest.mark.asyncio
    async def test_creates_layout(self, workspace: TmuxWorkspace) -> None:
        responses = {
            "has-session": [_result(returncode=1)],
            "list-panes": [
                _result(stdout="0.0\n"),
                _result(stdout="0\n1\n"),
                _result(stdout="0\n1\n2\n"),
            ],
        }

        async def fake_run(*args: str, cwd: str | None = None) -> CommandResult:
            queue = responses.get(args[3])
            return queue.pop(0) if queue else _result()

        run = AsyncMock(side_effect=fake_run)
        with patch("papernote.delivery.tmux.run_command", run):
            created = await workspace.ensure_session(
                "claude --dangerously-skip-permissions", "notes.md", "papernote watch", workdir="/work",
            )

        assert created is True
        commands = _commands(run)
        assert ("new-session", "-d", "-s", "main", "-x", "200", "-y", "50") in commands
        assert ("send-keys", "-t", "main:0.0", "cd /work && claude --dangerously-skip-permissions", "Enter") in commands
        assert ("split-window", "-h", "-t", "main:0.0", "-p", "35") in commands
        assert ("send-keys", "-t", "main:0.1", "nvim notes.md", "Enter") in commands
        assert ("split-window", "-v", "-t", "main:0.1", "-p", "30") in commands
        assert ("send-keys", "-t", "main:0.2", "cd /work && papernote watch", "Enter") in commands
        assert commands[-1] == ("select-pane", "-t", "main:0.0")
        assert await workspace.assistant_pane() == "main:0.0"

    @pytest.mark.asyncio
    async def test_new_session_failure_raises(self, workspace: TmuxWorkspace) -> None:
        run = AsyncMock(side_effect=[
            _result(returncode=1),
            _result(returncode=1, stderr="no server"),
        ])
        with patch("papernote.delivery.tmux.run_command", run):
            with pytest.raises(DeliveryError, match="Cannot create tmux session"):
                await workspace.ensure_session("claude", "notes.md", "papernote watch")


class TestTmuxChannel:
    @pytest.mark.asyncio
    async def test_deliver(self) -> None:
        workspace = AsyncMock(spec=TmuxWorkspace)
        workspace.session_exists.return_value = True
        workspace.assistant_pane.return_value = "main:0.0"

        receipt = await TmuxChannel(workspace).deliver("add tests")

        workspace.route_message.assert_awaited_once_with("add tests")
        assert receipt.channel == "tmux"
        assert receipt.detail == "main:0.0"

    @pytest.mark.asyncio
    async def test_missing_session_raises(self) -> None:
        workspace = AsyncMock(spec=TmuxWorkspace)
        workspace.session = "main"
        workspace.session_exists.return_value = False

        with pytest.raises(DeliveryError, match="not running"):
            await TmuxChannel(workspace).deliver("add tests")
        workspace.route_message.assert_not_awaited()
