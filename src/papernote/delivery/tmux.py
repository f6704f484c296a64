"""tmux workspace and the channel that pastes notes into it.

The workspace lives on its own tmux socket so it never collides with the
user's regular tmux server. Layout::

    +--------------------+-----------+
    |                    | nvim      |
    |  coding assistant  | notes.md  |
    |       (65%)        +-----------+
    |                    | watcher   |
    +--------------------+-----------+
"""

from __future__ import annotations

import logging
import os
import shlex

from papernote.delivery.base import DeliveryError, SessionChannel
from papernote.domain.models import DeliveryReceipt
from papernote.utils.process import CommandResult, run_command

logger = logging.getLogger(__name__)

DEFAULT_SOCKET = "paper-claude"
DEFAULT_SESSION = "main"
WINDOW_NAME = "paper-claude"


def inside_tmux() -> bool:
    """Whether this process runs inside any tmux client."""
    return bool(os.environ.get("TMUX"))


class TmuxWorkspace:
    """Creates, inspects, and feeds the multi-pane tmux session."""

    def __init__(
        self,
        socket: str = DEFAULT_SOCKET,
        session: str = DEFAULT_SESSION,
        tmux_path: str = "tmux",
    ) -> None:
        self._socket = socket
        self._session = session
        self._tmux_path = tmux_path
        self._assistant_pane: str | None = None

    @property
    def session(self) -> str:
        return self._session

    async def _tmux(self, *args: str) -> CommandResult:
        """Run a tmux command against the workspace socket."""
        try:
            return await run_command(self._tmux_path, "-L", self._socket, *args)
        except OSError as e:
            logger.warning("Cannot run %s: %s", self._tmux_path, e)
            return CommandResult(returncode=127, stdout="", stderr=str(e))

    async def session_exists(self) -> bool:
        result = await self._tmux("has-session", "-t", self._session)
        return result.ok

    async def list_panes(self, fmt: str = "#{window_index}.#{pane_index}") -> list[str]:
        result = await self._tmux("list-panes", "-t", self._session, "-F", fmt)
        return [line for line in result.stdout.strip().splitlines() if line]

    async def ensure_session(
        self,
        assistant_command: str,
        notes_path: str,
        watcher_command: str,
        workdir: str | None = None,
    ) -> bool:
        """Create the workspace layout unless the session already exists.

        Returns:
            True if a new session was created, False if one was running.
        """
        if await self.session_exists():
            logger.info("tmux session %s already exists", self._session)
            return False

        cd = f"cd {shlex.quote(workdir)} && " if workdir else ""
        result = await self._tmux("new-session", "-d", "-s", self._session, "-x", "200", "-y", "50")
        if not result.ok:
            raise DeliveryError(f"Cannot create tmux session: {result.stderr.strip()}", channel="tmux")

        panes = await self.list_panes()
        first_pane = panes[0] if panes else "0.0"
        window = first_pane.split(".")[0]

        # Left: coding assistant
        self._assistant_pane = f"{self._session}:{first_pane}"
        await self._tmux("send-keys", "-t", self._assistant_pane, f"{cd}{assistant_command}", "Enter")

        # Top-right: notes
        await self._tmux("split-window", "-h", "-t", self._assistant_pane, "-p", "35")
        right = (await self.list_panes("#{pane_index}"))[-1]
        notes_pane = f"{self._session}:{window}.{right}"
        await self._tmux("send-keys", "-t", notes_pane, f"nvim {shlex.quote(notes_path)}", "Enter")

        # Bottom-right: watcher
        await self._tmux("split-window", "-v", "-t", notes_pane, "-p", "30")
        bottom = (await self.list_panes("#{pane_index}"))[-1]
        watcher_pane = f"{self._session}:{window}.{bottom}"
        await self._tmux("send-keys", "-t", watcher_pane, f"{cd}{watcher_command}", "Enter")

        await self._tmux("select-pane", "-t", self._assistant_pane)
        logger.info("Created tmux session %s", self._session)
        return True

    async def assistant_pane(self) -> str:
        """Target of the assistant pane: the first pane of the session."""
        if self._assistant_pane is None:
            panes = await self.list_panes()
            self._assistant_pane = f"{self._session}:{panes[0] if panes else '0.0'}"
        return self._assistant_pane

    async def route_message(self, text: str) -> None:
        """Paste text into the assistant pane and submit it.

        Uses a paste buffer rather than send-keys so multi-line notes and
        shell metacharacters arrive intact.

        Raises:
            DeliveryError: If any tmux step fails.
        """
        pane = await self.assistant_pane()
        for args in (
            ("set-buffer", "--", text),
            ("paste-buffer", "-t", pane),
            ("send-keys", "-t", pane, "Enter"),
        ):
            result = await self._tmux(*args)
            if not result.ok:
                raise DeliveryError(
                    f"tmux {args[0]} failed: {result.stderr.strip() or result.returncode}",
                    channel="tmux",
                )

    async def attach(self) -> None:
        """Bring the workspace to the foreground.

        Inside tmux a new window attaches to the workspace; otherwise this
        process is replaced by a tmux client.
        """
        if inside_tmux():
            await run_command(self._tmux_path, "new-window", "-n", WINDOW_NAME)
            await run_command(
                self._tmux_path, "send-keys", "-t", WINDOW_NAME,
                f"TMUX= {self._tmux_path} -L {self._socket} attach-session -t {self._session}",
                "Enter",
            )
            await run_command(self._tmux_path, "select-window", "-t", WINDOW_NAME)
            print(f"Switched to window '{WINDOW_NAME}'")
            return

        print("Attaching...")
        os.execvp(self._tmux_path, [self._tmux_path, "-L", self._socket, "attach", "-t", self._session])


class TmuxChannel(SessionChannel):
    """Delivers notes by pasting them into the workspace's assistant pane."""

    def __init__(self, workspace: TmuxWorkspace) -> None:
        self._workspace = workspace

    @property
    def name(self) -> str:
        return "tmux"

    async def deliver(self, text: str) -> DeliveryReceipt:
        if not await self._workspace.session_exists():
            raise DeliveryError(
                f"tmux session {self._workspace.session} is not running", channel=self.name
            )
        await self._workspace.route_message(text)
        return DeliveryReceipt(channel=self.name, detail=await self._workspace.assistant_pane())
