"""One-shot CLI delivery.

Runs the assistant CLI in print mode once per note. After the first
successful delivery the conversation is continued so later notes can
refer to earlier ones.
"""

from __future__ import annotations

import logging

from papernote.delivery.base import DeliveryError, SessionChannel
from papernote.domain.models import DeliveryReceipt
from papernote.utils.process import run_command

logger = logging.getLogger(__name__)


class ClaudeCliChannel(SessionChannel):
    """Delivers each note as the prompt of a fresh CLI invocation."""

    def __init__(
        self,
        command: str = "claude",
        skip_permissions: bool = True,
        continue_conversation: bool = True,
        resume_existing: bool = False,
        working_dir: str | None = None,
    ) -> None:
        self._command = command
        self._skip_permissions = skip_permissions
        self._continue_conversation = continue_conversation
        self._working_dir = working_dir
        self._has_conversation = resume_existing

    @property
    def name(self) -> str:
        return "claude-cli"

    def build_args(self, text: str) -> list[str]:
        """Argument vector for delivering text."""
        args = [self._command]
        if self._skip_permissions:
            args.append("--dangerously-skip-permissions")
        if self._continue_conversation and self._has_conversation:
            args.append("--continue")
        args += ["-p", text]
        return args

    async def deliver(self, text: str) -> DeliveryReceipt:
        args = self.build_args(text)
        try:
            result = await run_command(*args, cwd=self._working_dir)
        except OSError as e:
            raise DeliveryError(f"Cannot run {self._command}: {e}", channel=self.name) from e

        if not result.ok:
            raise DeliveryError(
                f"{self._command} exited {result.returncode}: {result.stderr.strip()[:200]}",
                channel=self.name,
            )

        self._has_conversation = True
        logger.debug("Assistant replied: %s", result.stdout.strip()[:200])
        return DeliveryReceipt(channel=self.name, detail=result.stdout.strip())
