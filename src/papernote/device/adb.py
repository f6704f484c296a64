"""adb-backed device access.

Photo listing uses a single `adb shell` round trip that stats the camera
directory and sorts on the device, so each poll costs one command no
matter how many photos the roll holds.
"""

from __future__ import annotations

import logging
import posixpath
import shlex
from pathlib import Path

from pydantic import ValidationError

from papernote.device.base import DeviceBridge, DeviceError
from papernote.domain.models import PhotoRecord
from papernote.utils.process import CommandResult, run_command

logger = logging.getLogger(__name__)

DEFAULT_CAMERA_DIR = "/sdcard/DCIM/Camera"
DEFAULT_LIST_LIMIT = 5


class AdbClient:
    """Thin wrapper around the adb executable."""

    def __init__(self, adb_path: str = "adb") -> None:
        self._adb_path = adb_path

    @property
    def adb_path(self) -> str:
        return self._adb_path

    async def run(self, *args: str, target: str | None = None) -> CommandResult:
        """Run an adb subcommand, optionally pinned to one device.

        Raises:
            DeviceError: If the adb executable cannot be started.
        """
        cmd = [self._adb_path]
        if target:
            cmd += ["-s", target]
        cmd += list(args)
        try:
            return await run_command(*cmd)
        except OSError as e:
            raise DeviceError(f"Cannot run {self._adb_path}: {e}", target=target) from e


def parse_stat_listing(output: str, limit: int = DEFAULT_LIST_LIMIT) -> list[PhotoRecord]:
    """Parse `stat -c "%n %Y"` lines into records, newest first.

    The mtime is the last whitespace-separated token so paths containing
    spaces survive. Lines without a path or a positive integer mtime are
    dropped. Order among equal timestamps is unspecified.
    """
    records: list[PhotoRecord] = []
    for line in output.splitlines():
        parts = line.strip().rsplit(" ", 1)
        if len(parts) != 2:
            continue
        path, mtime = parts[0].strip(), parts[1]
        try:
            timestamp_ms = int(mtime) * 1000
        except ValueError:
            continue
        if not path or timestamp_ms <= 0:
            continue
        try:
            records.append(
                PhotoRecord(
                    remote_path=path,
                    filename=posixpath.basename(path),
                    captured_at_ms=timestamp_ms,
                )
            )
        except ValidationError:
            logger.debug("Skipping unparseable listing line: %r", line)

    records.sort(key=lambda r: r.captured_at_ms, reverse=True)
    return records[:limit]


class AdbBridge(DeviceBridge):
    """DeviceBridge that shells out to adb."""

    def __init__(
        self,
        client: AdbClient,
        camera_dir: str = DEFAULT_CAMERA_DIR,
        photo_extension: str = "jpg",
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> None:
        self._client = client
        self._camera_dir = camera_dir.rstrip("/")
        self._photo_extension = photo_extension.lstrip(".")
        self._limit = limit

    def listing_command(self) -> str:
        """Device-side shell pipeline that lists the newest photos."""
        glob = f"{shlex.quote(self._camera_dir)}/*.{self._photo_extension}"
        return f'stat -c "%n %Y" {glob} 2>/dev/null | sort -k2 -rn | head -{self._limit}'

    async def list_photos(self, target: str | None) -> list[PhotoRecord]:
        try:
            result = await self._client.run("shell", self.listing_command(), target=target)
        except DeviceError as e:
            logger.warning("Photo listing failed: %s", e)
            return []
        if not result.ok:
            logger.debug("Photo listing exited %d", result.returncode)
            return []
        return parse_stat_listing(result.stdout, self._limit)

    async def pull(self, remote_path: str, local_path: Path, target: str | None = None) -> bool:
        local_path = Path(local_path)
        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            result = await self._client.run("pull", remote_path, str(local_path), target=target)
        except (DeviceError, OSError) as e:
            logger.warning("Pull of %s failed: %s", remote_path, e)
            return False
        if not result.ok:
            logger.warning(
                "Pull of %s exited %d: %s",
                remote_path, result.returncode, result.stderr.strip()[:200],
            )
            return False
        return True
