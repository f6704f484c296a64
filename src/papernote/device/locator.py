"""Device discovery and connection bootstrap.

Resolves which device the watch loop talks to: the first authorized USB
device, or a device reached over adb-over-TCP. For wireless use the last
known device IP is remembered in a one-line config file so the USB cable
is only needed the first time.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

from papernote.device.adb import AdbClient
from papernote.device.base import ConnectionBootstrapError, DeviceError
from papernote.domain.models import DeviceInfo, DeviceState

logger = logging.getLogger(__name__)

DEFAULT_WIRELESS_PORT = 5555

_INET_RE = re.compile(r"inet (\d+\.\d+\.\d+\.\d+)")


def parse_devices(output: str) -> list[DeviceInfo]:
    """Parse `adb devices` output into DeviceInfo rows."""
    devices = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        serial, _, state = line.partition("\t")
        if not state:
            parts = line.split()
            if len(parts) < 2:
                continue
            serial, state = parts[0], parts[1]
        try:
            device_state = DeviceState(state.strip())
        except ValueError:
            device_state = DeviceState.UNKNOWN
        devices.append(DeviceInfo(serial=serial.strip(), state=device_state))
    return devices


class WirelessConfigStore:
    """Persists the last known device IP as a single plaintext line."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        if not self._path.exists():
            return None
        ip = self._path.read_text(encoding="utf-8").strip()
        return ip or None

    def save(self, ip: str) -> None:
        self._path.write_text(ip, encoding="utf-8")
        logger.info("Saved device IP %s to %s", ip, self._path)


class DeviceLocator:
    """Finds a device and binds it as the current target."""

    def __init__(
        self,
        client: AdbClient,
        config_store: WirelessConfigStore,
        wireless_port: int = DEFAULT_WIRELESS_PORT,
        switch_delay: float = 2.0,
    ) -> None:
        self._client = client
        self._config_store = config_store
        self._wireless_port = wireless_port
        self._switch_delay = switch_delay
        self._target: str | None = None

    def current_target(self) -> str | None:
        return self._target

    async def list_devices(self) -> list[DeviceInfo]:
        """Devices adb currently knows about. Empty if adb fails."""
        try:
            result = await self._client.run("devices")
        except DeviceError as e:
            logger.warning("adb devices failed: %s", e)
            return []
        return parse_devices(result.stdout)

    async def connect(self, target: str) -> bool:
        """adb connect to host:port; binds the target on success."""
        try:
            result = await self._client.run("connect", target)
        except DeviceError as e:
            logger.warning("adb connect %s failed: %s", target, e)
            return False
        # "failed to connect to ..." and "cannot connect to ..." both mean no
        output = result.stdout.lower()
        if "connected" in output and "cannot" not in output and "failed" not in output:
            self._target = target
            logger.info("Connected to %s", target)
            return True
        logger.info("adb connect %s: %s", target, result.stdout.strip())
        return False

    def _usb_devices(self, devices: list[DeviceInfo]) -> list[DeviceInfo]:
        return [d for d in devices if not d.is_wireless(self._wireless_port)]

    async def bootstrap_usb(self) -> str:
        """Bind the first authorized USB-attached device.

        Raises:
            ConnectionBootstrapError: If no authorized device is attached.
        """
        devices = self._usb_devices(await self.list_devices())
        ready = [d for d in devices if d.is_ready]
        if not ready:
            if any(d.state == DeviceState.UNAUTHORIZED for d in devices):
                raise ConnectionBootstrapError("Device unauthorized")
            raise ConnectionBootstrapError("No device")
        self._target = ready[0].serial
        logger.info("Using USB device %s", self._target)
        return self._target

    async def bootstrap_wireless(self) -> str:
        """Bind a device over adb-over-TCP, switching from USB if needed.

        Raises:
            ConnectionBootstrapError: If no wireless connection can be made.
        """
        saved_ip = self._config_store.load()
        devices = await self.list_devices()

        wireless = [d for d in devices if d.is_ready and d.is_wireless(self._wireless_port)]
        if wireless:
            preferred = f"{saved_ip}:{self._wireless_port}" if saved_ip else None
            serials = [d.serial for d in wireless]
            self._target = preferred if preferred in serials else serials[0]
            logger.info("Already connected wirelessly (%s)", self._target)
            return self._target

        if saved_ip:
            logger.info("Trying saved IP %s", saved_ip)
            if await self.connect(f"{saved_ip}:{self._wireless_port}"):
                return self._target  # type: ignore[return-value]

        usb = [d for d in self._usb_devices(devices) if d.is_ready]
        if not usb:
            raise ConnectionBootstrapError("No USB connection and no valid wireless config")
        usb_serial = usb[0].serial

        ip = await self._device_ip(usb_serial)
        if not ip:
            raise ConnectionBootstrapError("Could not get device IP", target=usb_serial)

        logger.info("Device IP: %s, switching to TCP mode", ip)
        try:
            await self._client.run("tcpip", str(self._wireless_port), target=usb_serial)
        except DeviceError as e:
            raise ConnectionBootstrapError(f"adb tcpip failed: {e}", target=usb_serial) from e
        await asyncio.sleep(self._switch_delay)

        if not await self.connect(f"{ip}:{self._wireless_port}"):
            raise ConnectionBootstrapError(f"Could not connect to {ip}:{self._wireless_port}")
        self._config_store.save(ip)
        return self._target  # type: ignore[return-value]

    async def _device_ip(self, serial: str) -> str | None:
        try:
            result = await self._client.run("shell", "ip", "addr", "show", "wlan0", target=serial)
        except DeviceError:
            return None
        match = _INET_RE.search(result.stdout)
        return match.group(1) if match else None
