"""Device access module for papernote.

Lists and pulls camera photos from the bound Android device and handles
the USB / wireless connection bootstrap. The abstract bridge lets the
watch loop run against fakes in tests.

Public API:
    DeviceBridge -- Abstract base class (list_photos, pull)
    AdbBridge -- adb-backed implementation
    DeviceLocator -- Device discovery and USB / wireless binding
"""

from papernote.device.base import ConnectionBootstrapError, DeviceBridge, DeviceError

__all__ = [
    "ConnectionBootstrapError",
    "DeviceBridge",
    "DeviceError",
    "AdbBridge",
    "AdbClient",
    "DeviceLocator",
]


def __getattr__(name: str) -> type:
    """Lazy import for the adb-backed implementations."""
    if name in ("AdbBridge", "AdbClient"):
        from papernote.device import adb
        return getattr(adb, name)
    if name == "DeviceLocator":
        from papernote.device.locator import DeviceLocator
        return DeviceLocator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
