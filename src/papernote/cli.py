"""Command-line interface for papernote.

Provides the main entry point for setting up the tmux workspace, running
the photo watcher, and running individual components for testing.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import shlex
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

BANNER = """
+---------------------------------------------------------------+
|         Paper Note -> Coding Assistant                        |
+---------------------------------------------------------------+
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="papernote",
        description="Turn photos of handwritten notes into coding-assistant instructions",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/papernote.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    start_parser = subparsers.add_parser(
        "start", help="Check the device, then create or attach the tmux workspace",
    )
    start_parser.add_argument(
        "-w", "--wireless", action="store_true",
        help="Connect over wireless adb (USB needed only the first time)",
    )

    watch_parser = subparsers.add_parser("watch", help="Run the photo watcher in this terminal")
    watch_parser.add_argument(
        "-w", "--wireless", action="store_true",
        help="Connect over wireless adb (USB needed only the first time)",
    )
    watch_parser.add_argument(
        "--delivery", choices=["tmux", "claude-cli"], default=None,
        help="How notes reach the assistant (default: from config)",
    )

    subparsers.add_parser("devices", help="List devices visible to adb")

    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe one local image and print it")
    transcribe_parser.add_argument("image", type=Path, help="Path to a photo of handwritten notes")

    return parser.parse_args(argv)


def _build_recognizer(settings):
    """Build the configured recognizer."""
    rc = settings.recognition
    api_key, base_url = settings.recognition_credentials()
    kwargs = dict(
        api_key=api_key,
        model=rc.model,
        base_url=base_url,
        max_tokens=rc.max_tokens,
        max_retries=rc.max_retries,
        prompt=rc.prompt_override,
        max_image_dimension=rc.max_image_dimension,
    )
    if rc.provider == "anthropic":
        from papernote.recognizer.anthropic import AnthropicRecognizer
        return AnthropicRecognizer(**kwargs)
    from papernote.recognizer.openai import OpenAIRecognizer
    return OpenAIRecognizer(**kwargs)


def _build_locator(settings):
    from papernote.device.adb import AdbClient
    from papernote.device.locator import DeviceLocator, WirelessConfigStore

    dc = settings.device
    client = AdbClient(adb_path=dc.adb_path)
    locator = DeviceLocator(
        client=client,
        config_store=WirelessConfigStore(dc.wireless_config_path),
        wireless_port=dc.wireless_port,
        switch_delay=dc.wireless_switch_delay,
    )
    return client, locator


def _build_workspace(settings):
    from papernote.delivery.tmux import TmuxWorkspace

    return TmuxWorkspace(
        socket=settings.delivery.tmux_socket,
        session=settings.delivery.tmux_session,
    )


def _build_channel(settings, mode: str):
    if mode == "claude-cli":
        from papernote.delivery.claude_cli import ClaudeCliChannel
        dc = settings.delivery
        return ClaudeCliChannel(
            command=dc.claude_command,
            skip_permissions=dc.skip_permissions,
            continue_conversation=dc.continue_conversation,
            resume_existing=dc.resume_existing,
            working_dir=dc.working_dir,
        )
    from papernote.delivery.tmux import TmuxChannel
    return TmuxChannel(_build_workspace(settings))


async def _bootstrap(locator, wireless: bool) -> str | None:
    """Bind the device target, printing the reason on failure."""
    from papernote.device.base import ConnectionBootstrapError

    try:
        if wireless:
            print("Setting up wireless adb...")
            target = await locator.bootstrap_wireless()
        else:
            target = await locator.bootstrap_usb()
    except ConnectionBootstrapError as e:
        logger.error("Device bootstrap failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        if not wireless:
            print("Connect via USB or use --wireless", file=sys.stderr)
        return None
    print(f"Device connected ({target})")
    return target


def _watcher_command(args) -> str:
    """Shell command the workspace's watcher pane runs."""
    parts = [sys.executable, "-m", "papernote.cli"]
    if args.config:
        parts += ["-c", str(Path(args.config).resolve())]
    if args.verbose:
        parts.append("-v")
    parts.append("watch")
    if args.wireless:
        parts.append("--wireless")
    return " ".join(shlex.quote(p) for p in parts)


async def _start(settings, args) -> int:
    """Check the device, reset the note log, and bring up the workspace."""
    from papernote.delivery.base import DeliveryError
    from papernote.watcher.notes import NoteLog

    print(BANNER)
    _, locator = _build_locator(settings)
    if await _bootstrap(locator, args.wireless) is None:
        return 1

    notes = NoteLog(settings.notes.path)
    notes.initialize()

    dc = settings.delivery
    assistant_command = dc.claude_command
    if dc.skip_permissions:
        assistant_command += " --dangerously-skip-permissions"

    workspace = _build_workspace(settings)
    try:
        created = await workspace.ensure_session(
            assistant_command=assistant_command,
            notes_path=str(notes.path),
            watcher_command=_watcher_command(args),
            workdir=os.getcwd(),
        )
    except DeliveryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if created:
        print("Created session")
        print("   Left:         Coding assistant")
        print(f"   Top-right:    nvim {notes.path}")
        print("   Bottom-right: Photo watcher\n")
    else:
        print("Session exists. Attaching...")

    await workspace.attach()
    return 0


async def _watch(settings, args) -> int:
    """Bootstrap the device and recognizer, then watch until interrupted."""
    from papernote.device.adb import AdbBridge
    from papernote.domain.models import WatchState
    from papernote.watcher.loop import PhotoWatchLoop
    from papernote.watcher.notes import NoteLog

    print("Photo Watcher Started\n")
    client, locator = _build_locator(settings)
    target = await _bootstrap(locator, args.wireless)
    if target is None:
        return 1

    recognizer = _build_recognizer(settings)
    if not await recognizer.health_check():
        print(
            f"Error: cannot reach the {recognizer.provider_name} API (check the API key)",
            file=sys.stderr,
        )
        return 1

    notes = NoteLog(settings.notes.path)
    if not notes.path.exists():
        notes.initialize()

    dc = settings.device
    loop = PhotoWatchLoop(
        bridge=AdbBridge(
            client,
            camera_dir=dc.camera_dir,
            photo_extension=dc.photo_extension,
            limit=dc.list_limit,
        ),
        recognizer=recognizer,
        channel=_build_channel(settings, args.delivery or settings.delivery.mode),
        notes=notes,
        download_dir=settings.watch.download_dir,
        poll_interval=settings.watch.poll_interval,
        state=WatchState(active_target=target),
    )
    await loop.run()
    return 0


async def _devices(settings) -> int:
    """Print the devices adb can see."""
    _, locator = _build_locator(settings)
    devices = await locator.list_devices()
    if not devices:
        print("No devices found")
        return 0
    for device in devices:
        kind = "wireless" if device.is_wireless(settings.device.wireless_port) else "usb"
        print(f"{device.serial}\t{device.state.value}\t{kind}")
    return 0


async def _transcribe(settings, args) -> int:
    """Transcribe a single local image."""
    from papernote.recognizer.base import RecognitionError

    recognizer = _build_recognizer(settings)
    try:
        text = await recognizer.recognize(args.image)
    except RecognitionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(text if text else "(no text detected)")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the papernote CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from papernote.config.settings import load_settings
    from papernote.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    try:
        if args.command == "start":
            code = asyncio.run(_start(settings, args))
        elif args.command == "watch":
            logger.info("Starting photo watcher")
            code = asyncio.run(_watch(settings, args))
        elif args.command == "devices":
            code = asyncio.run(_devices(settings))
        elif args.command == "transcribe":
            code = asyncio.run(_transcribe(settings, args))
        else:
            code = 2
    except KeyboardInterrupt:
        print("\nWatcher stopped")
        code = 0

    sys.exit(code)


if __name__ == "__main__":
    main()
