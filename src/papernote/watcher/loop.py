"""Watch loop orchestrator for new note photos."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from papernote.delivery.base import DeliveryError, SessionChannel
from papernote.device.base import DeviceBridge
from papernote.domain.models import PhotoRecord, WatchState, WatchStats
from papernote.recognizer.base import RecognitionError, Recognizer
from papernote.watcher.notes import NoteLog

logger = logging.getLogger(__name__)

RULE = "─" * 40


class PhotoWatchLoop:
    """Polls the device and drives each new photo through the pipeline.

    Every tick lists the newest photos and, for each one taken after the
    session started and not seen before, runs pull -> transcribe ->
    deliver -> record. At most one photo is in that pipeline at any time;
    a tick that fires while a photo is in flight does nothing.
    """

    def __init__(
        self,
        bridge: DeviceBridge,
        recognizer: Recognizer,
        channel: SessionChannel,
        notes: NoteLog,
        download_dir: Path | str,
        poll_interval: float = 2.0,
        state: WatchState | None = None,
    ) -> None:
        self._bridge = bridge
        self._recognizer = recognizer
        self._channel = channel
        self._notes = notes
        self._download_dir = Path(download_dir)
        self._poll_interval = poll_interval
        self._state = state or WatchState()
        self._stats = WatchStats()
        self._tasks: set[asyncio.Task[int]] = set()
        self._stopped = False

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def stats(self) -> WatchStats:
        return self._stats

    def stop(self) -> None:
        """Signal the watch loop to stop after the current sleep."""
        self._stopped = True

    async def run(self) -> WatchStats:
        """Fire a tick every poll_interval seconds until stopped.

        The cadence is fixed: processing time is not subtracted from the
        interval, and ticks run as separate tasks so a long transcription
        never delays the timer.
        """
        self._stopped = False
        self._download_dir.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Watching target=%s every %.1fs (session start %d)",
            self._state.active_target, self._poll_interval, self._state.session_start_ms,
        )
        print("Watching for photos...\n")

        try:
            while not self._stopped:
                task = asyncio.create_task(self.tick())
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
                await asyncio.sleep(self._poll_interval)
        except asyncio.CancelledError:
            pending = list(self._tasks)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        logger.info("Watch loop finished: %s", self._stats.model_dump())
        return self._stats

    async def tick(self) -> int:
        """Run one poll. Never raises.

        Returns:
            Number of photos accepted into the pipeline during this tick.
        """
        if self._state.busy:
            logger.debug("Previous photo still in flight, skipping tick")
            return 0

        try:
            candidates = await self._bridge.list_photos(self._state.active_target)
        except Exception as e:
            logger.error("Photo listing raised: %s", e)
            return 0

        accepted = 0
        for record in candidates:
            if not self._state.is_candidate(record):
                continue
            # Another tick may have started a photo while we were listing
            if self._state.busy:
                break

            self._state.mark_processed(record)
            self._state.busy = True
            accepted += 1
            try:
                await self._process(record)
            except Exception:
                logger.exception("Unexpected error processing %s", record.filename)
            finally:
                self._state.busy = False
        return accepted

    async def _process(self, record: PhotoRecord) -> None:
        """Pull, transcribe, deliver, and record one photo."""
        self._stats.detected += 1
        logger.info("Detected %s (captured_at_ms=%d)", record.filename, record.captured_at_ms)
        print(f"New photo: {record.filename}")

        local_path = self._download_dir / record.filename
        print("  Pulling from device...")
        if not await self._bridge.pull(record.remote_path, local_path, self._state.active_target):
            self._stats.fetch_failures += 1
            logger.error("Failed to pull %s", record.remote_path)
            print("  Failed to pull photo")
            return

        print("  Transcribing...")
        try:
            text = await self._recognizer.recognize(local_path)
        except RecognitionError as e:
            self._stats.recognition_failures += 1
            logger.error(
                "Transcription of %s failed (%s): %s",
                record.filename, type(e).__name__, e,
            )
            print(f"  Transcription failed: {e}")
            return

        if not text.strip():
            self._stats.empty += 1
            logger.info("No text detected in %s", record.filename)
            print("  No text detected")
            return

        print("  Note transcribed:")
        print(RULE)
        print(text)
        print(RULE)

        print("  Delivering...")
        delivered = False
        try:
            receipt = await self._channel.deliver(text)
            delivered = True
            self._stats.delivered += 1
            logger.info("Delivered %s via %s", record.filename, receipt.channel)
        except DeliveryError as e:
            self._stats.delivery_failures += 1
            logger.error("Delivery of %s failed: %s", record.filename, e)
            print(f"  Delivery failed: {e}")

        entry = self._notes.append(text, record.filename, delivered=delivered)
        self._stats.recorded += 1
        logger.info("Recorded note #%d from %s", entry.number, record.filename)
        print(f"  Added note #{entry.number} to {self._notes.path}\n")
