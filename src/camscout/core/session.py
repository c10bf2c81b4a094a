from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from camscout.models import DeviceRecord

from .listener import ScanListener

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETING = "completing"
    DONE = "done"


class ScanSession:
    """State of one scan: phase counter, single-fire completion, deadline.

    The last ``phase_finished`` and ``expire`` race for the same guarded
    transition, so ``on_scan_complete`` fires exactly once. Events arriving
    after completion are discarded.
    """

    def __init__(
        self, listener: ScanListener, phases: list[str], timeout: float
    ) -> None:
        self.listener = listener
        self.phases = list(phases)
        self.timeout = timeout
        self.state = SessionState.IDLE
        self.timed_out = False
        self.deadline: float | None = None

        self._lock = threading.RLock()
        self._remaining = len(self.phases)
        self._pending = set(self.phases)
        self._seen: dict[str, DeviceRecord] = {}
        self._done = asyncio.Event()
        self._memo: dict[str, asyncio.Task[Any]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._timer: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def completed(self) -> bool:
        with self._lock:
            return self.state is SessionState.DONE

    @property
    def devices(self) -> list[DeviceRecord]:
        with self._lock:
            return list(self._seen.values())

    @property
    def pending_phases(self) -> list[str]:
        with self._lock:
            return sorted(self._pending)

    def start(self) -> None:
        with self._lock:
            if self.state is not SessionState.IDLE:
                raise RuntimeError(f"Session already {self.state.value}")
            self.state = SessionState.RUNNING
            self.deadline = time.monotonic() + self.timeout
        self._loop = loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.timeout, self.expire)
        if not self.phases:
            self._finish("No scan phases selected")

    def track(self, task: asyncio.Task[None]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def progress(self, text: str) -> None:
        with self._lock:
            if self.state is not SessionState.RUNNING:
                return
            try:
                self.listener.on_scan_progress(text)
            except Exception:
                logger.exception("Progress listener failed")

    def emit(self, record: DeviceRecord) -> bool:
        """Deliver ``record`` unless its id was already seen or the session ended."""
        with self._lock:
            if self.state is not SessionState.RUNNING:
                logger.debug("Dropping late record %s", record.id)
                return False
            if record.id in self._seen:
                return False
            self._seen[record.id] = record
            self.listener.on_camera_detected(record)
            return True

    def phase_finished(self, name: str) -> None:
        with self._lock:
            if self.state is not SessionState.RUNNING or name not in self._pending:
                return
            self._pending.discard(name)
            self._remaining -= 1
            logger.debug("Phase %s finished (%d remaining)", name, self._remaining)
            if self._remaining == 0:
                self._finish("All scans completed")

    def expire(self) -> None:
        with self._lock:
            if self.state is not SessionState.RUNNING:
                return
            self.timed_out = True
            logger.info(
                "Scan timeout reached with pending phases: %s",
                ", ".join(sorted(self._pending)),
            )
            self._finish("Scan timeout reached, finalizing results")

    def cancel(self) -> None:
        self._finish("Scan cancelled")

    async def drain(self) -> None:
        """Wait for cancelled phase tasks to unwind."""
        pending = [task for task in [*self._tasks, *self._memo.values()] if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _finish(self, note: str) -> None:
        with self._lock:
            if self.state is not SessionState.RUNNING:
                return
            try:
                self.listener.on_scan_progress(note)
            except Exception:
                logger.exception("Progress listener failed")
            self.state = SessionState.COMPLETING
            try:
                self.listener.on_scan_complete()
            finally:
                self.state = SessionState.DONE
        try:
            on_loop = asyncio.get_running_loop() is self._loop
        except RuntimeError:
            on_loop = False
        if on_loop or self._loop is None:
            self._release()
        else:
            # completion raced in from a listener or zeroconf thread
            self._loop.call_soon_threadsafe(self._release)

    def _release(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        current = asyncio.current_task()
        for task in [*self._tasks, *self._memo.values()]:
            if task is not current and not task.done():
                task.cancel()
        self._done.set()

    async def wait(self) -> None:
        await self._done.wait()

    async def memo(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Share one collaborator result between phases of this session."""
        task = self._memo.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._memo[key] = task
        return await asyncio.shield(task)
