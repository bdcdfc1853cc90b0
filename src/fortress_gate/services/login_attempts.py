"""Per-source login attempt tracking with a sliding window.

The tracker bounds how many login attempts a single source address may make
inside one window. State lives in process memory only; losing it on restart
simply forgets brute-force history.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from fortress_gate.core.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_WINDOW_SECONDS = 15 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


@dataclass
class LoginAttemptRecord:
    """Attempts observed from one source inside the current window."""

    count: int
    window_start: float


class LoginAttemptTracker:
    """Lock-protected map of source identifiers to attempt records.

    The read-modify-write on a record happens under a single lock so two
    concurrent attempts from the same source can never both slip under the
    cap. A background task owned by the tracker periodically drops records
    whose window has closed.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the tracker.

        Args:
            max_attempts: Attempts admitted per source inside one window.
            window_seconds: Length of the window, measured from its first attempt.
            sweep_interval_seconds: Delay between background sweeps.
            clock: Source of wall-clock time in seconds; injectable for tests.
        """
        self.max_attempts = int(max_attempts)
        self.window_seconds = float(window_seconds)
        self.sweep_interval_seconds = float(sweep_interval_seconds)
        self._clock = clock
        self._records: dict[str, LoginAttemptRecord] = {}
        self._lock = Lock()
        self._task: asyncio.Task[None] | None = None
        self._stopping: asyncio.Event | None = None

    def _expired(self, record: LoginAttemptRecord, now: float) -> bool:
        return now - record.window_start > self.window_seconds

    def check_and_record(self, source_id: str) -> bool:
        """Count an attempt from `source_id` and return whether it is allowed.

        A refused attempt is not counted, so the record stays at the cap until
        its window closes.
        """
        with self._lock:
            now = self._clock()
            record = self._records.get(source_id)
            if record is None or self._expired(record, now):
                self._records[source_id] = LoginAttemptRecord(count=1, window_start=now)
                return True
            if record.count >= self.max_attempts:
                return False
            record.count += 1
            return True

    def retry_after(self, source_id: str) -> int:
        """Return whole seconds until the window of `source_id` closes."""
        with self._lock:
            now = self._clock()
            record = self._records.get(source_id)
            if record is None:
                return math.ceil(self.window_seconds)
            remaining = self.window_seconds - (now - record.window_start)
        return max(0, math.ceil(remaining))

    def reset(self, source_id: str) -> None:
        """Forget every attempt recorded for `source_id`."""
        with self._lock:
            self._records.pop(source_id, None)

    def get(self, source_id: str) -> LoginAttemptRecord | None:
        """Return a copy of the record for `source_id`, if one exists."""
        with self._lock:
            record = self._records.get(source_id)
            if record is None:
                return None
            return LoginAttemptRecord(count=record.count, window_start=record.window_start)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def sweep(self) -> int:
        """Delete records whose window has closed and return how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [key for key, record in self._records.items() if self._expired(record, now)]
            for key in stale:
                del self._records[key]
        if stale:
            logger.debug("Swept %d stale login attempt records", len(stale))
        return len(stale)

    async def start(self) -> None:
        """Start the background sweep loop."""

        if self._task is None or self._task.done():
            # Bound to the running loop, so created here rather than in __init__
            self._stopping = asyncio.Event()
            self._task = asyncio.create_task(self._run(self._stopping))

    async def stop(self) -> None:
        """Stop the background sweep loop."""

        if self._task is None or self._stopping is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self, stopping: asyncio.Event) -> None:
        interval = max(0.01, self.sweep_interval_seconds)

        while not stopping.is_set():
            try:
                await asyncio.wait_for(stopping.wait(), timeout=interval)
            except asyncio.TimeoutError:
                self.sweep()


class _TrackerSingleton:
    """Singleton wrapper for LoginAttemptTracker."""

    _instance: LoginAttemptTracker | None = None

    @classmethod
    def get_instance(cls) -> LoginAttemptTracker:
        """Get or create the process-wide tracker from settings."""
        if cls._instance is None:
            cls._instance = LoginAttemptTracker(
                max_attempts=settings.login_max_attempts,
                window_seconds=settings.login_window_seconds,
                sweep_interval_seconds=settings.login_sweep_interval_seconds,
            )
        return cls._instance


def get_login_attempt_tracker() -> LoginAttemptTracker:
    """Return the process-wide login attempt tracker."""
    return _TrackerSingleton.get_instance()
