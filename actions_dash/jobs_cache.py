"""Short-lived cache of per-run job lists plus the debounced fetch coordinator.

The controller only talks to ``JobsCoordinator``: ``schedule_fetch`` on every
selection change, ``accept`` when a jobs result arrives, ``sweep`` from a
periodic timer. Both classes take their clock and timer as arguments so tests
can drive them without sleeping.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .config import JOBS_CACHE_TTL_SECONDS, JOBS_DEBOUNCE_MS
from .models import Job

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    jobs: list[Job]
    fetched_at: float


class JobsCache:
    """Thread-safe ``run_id -> jobs`` map whose entries expire after ``ttl`` seconds."""

    def __init__(self, ttl: float = JOBS_CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[int, CacheEntry] = {}
        self._lock = threading.Lock()

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.fetched_at > self.ttl

    def get(self, run_id: int) -> Optional[list[Job]]:
        with self._lock:
            entry = self._entries.get(run_id)
            if entry is None or self._expired(entry, self._clock()):
                return None
            return entry.jobs

    def set(self, run_id: int, jobs: list[Job]) -> None:
        with self._lock:
            self._entries[run_id] = CacheEntry(list(jobs), self._clock())

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [run_id for run_id, entry in self._entries.items() if self._expired(entry, now)]
            for run_id in stale:
                del self._entries[run_id]
        if stale:
            logger.debug("Swept %d expired jobs cache entries", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


def _thread_timer(delay: float, function: Callable[[], None]) -> Timer:
    timer = threading.Timer(delay, function)
    timer.daemon = True
    return timer


class JobsCoordinator:
    """Coalesces rapid selection changes into a single jobs fetch.

    A cache hit resolves immediately. A miss records the run as pending and
    restarts one trailing timer; when it fires the fetch is dispatched only if
    the run is still pending and still uncached. Results for runs that are no
    longer pending are rejected by ``accept``.
    """

    def __init__(
        self,
        cache: JobsCache,
        dispatch: Callable[[int], None],
        delay: float = JOBS_DEBOUNCE_MS / 1000,
        timer_factory: Callable[[float, Callable[[], None]], Timer] = _thread_timer,
    ):
        self.cache = cache
        self.delay = delay
        self._dispatch = dispatch
        self._timer_factory = timer_factory
        self._timer: Optional[Timer] = None
        self._pending: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> Optional[int]:
        with self._lock:
            return self._pending

    def get(self, run_id: int) -> Optional[list[Job]]:
        return self.cache.get(run_id)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def schedule_fetch(self, run_id: int) -> Optional[list[Job]]:
        """Return cached jobs for ``run_id``, or arm the debounce timer and return None."""
        with self._lock:
            self._pending = run_id
            self._cancel_timer()
            jobs = self.cache.get(run_id)
            if jobs is not None:
                return jobs
            self._timer = self._timer_factory(self.delay, lambda: self._fire(run_id))
            self._timer.start()
        logger.debug("Debouncing jobs fetch for run %s", run_id)
        return None

    def request_now(self, run_id: int) -> Optional[list[Job]]:
        """Like ``schedule_fetch`` but dispatches a miss without waiting."""
        with self._lock:
            self._pending = run_id
            self._cancel_timer()
            jobs = self.cache.get(run_id)
        if jobs is None:
            self._dispatch(run_id)
        return jobs

    def _fire(self, run_id: int) -> None:
        with self._lock:
            if self._pending != run_id:
                return
            self._timer = None
            if self.cache.get(run_id) is not None:
                return
        logger.debug("Fetching jobs for run %s", run_id)
        self._dispatch(run_id)

    def accept(self, run_id: int) -> bool:
        """Whether a jobs result for ``run_id`` is still wanted."""
        with self._lock:
            return self._pending == run_id

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = None

    def sweep(self) -> int:
        return self.cache.sweep()
