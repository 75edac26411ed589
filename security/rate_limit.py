import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from flask import request

from utils.clock import utcnow


def client_ip() -> str:
    # forwarded headers are only honoured through ProxyFix (TRUSTED_PROXY_HOPS)
    return request.remote_addr or "unknown"


@dataclass
class RateLimitWindow:
    count: int
    window_reset_at: datetime


class RateLimiter:
    """
    Process-local fixed-window throttle.

    The first call for a key opens a window of `window_seconds`; calls are
    counted until the window's reset time passes, and a key is limited once
    its count goes above `max_requests`. Not durable, not shared between
    processes. Expired windows are swept at most once per window length.
    """

    def __init__(self, max_requests: int = 60, window_seconds: int = 60,
                 clock: Callable[[], datetime] = utcnow):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, RateLimitWindow] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._map_lock = threading.Lock()
        self._next_sweep_at: Optional[datetime] = None

    @classmethod
    def from_config(cls, config, clock: Callable[[], datetime] = utcnow):
        return cls(
            max_requests=config.get("RATE_LIMIT_MAX_REQUESTS", 60),
            window_seconds=config.get("RATE_LIMIT_WINDOW_SECONDS", 60),
            clock=clock,
        )

    def __len__(self) -> int:
        return len(self._windows)

    def _lock_for(self, key: str) -> threading.Lock:
        with self._map_lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def _acquire(self, key: str) -> threading.Lock:
        """Hold the key's current lock; retries if a sweep replaced it meanwhile."""
        while True:
            lock = self._lock_for(key)
            lock.acquire()
            if self._key_locks.get(key) is lock:
                return lock
            lock.release()

    def is_limited(self, key: str) -> bool:
        now = self._clock()
        lock = self._acquire(key)
        try:
            window = self._windows.get(key)
            if window is None or now > window.window_reset_at:
                self._windows[key] = RateLimitWindow(
                    count=1,
                    window_reset_at=now + timedelta(seconds=self.window_seconds),
                )
                limited = False
            else:
                window.count += 1
                limited = window.count > self.max_requests
        finally:
            lock.release()

        self._sweep(now)
        return limited

    def _sweep(self, now: datetime) -> int:
        """Drop expired windows and their locks. Keys busy in another thread are left alone."""
        with self._map_lock:
            if self._next_sweep_at is not None and now < self._next_sweep_at:
                return 0
            self._next_sweep_at = now + timedelta(seconds=self.window_seconds)

            removed = 0
            for key in list(self._windows):
                lock = self._key_locks.get(key)
                if lock is None or not lock.acquire(blocking=False):
                    continue
                try:
                    window = self._windows.get(key)
                    if window is not None and now > window.window_reset_at:
                        del self._windows[key]
                        del self._key_locks[key]
                        removed += 1
                finally:
                    lock.release()
            return removed

    def retry_after(self, key: str) -> int:
        """Seconds until the key's current window resets (0 if none)."""
        if key not in self._windows:
            return 0
        lock = self._acquire(key)
        try:
            window = self._windows.get(key)
            if window is None:
                return 0
            seconds = int((window.window_reset_at - self._clock()).total_seconds())
        finally:
            lock.release()
        return max(seconds, 1)

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            with self._map_lock:
                self._windows.clear()
                self._key_locks.clear()
            return
        lock = self._acquire(key)
        try:
            self._windows.pop(key, None)
        finally:
            lock.release()
