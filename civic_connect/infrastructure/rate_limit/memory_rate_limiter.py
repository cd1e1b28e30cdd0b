import threading
import time
from typing import Callable, Dict, List

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0) -> None:
        self._store: Dict[str, List[float]] = {}
        self._windows: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._last_sweep = 0.0

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = self._clock()
        window_start = now - window_seconds
        with self._lock:
            self._evict_idle(now)
            # prune
            times = [t for t in self._store.get(key, []) if t > window_start]
            self._windows[key] = window_seconds
            if len(times) >= max_requests:
                self._store[key] = times
                return False
            times.append(now)
            self._store[key] = times
            return True

    def _evict_idle(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        idle = [k for k, times in self._store.items() if not times or times[-1] <= now - self._windows[k]]
        for key in idle:
            del self._store[key]
            del self._windows[key]

    def __len__(self) -> int:
        return len(self._store)
