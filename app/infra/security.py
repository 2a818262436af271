import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.requests import Request


logger = logging.getLogger("app.rate_limit")


class InMemoryRateLimiter:
    """Per-client sliding window, counted in process memory."""

    def __init__(self, max_requests: int, window_seconds: int = 900) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_prune: float = 0.0

    async def allow(self, key: str) -> bool:
        now = time.time()
        self._maybe_prune(now)
        window_start = now - self.window_seconds
        timestamps = self._requests[key]
        while timestamps and timestamps[0] < window_start:
            timestamps.popleft()
        if len(timestamps) >= self.max_requests:
            logger.info("rate_limited", extra={"extra": {"client": key, "window_seconds": self.window_seconds}})
            return False
        timestamps.append(now)
        return True

    async def reset(self) -> None:
        self._requests.clear()
        self._last_prune = 0.0

    async def close(self) -> None:
        return None

    def _maybe_prune(self, now: float) -> None:
        if now - self._last_prune < 60:
            return
        window_start = now - self.window_seconds
        for key in list(self._requests.keys()):
            timestamps = self._requests[key]
            if not timestamps or timestamps[-1] < window_start:
                self._requests.pop(key, None)
        self._last_prune = now


def create_rate_limiter(app_settings) -> InMemoryRateLimiter:
    return InMemoryRateLimiter(
        app_settings.rate_limit_max_requests,
        window_seconds=app_settings.rate_limit_window_seconds,
    )


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"
