"""
Sliding-window request limits, per channel and caller.

Two channels are configured under security.rate_limiting: ``auth``
(login endpoints, keyed by client IP) and ``telegram`` (bot updates,
keyed by Telegram user id). Each has a per-minute and a per-hour cap.
Counts live in process memory; the panel runs as a single process.
"""

import time
from collections import deque
from dataclasses import dataclass

from adminui.backend.core.config import get_app_config
from adminui.backend.core.logging import get_logger

logger = get_logger(__name__)

MINUTE = 60
HOUR = 3600

# Above this many callers in a window, idle ones are dropped on the next check
MAX_TRACKED_CALLERS = 1024


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    retry_after_seconds: int = 0


ALLOWED = RateLimitResult(allowed=True)


class RateLimiter:
    """
    Remembers when each caller was last let through, per window.

    A rejected request is not recorded, so a caller hammering the limit
    is released as soon as the oldest accepted request ages out.
    """

    def __init__(self) -> None:
        self._hits: dict[int, dict[str, deque[float]]] = {MINUTE: {}, HOUR: {}}

    @property
    def tracked_callers(self) -> int:
        return len(self._hits[HOUR])

    def _sweep(self, now: float) -> None:
        """Forget callers with nothing left inside a window."""
        for window, store in self._hits.items():
            if len(store) > MAX_TRACKED_CALLERS:
                idle = [caller for caller, hits in store.items() if not hits or hits[-1] <= now - window]
                for caller in idle:
                    del store[caller]

    def check(self, channel: str, key: str, now: float | None = None) -> RateLimitResult:
        """
        Count one request from ``key`` on ``channel`` if it fits both windows.

        Channels with no configured limits are always allowed.
        """
        limits = getattr(get_app_config().security.rate_limiting, channel, None)
        if limits is None:
            return ALLOWED

        now = time.monotonic() if now is None else now
        caller = f"{channel}:{key}"
        caps = {MINUTE: limits.messages_per_minute, HOUR: limits.messages_per_hour}

        self._sweep(now)
        for window, cap in caps.items():
            hits = self._hits[window].get(caller)
            if hits is None:
                continue
            while hits and hits[0] <= now - window:
                hits.popleft()
            if not hits:
                del self._hits[window][caller]
            elif len(hits) >= cap:
                retry_after = int(window - (now - hits[0])) + 1
                logger.warning(
                    "Rate limit exceeded",
                    extra={"channel": channel, "key": key, "window_seconds": window, "limit": cap},
                )
                return RateLimitResult(allowed=False, retry_after_seconds=retry_after)

        for window in caps:
            self._hits[window].setdefault(caller, deque()).append(now)
        return ALLOWED

    def reset(self) -> None:
        for store in self._hits.values():
            store.clear()


_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter
