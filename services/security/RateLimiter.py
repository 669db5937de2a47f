"""Fixed-window, in-memory request limiter for the chat endpoints."""

import time
from dataclasses import dataclass
from typing import Callable

from shared.helper.HelperConfig import HelperConfig

MAX_TRACKED_KEYS = 1000


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int


class RateLimiter:
    """Counts requests per client key inside a fixed time window.

    State lives on the instance; the application builds one at startup and
    keeps it on app.state.
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        max_requests: int | None = None,
        window_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        max_tracked_keys: int = MAX_TRACKED_KEYS,
    ) -> None:
        self.logging = helper_config.get_logger()
        self.max_requests = max_requests if max_requests is not None else int(helper_config.get_number_val("CHAT_RATE_LIMIT_MAX", default=20))
        self.window_seconds = window_seconds if window_seconds is not None else float(helper_config.get_number_val("CHAT_RATE_LIMIT_WINDOW_SECONDS", default=60))
        self._clock = clock
        self.max_tracked_keys = max_tracked_keys
        # key -> (window start, request count)
        self._windows: dict[str, tuple[float, int]] = {}
        self._violations: dict[str, int] = {}
        self._next_cleanup = 0.0

    def hit(self, key: str) -> RateLimitDecision:
        """Record one request for key and decide whether it may proceed.

        Once more than max_tracked_keys keys are tracked, expired windows are
        dropped, at most once per window.
        """
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        count += 1
        self._windows[key] = (start, count)
        if len(self._windows) > self.max_tracked_keys and now >= self._next_cleanup:
            self.cleanup()
            self._next_cleanup = now + self.window_seconds

        retry_after = max(1, int(round(start + self.window_seconds - now)))
        if count > self.max_requests:
            self._violations[key] = self._violations.get(key, 0) + 1
            self.logging.warning(
                "Rate limit exceeded for %s (%d violation(s)).", key, self._violations[key]
            )
            return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)
        return RateLimitDecision(allowed=True, remaining=self.max_requests - count, retry_after=retry_after)

    def get_violations(self, key: str) -> int:
        return self._violations.get(key, 0)

    def cleanup(self) -> None:
        """Drop expired windows, and clear the violation store once it tracks more than max_tracked_keys keys."""
        now = self._clock()
        self._windows = {k: v for k, v in self._windows.items() if now - v[0] < self.window_seconds}
        if len(self._violations) > self.max_tracked_keys:
            self._violations.clear()
            self.logging.info("Rate limit violation store cleared (size exceeded %d).", self.max_tracked_keys)
