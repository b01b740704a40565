"""Backoff delays for retried API requests."""

import random


class RateLimiter:
    """Retry delay calculator with exponential backoff and jitter."""

    def __init__(
        self,
        initial_delay: float = 1.0,
        max_delay: float = 60.0,
        backoff_factor: float = 2.0,
        jitter_factor: float = 0.1,
    ):
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter_factor = jitter_factor
        self._current_delay = initial_delay
        self._consecutive_errors = 0

    def reset(self) -> None:
        """Reset delay after a successful request."""
        self._current_delay = self.initial_delay
        self._consecutive_errors = 0

    def backoff(self, retry_after: float | None = None) -> float:
        """Return the next delay, honouring a server-provided Retry-After."""
        self._consecutive_errors += 1
        if retry_after is not None:
            return min(retry_after, self.max_delay)

        delay = self._current_delay
        self._current_delay = min(self._current_delay * self.backoff_factor, self.max_delay)
        # +/- jitter_factor of the delay
        jitter = delay * self.jitter_factor * (2 * random.random() - 1)
        return max(0.0, delay + jitter)

    @property
    def consecutive_errors(self) -> int:
        return self._consecutive_errors
