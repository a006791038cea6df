"""Token bucket rate limiter for ThoughtSpot API calls."""

from __future__ import annotations

import asyncio
import time


class RateLimiter:
    """Asyncio token bucket rate limiter.

    A single tool call can fan out into dozens of concurrent backend
    requests (one answer plus two exports per sub-question, two rounds).
    This limiter smooths those bursts so the instance does not answer
    with 429s.

    The bucket holds up to `max_tokens` tokens and refills at `refill_rate`
    tokens per second. Each request consumes one token. If no tokens are
    available, the caller waits until one is refilled.
    """

    def __init__(self, max_tokens: int = 60, refill_rate: float = 5.0):
        """Initialize the rate limiter.

        Args:
            max_tokens: Maximum burst capacity.
            refill_rate: Tokens added per second.
        """
        self.max_tokens = max_tokens
        self.refill_rate = refill_rate
        self._tokens = float(max_tokens)
        self._last_refill = time.monotonic()

    def _refill(self) -> None:
        """Add tokens based on elapsed time since last refill."""
        now = time.monotonic()
        elapsed = now - self._last_refill
        new_tokens = elapsed * self.refill_rate
        self._tokens = min(self.max_tokens, self._tokens + new_tokens)
        self._last_refill = now

    def try_acquire(self) -> bool:
        """Take a token if one is available right now."""
        self._refill()
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return True
        return False

    async def acquire(self, timeout: float | None = None) -> bool:
        """Acquire a single token, waiting until one is available.

        Args:
            timeout: Maximum seconds to wait. None means wait forever.

        Returns:
            True if a token was acquired, False if timed out.
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            # No await between refill and decrement, so this is atomic on the loop.
            if self.try_acquire():
                return True
            wait_time = (1.0 - self._tokens) / self.refill_rate

            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                wait_time = min(wait_time, remaining)

            await asyncio.sleep(min(wait_time, 0.1))

    @property
    def available_tokens(self) -> float:
        """Current number of available tokens (approximate)."""
        self._refill()
        return self._tokens
