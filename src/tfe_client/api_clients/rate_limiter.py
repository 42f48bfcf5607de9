"""Client-side request rate limiting.

The server announces its per-second request limit in the ``X-RateLimit-Limit``
header of the ping response. Two thirds of it become the steady refill rate
and one third the burst, so a client can burst briefly and is then spread
out evenly below the server's limit.
"""

import asyncio
import logging
import time
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

LIMIT_SHARE = 0.66
BURST_SHARE = 0.33


class TokenBucket:
    """Token bucket refilled continuously at ``refill_rate`` tokens per second.

    The bucket starts full. Callers run on one event loop, so ``consume``
    needs no lock: it never awaits between checking and taking a token.
    """

    def __init__(self, capacity: float, refill_rate: float):
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self._last_refill = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._last_refill = now
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)

    def consume(self) -> Tuple[bool, float]:
        """Take one token if available.

        Returns:
            ``(True, 0.0)`` when a token was taken, otherwise ``(False, wait)``
            with the seconds until the next token is available
        """
        self._refill()
        if self.tokens >= 1:
            self.tokens -= 1
            return True, 0.0
        return False, (1 - self.tokens) / self.refill_rate

    async def wait(self) -> None:
        """Block until a token is taken. Cancellation interrupts the sleep."""
        while True:
            allowed, retry_after = self.consume()
            if allowed:
                return
            logger.debug(f"Rate limit reached, waiting {retry_after:.3f}s")
            await asyncio.sleep(retry_after)


def limiter_for(rate_limit: Optional[float]) -> Optional[TokenBucket]:
    """Build the limiter for an advertised rate limit.

    Returns None (no limiting) when the server advertises no positive limit.
    """
    if rate_limit is None or rate_limit <= 0:
        return None
    capacity = max(1, int(rate_limit * BURST_SHARE))
    return TokenBucket(capacity=capacity, refill_rate=rate_limit * LIMIT_SHARE)
