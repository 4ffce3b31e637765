"""
Token bucket rate limiter for spacing outbound gateway calls.

Reconciliation runs query PayOS once per order code. The limiter keeps
those calls under the gateway's rate limit without the pipeline having to
sleep on its own. Throughput is tuned through the limiter alone.

With the default capacity of 1 the bucket behaves as a fixed spacing:
K acquisitions take at least (K - 1) * interval seconds. A larger
capacity allows short bursts.

Usage:
    from payments.rate_limit import RateLimiter

    limiter = RateLimiter(interval=0.3)
    for order_code in order_codes:
        limiter.acquire()
        PayOSAdapter.fetch_transaction(order_code)

    # Tests inject a fake clock so nothing actually sleeps
    limiter = RateLimiter(interval=0.3, clock=fake.now, sleep=fake.sleep)

Design Notes:
    - State is per instance; each run builds its own limiter
    - The clock must be monotonic (time.monotonic by default)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

# Absorbs float drift when the bucket refills to exactly one token
TOKEN_EPSILON = 1e-9


@dataclass
class RateLimiterConfig:
    """Configuration for a rate limiter instance."""

    interval: float = 0.0
    """Seconds needed to refill one token. Zero disables limiting."""

    capacity: int = 1
    """Maximum number of tokens the bucket holds."""


class RateLimiter:
    """
    Token bucket limiter with an injectable clock and sleep.

    The bucket starts full so the first `capacity` calls never wait.

    Attributes:
        config: Limiter configuration
    """

    def __init__(
        self,
        interval: float = 0.0,
        capacity: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval < 0:
            raise ValueError("interval must not be negative")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.config = RateLimiterConfig(interval=interval, capacity=capacity)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last_refill = clock()

    @property
    def interval(self) -> float:
        return self.config.interval

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._last_refill = now
        self._tokens = min(
            float(self.config.capacity),
            self._tokens + elapsed / self.config.interval,
        )

    def acquire(self) -> float:
        """
        Take one token, sleeping until one is available.

        Returns:
            Seconds spent sleeping
        """
        if self.config.interval <= 0:
            return 0.0

        waited = 0.0
        while True:
            self._refill()
            if self._tokens >= 1 - TOKEN_EPSILON:
                self._tokens = max(0.0, self._tokens - 1)
                if waited:
                    logger.debug(f"Rate limiter waited {waited:.3f}s")
                return waited

            delay = (1 - self._tokens) * self.config.interval
            self._sleep(delay)
            waited += delay
