from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable


LOG = logging.getLogger(__name__)


class TokenBucket:
    """
    Full-reset token bucket.

    Once `refill_interval` has elapsed the remaining budget jumps back to
    `capacity`; there is no gradual refill in between. The lock only guards
    the check/debit/reset step and is never held while sleeping, so several
    threads may share one bucket.
    """

    def __init__(
        self,
        capacity: float,
        refill_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if capacity <= 0:
            raise ValueError("Token bucket capacity must be positive")
        self.capacity = float(capacity)
        self.refill_interval = refill_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = Lock()
        self.remaining = float(capacity)
        self.next_refill_at = clock() + refill_interval

    def acquire(self, cost: float) -> float:
        """
        Block until `cost` tokens are available and debit them.

        Costs above capacity are clamped so a single huge request runs once
        per window instead of waiting forever. Returns the seconds spent
        waiting.
        """
        cost = min(max(float(cost), 0.0), self.capacity)
        waited = 0.0
        while True:
            with self._lock:
                now = self._clock()
                if now >= self.next_refill_at:
                    self.remaining = self.capacity
                    self.next_refill_at = now + self.refill_interval
                if self.remaining >= cost:
                    self.remaining -= cost
                    return waited
                wait = self.next_refill_at - now

            LOG.info("Rate budget exhausted, waiting %.1fs for refill", wait)
            self._sleep(wait)
            waited += wait

    def drain(self) -> None:
        """Zero the budget so the next `acquire` waits for a full refill."""
        with self._lock:
            self.remaining = 0.0
