"""
Token bucket rate limiter for price API requests.

Public price APIs throttle aggressively; every outgoing request first
takes a token so a full scan stays under the published per-minute cap.
"""

import asyncio
from dataclasses import dataclass, field

from dexarb.utils.time import get_timestamp_ms


@dataclass
class TokenBucket:
    """
    Token bucket implementation for rate limiting.

    Tokens are added at a constant rate up to a maximum capacity.
    Each request consumes one or more tokens.
    """

    capacity: int
    refill_rate: float  # tokens per second
    tokens: float = field(init=False)
    last_refill: int = field(init=False)  # milliseconds
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.capacity <= 0 or self.refill_rate <= 0:
            raise ValueError("capacity and refill_rate must be positive")
        self.tokens = float(self.capacity)
        self.last_refill = get_timestamp_ms()

    @classmethod
    def per_minute(cls, requests_per_minute: int) -> "TokenBucket":
        """Bucket allowing a full minute's burst, refilled evenly."""
        return cls(capacity=requests_per_minute, refill_rate=requests_per_minute / 60.0)

    def _refill(self) -> None:
        now = get_timestamp_ms()
        elapsed_seconds = (now - self.last_refill) / 1000.0
        self.tokens = min(
            self.capacity,
            self.tokens + (elapsed_seconds * self.refill_rate),
        )
        self.last_refill = now

    async def acquire(self, tokens: int = 1) -> None:
        """
        Acquire tokens, waiting if necessary.

        Args:
            tokens: Number of tokens to acquire.
        """
        async with self._lock:
            self._refill()

            if self.tokens < tokens:
                wait_seconds = (tokens - self.tokens) / self.refill_rate
                await asyncio.sleep(wait_seconds)
                self._refill()

            self.tokens -= tokens
