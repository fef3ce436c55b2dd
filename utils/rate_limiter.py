"""
Token bucket rate limiting for RPC calls
"""
import asyncio
import time
from typing import Iterable

from config.settings import RPC_RATE_LIMIT_PER_SECOND, RPC_RATE_LIMIT_BURST


class TokenBucketRateLimiter:
    """
    Token bucket: refills `rate` tokens per second up to `burst`
    """

    def __init__(self, rate: float, burst: int = 1):
        if rate <= 0 or burst < 1:
            raise ValueError(f"Invalid rate limit: rate={rate}, burst={burst}")
        self.rate = rate
        self.burst = burst
        self.tokens = float(burst)
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self):
        now = time.monotonic()
        elapsed = now - self.last_update
        if elapsed > 0:
            self.tokens = min(self.burst, self.tokens + elapsed * self.rate)
            self.last_update = now

    async def acquire(self) -> float:
        """Take one token, sleeping if none is available. Returns the wait in seconds"""
        async with self._lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return 0.0
            wait_time = (1 - self.tokens) / self.rate
            # goes negative so later waiters queue behind this one
            self.tokens -= 1
        await asyncio.sleep(wait_time)
        return wait_time


class MultiRateLimiter:
    """
    One token bucket per key, e.g. "chain:56"
    """

    def __init__(self, rate: float = RPC_RATE_LIMIT_PER_SECOND, burst: int = RPC_RATE_LIMIT_BURST):
        self.default_rate = rate
        self.default_burst = burst
        self._limiters: dict[str, TokenBucketRateLimiter] = {}

    @classmethod
    def for_chains(cls, chain_ids: Iterable[int], rate: float = RPC_RATE_LIMIT_PER_SECOND,
                   burst: int = RPC_RATE_LIMIT_BURST) -> "MultiRateLimiter":
        limiter = cls(rate, burst)
        for chain_id in chain_ids:
            limiter.register(chain_key(chain_id), rate, burst)
        return limiter

    def register(self, key: str, rate: float, burst: int = 1):
        self._limiters[key] = TokenBucketRateLimiter(rate, burst)

    def __contains__(self, key: str) -> bool:
        return key in self._limiters

    async def acquire(self, key: str) -> float:
        """Acquire a token for the given key, registering a default bucket on first use"""
        limiter = self._limiters.get(key)
        if limiter is None:
            limiter = self._limiters.setdefault(
                key, TokenBucketRateLimiter(self.default_rate, self.default_burst)
            )
        return await limiter.acquire()


def chain_key(chain_id: int) -> str:
    return f"chain:{int(chain_id)}"
