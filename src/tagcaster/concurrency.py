"""Concurrency control for batches of casts."""

import asyncio


class ConcurrencyLimiter:
    """
    Limits concurrent casts using a semaphore.

    Each cast may make several sequential generation calls; the limiter
    bounds how many casts are in flight at once, not individual calls.
    """

    def __init__(self, max_concurrency: int):
        """
        Initialize concurrency limiter.

        Args:
            max_concurrency: Maximum concurrent casts
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self._semaphore.acquire()
        return self

    async def __aexit__(self, *args: object) -> None:
        self._semaphore.release()

    @property
    def available_slots(self) -> int:
        """Get number of available concurrency slots."""
        # Semaphore._value is the internal counter
        return self._semaphore._value  # noqa: SLF001
