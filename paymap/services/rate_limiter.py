"""Fixed-interval gate between calls to rate-limited geocoding providers."""

import asyncio


class FixedIntervalRateLimiter:
    """Suspends the caller for the same interval every time, regardless of outcome."""

    def __init__(self, interval_seconds: float) -> None:
        """Initialize the limiter; a non-positive interval disables the pause."""
        self.interval_seconds = max(float(interval_seconds), 0.0)
        self.pauses = 0

    async def pause(self) -> None:
        """Wait out one interval."""
        self.pauses += 1
        if self.interval_seconds:
            await asyncio.sleep(self.interval_seconds)
