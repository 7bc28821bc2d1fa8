import time
from typing import Optional


class Deadline:
    """Wall-clock budget of one scrape request, shared by every wait in it."""

    def __init__(self, seconds: Optional[float] = None):
        self.seconds = seconds
        self._expires = time.monotonic() + seconds if seconds is not None else None

    def remaining(self) -> Optional[float]:
        if self._expires is None:
            return None
        return max(0.0, self._expires - time.monotonic())

    def cap(self, timeout_ms: int) -> int:
        """Clamp a step timeout to what is left of the budget (Playwright treats 0 as 'no timeout')."""
        left = self.remaining()
        if left is None:
            return timeout_ms
        return max(1, min(timeout_ms, int(left * 1000)))
