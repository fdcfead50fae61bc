"""
Retry timing helpers.

Pure functions only: no timers, no sleeping. The supervisor decides when a
retry happens, these helpers decide how long it waits.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class RetryUtils:
    """Shared retry utility functions."""

    @staticmethod
    def calculate_backoff_delay(
        attempt: int,
        base_delay: float = 1.0,
        max_delay: Optional[float] = None,
        backoff_factor: float = 2.0,
    ) -> float:
        """
        Calculate delay for exponential backoff.

        Args:
            attempt (int): Number of retries already performed (0-based)
            base_delay (float): Delay unit in seconds, the delay of attempt 0
            max_delay (Optional[float]): Upper bound, None for no bound
            backoff_factor (float): Factor to multiply delay by per attempt

        Returns:
            float: Delay in seconds
        """
        if attempt < 0:
            raise ValueError(f"attempt must not be negative, got {attempt}")
        if backoff_factor < 1:
            raise ValueError(f"backoff_factor must be at least 1, got {backoff_factor}")

        try:
            delay = base_delay * (backoff_factor ** attempt)
        except OverflowError:
            delay = float("inf")

        if max_delay is not None:
            return min(delay, max_delay)
        return delay
