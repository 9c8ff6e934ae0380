"""Retry policy value object for opening the device stream."""

from dataclasses import dataclass

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_RETRY_DELAY = 10.0  # seconds


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded, fixed-delay retry policy."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay: float = DEFAULT_RETRY_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay cannot be negative")
