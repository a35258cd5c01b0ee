from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SyncPolicy:
    """Timing and retry constants for the session loader.

    Older revisions of the web client disagreed on these (3 vs 5 attempts,
    8 s vs 15 s cap, with or without a rate-limit window). These are the values
    the backend settles on; every one can be overridden from the environment.
    """

    deadline_ms: int = 8000
    min_spacing_ms: int = 250
    retry_base_ms: int = 1000
    retry_cap_ms: int = 8000
    max_attempts: int = 3

    def __post_init__(self) -> None:
        if self.deadline_ms <= 0:
            raise ValueError("deadline_ms must be positive")
        if self.min_spacing_ms < 0:
            raise ValueError("min_spacing_ms cannot be negative")
        if self.retry_base_ms <= 0 or self.retry_cap_ms < self.retry_base_ms:
            raise ValueError("retry_base_ms must be positive and not exceed retry_cap_ms")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_env(cls) -> "SyncPolicy":
        return cls(
            deadline_ms=int(os.getenv("SESSION_DEADLINE_MS", "8000")),
            min_spacing_ms=int(os.getenv("SESSION_MIN_SPACING_MS", "250")),
            retry_base_ms=int(os.getenv("SESSION_RETRY_BASE_MS", "1000")),
            retry_cap_ms=int(os.getenv("SESSION_RETRY_CAP_MS", "8000")),
            max_attempts=int(os.getenv("SESSION_RETRY_MAX_ATTEMPTS", "3")),
        )

    def backoff_ms(self, consecutive_failures: int) -> int:
        """Delay before the retry that follows the given failure count."""
        exponent = max(consecutive_failures - 1, 0)
        return min(self.retry_cap_ms, self.retry_base_ms * (2**exponent))
