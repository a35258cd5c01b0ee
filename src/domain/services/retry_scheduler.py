from __future__ import annotations

import asyncio
import time
from typing import Callable

from src.domain.entities.session_state import RetryState
from src.domain.entities.sync_policy import SyncPolicy


class RetryScheduler:
    """Bounded exponential backoff with a single armed timer.

    ``on_fire`` is called from the event loop when the armed timer expires.
    Once ``policy.max_attempts`` consecutive failures have been recorded no
    timer is armed until :meth:`reset` or :meth:`on_success` is called.
    """

    def __init__(
        self,
        policy: SyncPolicy,
        on_fire: Callable[[], None],
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.policy = policy
        self._on_fire = on_fire
        self._clock = clock
        self._failures = 0
        self._next_allowed_at: float | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def exhausted(self) -> bool:
        return self._failures >= self.policy.max_attempts

    @property
    def state(self) -> RetryState:
        return RetryState(
            consecutive_failures=self._failures,
            next_allowed_at=self._next_allowed_at,
            armed=self.armed,
        )

    def on_failure(self) -> float | None:
        """Record a failure and arm the next retry.

        Returns the delay in seconds, or None when automatic retries are
        suspended because the failure cap has been reached.
        """
        self._failures += 1
        self.disarm()
        if self.exhausted:
            return None
        delay = self.policy.backoff_ms(self._failures) / 1000
        loop = asyncio.get_running_loop()
        self._next_allowed_at = self._clock() + delay
        self._handle = loop.call_later(delay, self._fire)
        return delay

    def on_success(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._failures = 0
        self.disarm()

    def disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._next_allowed_at = None

    def _fire(self) -> None:
        self._handle = None
        self._next_allowed_at = None
        self._on_fire()
