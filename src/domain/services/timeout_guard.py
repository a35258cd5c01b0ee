from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from src.domain.errors import FetchTimeoutError

T = TypeVar("T")

DEFAULT_DEADLINE_MS = 8000


async def with_deadline(operation: Awaitable[T], duration_ms: int = DEFAULT_DEADLINE_MS, label: str = "operation") -> T:
    """Await ``operation`` but give up after ``duration_ms``.

    ``asyncio.timeout`` owns the deadline timer, so it is released whether the
    operation returns, raises, or runs out of time. On expiry the operation is
    cancelled and a :class:`FetchTimeoutError` naming ``label`` is raised.
    Errors raised by the operation itself propagate unchanged, including its
    own ``TimeoutError``.
    """
    deadline = asyncio.timeout(duration_ms / 1000)
    try:
        async with deadline:
            return await operation
    except TimeoutError as exc:
        if not deadline.expired():
            raise
        raise FetchTimeoutError(label, duration_ms) from exc
