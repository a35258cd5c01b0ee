from __future__ import annotations


class RunTokenGuard:
    """Hands out one ticket per load attempt; only the newest ticket is current."""

    def __init__(self) -> None:
        self._counter = 0

    @property
    def current(self) -> int:
        return self._counter

    def begin(self) -> int:
        self._counter += 1
        return self._counter

    def is_current(self, ticket: int) -> bool:
        return ticket == self._counter
