from __future__ import annotations


class FetchTimeoutError(TimeoutError):
    """A remote identity or profile call did not finish before its deadline."""

    def __init__(self, label: str, duration_ms: int) -> None:
        super().__init__(f"{label} timed out after {duration_ms}ms")
        self.label = label
        self.duration_ms = duration_ms


class RemoteFetchError(RuntimeError):
    """The identity provider or the profile store rejected a call."""
