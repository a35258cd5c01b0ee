from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from src.domain.entities.identity import Identity
from src.domain.entities.profile import ProfileAttributes

AuthEventHandler = Callable[[str, "str | None"], None]


class IdentityProvider(Protocol):
    def get_current_identity(self) -> Awaitable[Identity | None]: ...

    def subscribe(self, handler: AuthEventHandler) -> Callable[[], None]:
        """Register ``handler(event_kind, candidate_identity_id)``; returns the unsubscribe callable."""
        ...


class ProfileStore(Protocol):
    def lookup_profile(self, identity_id: str) -> Awaitable[ProfileAttributes | None]: ...


class EventSink(Protocol):
    def emit(self, event: str, **fields: Any) -> None: ...
