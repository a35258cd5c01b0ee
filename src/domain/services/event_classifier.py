from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final


class AuthEventKind(str, Enum):
    """Notification kinds emitted by the Supabase auth client."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"

    @classmethod
    def parse(cls, raw: "str | AuthEventKind") -> "AuthEventKind | None":
        if isinstance(raw, AuthEventKind):
            return raw
        try:
            return cls(str(raw).upper())
        except ValueError:
            return None


class _NeverLoaded:
    def __repr__(self) -> str:
        return "NEVER_LOADED"


NEVER_LOADED: Final = _NeverLoaded()


@dataclass(frozen=True, slots=True)
class EventDecision:
    reload: bool
    reset_retry: bool
    reason: str


def classify_auth_event(
    kind: "str | AuthEventKind",
    candidate_id: str | None,
    last_loaded_id: "str | None | _NeverLoaded" = NEVER_LOADED,
    *,
    settled: bool = False,
) -> EventDecision:
    """Decide whether an auth notification warrants a reload.

    ``last_loaded_id`` is the identity id of the published session (None once
    a load has signed out or failed) or ``NEVER_LOADED`` until the first load
    attempt has finished. ``settled`` is true while the
    published session came from a successful load; after a failure it is
    false, so a repeated sign-in for the same user still reloads.
    """
    parsed = AuthEventKind.parse(kind)
    if parsed is None:
        return EventDecision(reload=False, reset_retry=False, reason="unrecognized")

    if parsed is AuthEventKind.USER_UPDATED:
        return EventDecision(reload=True, reset_retry=True, reason="user_updated")

    if parsed in (AuthEventKind.SIGNED_IN, AuthEventKind.SIGNED_OUT):
        if settled and last_loaded_id is not NEVER_LOADED and candidate_id == last_loaded_id:
            return EventDecision(reload=False, reset_retry=False, reason="duplicate")
        return EventDecision(reload=True, reset_retry=True, reason=parsed.value.lower())

    # TOKEN_REFRESHED / INITIAL_SESSION: routine, reload only on identity change
    if last_loaded_id is NEVER_LOADED:
        return EventDecision(reload=False, reset_retry=False, reason="startup_pending")
    if candidate_id != last_loaded_id:
        return EventDecision(reload=True, reset_retry=True, reason="identity_changed")
    return EventDecision(reload=False, reset_retry=False, reason="unchanged")
