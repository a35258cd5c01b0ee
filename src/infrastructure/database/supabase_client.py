from __future__ import annotations

import asyncio
import os
from typing import Any, Callable

from supabase import Client, create_client

from src.application.ports import AuthEventHandler
from src.domain.entities.identity import Identity
from src.domain.errors import RemoteFetchError


def _identity_from_user(user: Any) -> Identity | None:
    if user is None:
        return None
    return Identity(
        id=user.id,
        email=getattr(user, "email", None),
        attributes=dict(getattr(user, "user_metadata", None) or {}),
    )


class SupabaseIdentityProvider:
    """Identity provider backed by the Supabase auth client.

    The supabase client is synchronous, so session reads run in a worker
    thread. Auth state callbacks may fire on whichever thread drove the auth
    call; they are handed back to the event loop that subscribed.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    async def get_current_identity(self) -> Identity | None:
        try:
            session = await asyncio.to_thread(self.client.auth.get_session)
        except Exception as exc:
            raise RemoteFetchError(f"Supabase get_session failed: {exc}") from exc
        if session is None:
            return None
        return _identity_from_user(session.user)

    def subscribe(self, handler: AuthEventHandler) -> Callable[[], None]:
        loop = asyncio.get_running_loop()

        def on_change(event: Any, session: Any) -> None:
            user = getattr(session, "user", None) if session is not None else None
            kind = getattr(event, "value", event)
            loop.call_soon_threadsafe(handler, str(kind), user.id if user is not None else None)

        subscription = self.client.auth.on_auth_state_change(on_change)
        return subscription.unsubscribe


class InMemoryIdentityProvider:
    """Identity provider used when SUPABASE_DISABLED=1.

    ``sign_in``/``sign_out`` change the current identity and notify
    subscribers the way the real auth client would.
    """

    def __init__(self, identity: Identity | None = None) -> None:
        self._identity = identity
        self._handlers: list[AuthEventHandler] = []

    async def get_current_identity(self) -> Identity | None:
        return self._identity

    def subscribe(self, handler: AuthEventHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def sign_in(self, identity: Identity) -> None:
        self._identity = identity
        self.notify("SIGNED_IN", identity.id)

    def sign_out(self) -> None:
        self._identity = None
        self.notify("SIGNED_OUT", None)

    def notify(self, kind: str, candidate_id: str | None) -> None:
        for handler in list(self._handlers):
            handler(kind, candidate_id)


# Simple reusable singleton client getter for the provider and the profile repository
_CLIENT_SINGLETON: Client | None = None


def supabase_disabled() -> bool:
    return os.getenv("SUPABASE_DISABLED", "0") == "1"


def get_supabase_client() -> Client | None:
    global _CLIENT_SINGLETON
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY")
    if supabase_disabled() or not url or not key:
        return None
    if _CLIENT_SINGLETON is None:
        _CLIENT_SINGLETON = create_client(url, key)
    return _CLIENT_SINGLETON


def get_identity_provider() -> SupabaseIdentityProvider | InMemoryIdentityProvider:
    client = get_supabase_client()
    if client is None:
        return InMemoryIdentityProvider()
    return SupabaseIdentityProvider(client)
