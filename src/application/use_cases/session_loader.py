from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import Callable, Coroutine

from src.application.ports import EventSink, IdentityProvider, ProfileStore
from src.domain.entities.identity import Identity
from src.domain.entities.profile import ProfileAttributes
from src.domain.entities.session_state import RetryState, SessionSnapshot
from src.domain.entities.sync_policy import SyncPolicy
from src.domain.errors import FetchTimeoutError
from src.domain.services.event_classifier import NEVER_LOADED, classify_auth_event
from src.domain.services.retry_scheduler import RetryScheduler
from src.domain.services.run_token import RunTokenGuard
from src.domain.services.timeout_guard import with_deadline
from src.infrastructure.observability.event_sink import LoggingEventSink

SessionListener = Callable[[SessionSnapshot], None]


class SessionLoader:
    """
    Keeps one session snapshot in sync with the identity provider and profile store.

    All triggers (startup, provider notifications, manual refreshes, retry
    timers) funnel into :meth:`load`. At most one load runs at a time; calls
    that arrive while one is running, or within ``policy.min_spacing_ms`` of the
    previous start, are folded into a single trailing load. Each load takes a
    ticket from :class:`RunTokenGuard` and only publishes while that ticket is
    still current. Failures publish a signed-out snapshot and hand over to
    :class:`RetryScheduler`.

    The loader must be driven from a single event loop.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        profile_store: ProfileStore,
        *,
        policy: SyncPolicy | None = None,
        sink: EventSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.identity_provider = identity_provider
        self.profile_store = profile_store
        self.policy = policy or SyncPolicy()
        self.sink = sink or LoggingEventSink()
        self.clock = clock
        self._tokens = RunTokenGuard()
        self._retry = RetryScheduler(self.policy, self._on_retry_timer, clock=clock)
        self._state = SessionSnapshot()
        self._listeners: list[SessionListener] = []
        self._tasks: set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._in_flight = False
        self._pending_reload = False
        self._last_started_at: float | None = None
        self._deferred: asyncio.TimerHandle | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._started = False
        self._stopped = False
        self._last_loaded_id: object = NEVER_LOADED
        self._settled = False

    # -- read side -----------------------------------------------------------

    @property
    def state(self) -> SessionSnapshot:
        return self._state

    @property
    def retry_state(self) -> RetryState:
        return self._retry.state

    @property
    def retries_suspended(self) -> bool:
        return self._retry.exhausted

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def pending_reload(self) -> bool:
        return self._pending_reload

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener`` with every snapshot published from now on."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        if self._started:
            raise RuntimeError("SessionLoader already started")
        self._started = True
        self._unsubscribe = self.identity_provider.subscribe(self.handle_auth_event)
        self.sink.emit("coordinator_started", **self._policy_fields())
        self._spawn(self.load())

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._retry.disarm()
        if self._deferred is not None:
            self._deferred.cancel()
            self._deferred = None
        # nothing that is still running may publish after this point
        self._tokens.begin()
        self._pending_reload = False

        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._idle.set()
        self.sink.emit("coordinator_stopped")

    # -- triggers ------------------------------------------------------------

    async def load(self) -> None:
        """Reload identity and profile, coalescing with any load already under way."""
        if self._stopped:
            return
        if self._in_flight:
            self._pending_reload = True
            self.sink.emit("load_coalesced", reason="in_flight")
            return
        wait = self._spacing_remaining()
        if wait > 0:
            self._pending_reload = True
            self._defer(wait)
            self.sink.emit("load_coalesced", reason="rate_limited", wait_ms=round(wait * 1000))
            return
        await self._start_run()

    async def refresh(self) -> None:
        """Trigger a load and wait until the session has settled."""
        await self.load()
        await self.wait_settled()

    async def wait_settled(self) -> None:
        """Wait until no load is running, pending, or deferred."""
        await self._idle.wait()

    def handle_auth_event(self, kind: str, candidate_id: str | None) -> None:
        """Entry point for identity provider notifications."""
        if self._stopped:
            return
        decision = classify_auth_event(kind, candidate_id, self._last_loaded_id, settled=self._settled)
        if not decision.reload:
            self.sink.emit("auth_event_ignored", kind=str(kind), reason=decision.reason)
            return
        if decision.reset_retry:
            self._retry.reset()
            self.sink.emit("retry_reset", kind=str(kind))
        self.sink.emit("auth_event_reload", kind=str(kind), reason=decision.reason)
        if self._in_flight:
            if decision.reset_retry:
                # the identity changed under the running load; drop its result
                self._tokens.begin()
            self._pending_reload = True
            self.sink.emit("load_coalesced", reason="in_flight")
            return
        self._spawn(self.load())

    # -- internals -----------------------------------------------------------

    def _begin_run(self) -> asyncio.Task:
        self._in_flight = True
        self._idle.clear()
        return self._spawn(self._run())

    async def _start_run(self) -> None:
        task = self._begin_run()
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not (self._stopped and task.cancelled()):
                raise

    async def _run(self) -> None:
        try:
            while True:
                self._pending_reload = False
                self._last_started_at = self.clock()
                await self._load_once()
                if self._stopped or not self._pending_reload:
                    break
                self.sink.emit("load_trailing")
        finally:
            self._in_flight = False
            self._mark_idle_if_quiet()

    async def _load_once(self) -> None:
        ticket = self._tokens.begin()
        if not self._state.loading:
            self._publish(replace(self._state, loading=True))
        self.sink.emit("load_started", ticket=ticket)

        deadline = self.policy.deadline_ms
        try:
            identity = await with_deadline(
                self.identity_provider.get_current_identity(), deadline, "identity fetch"
            )
            if not self._tokens.is_current(ticket):
                self.sink.emit("load_stale_discarded", ticket=ticket, stage="identity")
                return
            profile = ProfileAttributes.empty()
            if identity is not None:
                found = await with_deadline(
                    self.profile_store.lookup_profile(identity.id), deadline, "profile lookup"
                )
                if not self._tokens.is_current(ticket):
                    self.sink.emit("load_stale_discarded", ticket=ticket, stage="profile")
                    return
                profile = found or ProfileAttributes.empty()
        except Exception as exc:
            if not self._tokens.is_current(ticket):
                self.sink.emit("load_stale_discarded", ticket=ticket, stage="error")
                return
            self._on_load_failed(ticket, exc)
            return
        self._on_load_succeeded(ticket, identity, profile)

    def _on_load_succeeded(self, ticket: int, identity: Identity | None, profile: ProfileAttributes) -> None:
        self._last_loaded_id = identity.id if identity is not None else None
        self._settled = True
        self._publish(SessionSnapshot(loading=False, identity=identity, profile=profile))
        self._retry.on_success()
        self.sink.emit(
            "load_succeeded",
            ticket=ticket,
            authenticated=identity is not None,
            role=profile.role.value if profile.role else None,
        )

    def _on_load_failed(self, ticket: int, exc: Exception) -> None:
        kind = "timeout" if isinstance(exc, FetchTimeoutError) else "remote"
        # the published session is now signed out, so any identity a later
        # notification carries counts as a change
        self._last_loaded_id = None
        self._settled = False
        self._publish(SessionSnapshot.signed_out())
        self.sink.emit("load_failed", ticket=ticket, kind=kind, error=str(exc))

        delay = self._retry.on_failure()
        failures = self._retry.consecutive_failures
        if delay is None:
            self.sink.emit(
                "retry_exhausted",
                kind=kind,
                consecutive_failures=failures,
                max_attempts=self.policy.max_attempts,
            )
        else:
            self.sink.emit("retry_scheduled", kind=kind, attempt=failures, delay_ms=round(delay * 1000))

    def _on_retry_timer(self) -> None:
        if self._stopped:
            return
        self.sink.emit("retry_fired", consecutive_failures=self._retry.consecutive_failures)
        self._spawn(self.load())

    def _spacing_remaining(self) -> float:
        if self._last_started_at is None or self.policy.min_spacing_ms <= 0:
            return 0.0
        elapsed = self.clock() - self._last_started_at
        return max(0.0, self.policy.min_spacing_ms / 1000 - elapsed)

    def _defer(self, delay: float) -> None:
        if self._deferred is not None:
            return
        self._idle.clear()
        self._deferred = asyncio.get_running_loop().call_later(delay, self._on_deferred)

    def _on_deferred(self) -> None:
        self._deferred = None
        if self._stopped:
            return
        if self._pending_reload and not self._in_flight:
            self._begin_run()
        else:
            self._mark_idle_if_quiet()

    def _mark_idle_if_quiet(self) -> None:
        busy = self._in_flight or self._deferred is not None or self._pending_reload
        if self._stopped or not busy:
            self._idle.set()

    def _publish(self, snapshot: SessionSnapshot) -> None:
        self._state = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                self.sink.emit("listener_failed", error=repr(exc))

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _policy_fields(self) -> dict[str, int]:
        return {
            "deadline_ms": self.policy.deadline_ms,
            "min_spacing_ms": self.policy.min_spacing_ms,
            "max_attempts": self.policy.max_attempts,
        }
