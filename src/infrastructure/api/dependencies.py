from __future__ import annotations

from fastapi import HTTPException, Request, status

from src.application.use_cases.session_loader import SessionLoader
from src.domain.entities.sync_policy import SyncPolicy
from src.infrastructure.database.repositories.profile_repository import ProfileRepository
from src.infrastructure.database.supabase_client import get_identity_provider, get_supabase_client
from src.infrastructure.observability.event_sink import LoggingEventSink


def build_session_loader() -> SessionLoader:
    """Wire the session loader from environment settings."""
    return SessionLoader(
        get_identity_provider(),
        ProfileRepository(get_supabase_client()),
        policy=SyncPolicy.from_env(),
        sink=LoggingEventSink(),
    )


def get_session_loader(request: Request) -> SessionLoader:
    loader = getattr(request.app.state, "session_loader", None)
    if loader is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Session loader not running")
    return loader
