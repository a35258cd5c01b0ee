from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.application.dtos.common_dto import ErrorResponse
from src.application.dtos.session_dto import RetryStatusResponse, SessionView
from src.application.use_cases.session_loader import SessionLoader
from src.infrastructure.api.dependencies import get_session_loader

router = APIRouter(
    prefix="/session",
    tags=["Session"],
    responses={
        503: {"model": ErrorResponse, "description": "Service Unavailable - Session loader is not running"},
    },
)


@router.get(
    "",
    response_model=SessionView,
    status_code=status.HTTP_200_OK,
    summary="Current Session",
    description="""
    Return the current signed-in identity and its derived profile attributes.

    The view is whatever the session loader last published; it never waits for
    a load. While the first load is still running `loading` is true and the
    session reads as signed out.
    """,
    response_description="Current session view",
)
async def get_session(loader: SessionLoader = Depends(get_session_loader)):
    """Get the current session view."""
    return SessionView.from_snapshot(loader.state)


@router.post(
    "/refresh",
    response_model=SessionView,
    status_code=status.HTTP_200_OK,
    summary="Refresh Session",
    description="""
    Reload identity and profile and return the settled session.

    Concurrent refreshes are coalesced: at most one load runs at a time and at
    most one trailing load follows it. Remote failures are never returned as
    errors; a failed load reads as signed out.
    """,
    response_description="Session view after the refresh settled",
)
async def refresh_session(loader: SessionLoader = Depends(get_session_loader)):
    """Refresh the session and return the settled view."""
    await loader.refresh()
    return SessionView.from_snapshot(loader.state)


@router.get(
    "/retry",
    response_model=RetryStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Retry Status",
    description="Report consecutive load failures and whether automatic retries are armed or suspended.",
    response_description="Retry scheduler status",
)
async def get_retry_status(loader: SessionLoader = Depends(get_session_loader)):
    """Get the session loader's retry status."""
    return RetryStatusResponse.from_state(
        loader.retry_state,
        now=loader.clock(),
        max_attempts=loader.policy.max_attempts,
    )
