from __future__ import annotations

from pydantic import BaseModel, Field

from src.domain.entities.session_state import RetryState, SessionSnapshot


class SessionView(BaseModel):
    """Read-only view of the current session and derived profile attributes."""
    loading: bool = Field(..., description="True while a load is in progress or has not yet completed")
    is_authenticated: bool = Field(..., description="True when an identity is signed in")
    identity_id: str | None = Field(None, description="Auth user id of the signed-in identity")
    email: str | None = Field(None, description="Email of the signed-in identity", examples=["user@example.com"])
    role: str | None = Field(None, description="App role, or null when unknown", examples=["patient"])
    related_patient_id: str | None = Field(None, description="Linked patient record, if any")
    related_pharmacy_id: str | None = Field(None, description="Linked pharmacy company, if any")
    account_type: str | None = Field(None, description="Account type recorded on the profile", examples=["patient_user"])
    is_admin: bool = Field(False, description="Role is admin")
    is_pharmacy_company: bool = Field(False, description="Role is pharmacy_company")
    is_patient: bool = Field(False, description="Role is patient")

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionView":
        identity = snapshot.identity
        return cls(
            loading=snapshot.loading,
            is_authenticated=snapshot.is_authenticated,
            identity_id=identity.id if identity else None,
            email=identity.email if identity else None,
            role=snapshot.role.value if snapshot.role else None,
            related_patient_id=snapshot.related_patient_id,
            related_pharmacy_id=snapshot.related_pharmacy_id,
            account_type=snapshot.account_type,
            is_admin=snapshot.is_admin,
            is_pharmacy_company=snapshot.is_pharmacy_company,
            is_patient=snapshot.is_patient,
        )


class RetryStatusResponse(BaseModel):
    """Self-healing retry status of the session loader."""
    consecutive_failures: int = Field(..., ge=0, description="Failed loads since the last success")
    armed: bool = Field(..., description="A retry timer is waiting to fire")
    next_retry_in_ms: int | None = Field(None, ge=0, description="Time until the armed retry fires")
    max_attempts: int = Field(..., ge=1, description="Consecutive failures after which retries stop")
    suspended: bool = Field(..., description="Automatic retries are stopped until a sign-in/out or user update")

    @classmethod
    def from_state(cls, state: RetryState, *, now: float, max_attempts: int) -> "RetryStatusResponse":
        next_in = None
        if state.armed and state.next_allowed_at is not None:
            next_in = max(0, round((state.next_allowed_at - now) * 1000))
        return cls(
            consecutive_failures=state.consecutive_failures,
            armed=state.armed,
            next_retry_in_ms=next_in,
            max_attempts=max_attempts,
            suspended=state.consecutive_failures >= max_attempts,
        )
