from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities.identity import Identity
from src.domain.entities.profile import AppRole, ProfileAttributes


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """What consumers see: who is signed in and their derived profile attributes.

    Snapshots are immutable. The session loader publishes a new one for every
    change, so a reader holding a snapshot always sees a consistent
    identity/profile pair.
    """

    loading: bool = True
    identity: Identity | None = None
    profile: ProfileAttributes = field(default_factory=ProfileAttributes.empty)

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def role(self) -> AppRole | None:
        return self.profile.role

    @property
    def related_patient_id(self) -> str | None:
        return self.profile.related_patient_id

    @property
    def related_pharmacy_id(self) -> str | None:
        return self.profile.related_pharmacy_id

    @property
    def account_type(self) -> str | None:
        return self.profile.account_type

    @property
    def is_admin(self) -> bool:
        return self.profile.role is AppRole.ADMIN

    @property
    def is_pharmacy_company(self) -> bool:
        return self.profile.role is AppRole.PHARMACY_COMPANY

    @property
    def is_patient(self) -> bool:
        return self.profile.role is AppRole.PATIENT

    @classmethod
    def signed_out(cls, *, loading: bool = False) -> "SessionSnapshot":
        return cls(loading=loading, identity=None, profile=ProfileAttributes.empty())


@dataclass(frozen=True, slots=True)
class RetryState:
    consecutive_failures: int = 0
    next_allowed_at: float | None = None  # monotonic seconds
    armed: bool = False
