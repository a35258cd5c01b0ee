from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class AppRole(str, Enum):
    PATIENT = "patient"
    PHARMACY_COMPANY = "pharmacy_company"
    ADMIN = "admin"


# "pharmacy" is the legacy spelling still present in older profile rows
_DB_ROLE_MAP: dict[str, AppRole] = {
    "patient": AppRole.PATIENT,
    "pharmacy": AppRole.PHARMACY_COMPANY,
    "pharmacy_company": AppRole.PHARMACY_COMPANY,
    "admin": AppRole.ADMIN,
}


def normalize_role(db_role: str | None) -> AppRole | None:
    """Map a raw ``profile_users.role`` value to an app role, or None if unknown."""
    if not db_role:
        return None
    return _DB_ROLE_MAP.get(db_role.strip().lower())


@dataclass(frozen=True, slots=True)
class ProfileAttributes:
    role: AppRole | None = None
    related_patient_id: str | None = None
    related_pharmacy_id: str | None = None
    account_type: str | None = None
    db_role: str | None = None

    @classmethod
    def empty(cls) -> "ProfileAttributes":
        return cls()

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProfileAttributes":
        db_role = row.get("role")
        return cls(
            role=normalize_role(db_role),
            related_patient_id=row.get("related_patient_id"),
            related_pharmacy_id=row.get("related_pharmacy_id"),
            account_type=row.get("account_type"),
            db_role=db_role,
        )
