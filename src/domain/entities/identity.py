from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class Identity:
    id: str  # user id from Supabase auth
    email: str | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict)
