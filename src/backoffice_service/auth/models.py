"""Auth domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

ADMIN_ROLE = "admin"
ROLES = ("admin", "user")


@dataclass
class Identity:
    """A verified user as reported by the identity provider."""

    id: str
    email: str | None = None
    role: str | None = None  # "admin" | "user", from user_metadata.role
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, user_id: str, email: str | None, metadata: Any) -> Identity:
        metadata = metadata if isinstance(metadata, dict) else {}
        role = metadata.get("role")
        return cls(
            id=str(user_id),
            email=email,
            role=role if isinstance(role, str) else None,
            metadata=metadata,
        )


@dataclass(frozen=True)
class AuthContext:
    """Per-request result of the admin gate. Never persisted."""

    token: str
    user: Identity
    is_admin: bool

    @property
    def user_uuid(self) -> UUID | None:
        """The caller's id as a UUID, for ``created_by`` columns."""
        try:
            return UUID(self.user.id)
        except ValueError:
            return None
