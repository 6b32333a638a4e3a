"""Bearer token helpers and the request actor."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from townsquare.core.settings import settings


@dataclass(frozen=True)
class Actor:
    """Caller of a service operation; ``user_id`` is None for guests."""

    user_id: str | None = None
    groups: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def guest(cls) -> Actor:
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and settings.admin_group in self.groups


def create_access_token(
    user_id: str,
    groups: Iterable[str] = (),
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed token for ``user_id``.

    Production tokens come from the identity provider; this helper exists for
    local tooling and tests and produces the same claim layout.
    """
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": user_id, "groups": sorted(groups), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Actor:
    """Decode a bearer token into an ``Actor``.

    Raises:
        jose.JWTError: If the token is malformed, expired or lacks a subject.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if not subject:
        raise JWTError("Token has no subject")
    groups = payload.get("groups") or []
    if isinstance(groups, str):
        groups = [groups]
    return Actor(user_id=str(subject), groups=frozenset(str(g) for g in groups))
