"""Access policy gate consulted by every mutation path."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

from townsquare.core.errors import Forbidden
from townsquare.core.security import Actor
from townsquare.models import (
    Channel,
    ChannelMembership,
    Comment,
    Location,
    Notification,
    Post,
    UserLocation,
    UserProfile,
    Vote,
)
from townsquare.schemas.location import ADMIN_ONLY_LOCATION_FIELDS

logger = logging.getLogger(__name__)

Action = Literal["read", "create", "update", "delete"]


@dataclass(frozen=True)
class Resource:
    """What an action targets: its kind, its owner and the fields being written."""

    kind: str
    owner_id: str | None = None
    fields: frozenset[str] = field(default_factory=frozenset)


Rule = Callable[[Actor, Resource], bool]


def _anyone(actor: Actor, resource: Resource) -> bool:
    return True


def _authenticated(actor: Actor, resource: Resource) -> bool:
    return actor.is_authenticated


def _owner(actor: Actor, resource: Resource) -> bool:
    return actor.is_authenticated and actor.user_id == resource.owner_id


def _admin_or_owner(actor: Actor, resource: Resource) -> bool:
    return actor.is_admin or _owner(actor, resource)


def _authenticated_admin_fields(actor: Actor, resource: Resource) -> bool:
    if not actor.is_authenticated:
        return False
    return actor.is_admin or not (resource.fields & ADMIN_ONLY_LOCATION_FIELDS)


def _admin_or_owner_plain_fields(actor: Actor, resource: Resource) -> bool:
    if actor.is_admin:
        return True
    return _owner(actor, resource) and not (resource.fields & ADMIN_ONLY_LOCATION_FIELDS)


def _nobody(actor: Actor, resource: Resource) -> bool:
    return False


RULES: dict[str, dict[str, Rule]] = {
    "user_profile": {
        "read": _anyone, "create": _owner, "update": _owner, "delete": _owner,
    },
    "location": {
        "read": _anyone,
        "create": _authenticated_admin_fields,
        "update": _admin_or_owner_plain_fields,
        "delete": _admin_or_owner,
    },
    "channel": {
        "read": _anyone, "create": _authenticated, "update": _owner, "delete": _owner,
    },
    "post": {
        "read": _anyone, "create": _authenticated, "update": _owner, "delete": _owner,
    },
    "comment": {
        "read": _anyone, "create": _authenticated, "update": _owner, "delete": _owner,
    },
    "vote": {
        "read": _authenticated, "create": _owner, "update": _owner, "delete": _owner,
    },
    "channel_membership": {
        "read": _anyone, "create": _owner, "update": _owner, "delete": _owner,
    },
    "user_location": {
        "read": _authenticated, "create": _owner, "update": _owner, "delete": _owner,
    },
    # Notifications are created by the system only.
    "notification": {
        "read": _owner, "create": _nobody, "update": _owner, "delete": _owner,
    },
}

# Column holding the owner of each model, and the resource kind it maps to.
_OWNERSHIP: dict[type, tuple[str, str]] = {
    UserProfile: ("user_profile", "id"),
    Location: ("location", "created_by"),
    Channel: ("channel", "created_by"),
    Post: ("post", "author_id"),
    Comment: ("comment", "author_id"),
    Vote: ("vote", "user_id"),
    ChannelMembership: ("channel_membership", "user_id"),
    UserLocation: ("user_location", "user_id"),
    Notification: ("notification", "user_id"),
}


def resource_for(entity: object, fields: frozenset[str] | set[str] = frozenset()) -> Resource:
    """Describe a loaded entity as a ``Resource``."""
    kind, owner_attr = _OWNERSHIP[type(entity)]
    return Resource(kind=kind, owner_id=getattr(entity, owner_attr), fields=frozenset(fields))


def is_allowed(actor: Actor, action: Action, resource: Resource) -> bool:
    rule = RULES.get(resource.kind, {}).get(action)
    return rule is not None and rule(actor, resource)


def authorize(actor: Actor, action: Action, resource: Resource | object) -> None:
    """Allow or deny ``action`` on ``resource`` for ``actor``.

    ``resource`` may be a ``Resource`` or a loaded model instance.

    Raises:
        Forbidden: With a uniform message; the failing rule is only logged.
    """
    if not isinstance(resource, Resource):
        resource = resource_for(resource)
    if not is_allowed(actor, action, resource):
        logger.debug(
            "Denied %s on %s (actor=%s, owner=%s, fields=%s)",
            action,
            resource.kind,
            actor.user_id or "guest",
            resource.owner_id,
            sorted(resource.fields),
        )
        raise Forbidden()
