"""CRUD-style helpers for managing user profiles."""
from __future__ import annotations

import logging

from townsquare.core.errors import NotFound, ValidationFailure
from townsquare.core.security import Actor
from townsquare.models import UserProfile
from townsquare.schemas.user import ProfileCreate, ProfileUpdate
from townsquare.services.policy import Resource, authorize
from townsquare.services.store import EntityStore

logger = logging.getLogger(__name__)

__all__ = [
    "get_profile",
    "register_profile",
    "update_profile",
    "require_profile",
]


def get_profile(store: EntityStore, user_id: str) -> UserProfile:
    """Return an active profile by id."""
    return store.get_active(UserProfile, user_id, "User")


def require_profile(store: EntityStore, actor: Actor) -> UserProfile:
    """Return the actor's own active profile; content creation needs one."""
    if not actor.is_authenticated:
        authorize(actor, "create", Resource("user_profile"))
    profile = store.get(UserProfile, actor.user_id)
    if profile is None or not profile.is_active:
        raise NotFound("Create a profile before posting")
    return profile


def register_profile(store: EntityStore, actor: Actor, data: ProfileCreate) -> UserProfile:
    """Self-register the actor's profile under their token subject."""
    authorize(actor, "create", Resource("user_profile", owner_id=actor.user_id))
    if store.get(UserProfile, actor.user_id) is not None:
        raise ValidationFailure("Profile already exists")
    if store.find_one(UserProfile, username=data.username) is not None:
        raise ValidationFailure("Username is already taken")
    profile = store.create(
        UserProfile,
        {"id": actor.user_id, **data.model_dump()},
        conflict=ValidationFailure("Username is already taken"),
    )
    store.commit(conflict=ValidationFailure("Username is already taken"))
    logger.info("Registered profile %s (%s)", profile.id, profile.username)
    return profile


def update_profile(
    store: EntityStore,
    actor: Actor,
    user_id: str,
    data: ProfileUpdate,
) -> UserProfile:
    """Apply a partial update to the actor's own profile."""
    profile = get_profile(store, user_id)
    authorize(actor, "update", profile)
    store.update(profile, data.model_dump(exclude_unset=True))
    store.commit()
    return profile
