"""User profile endpoints."""

from fastapi import APIRouter, status

from townsquare.models import UserProfile
from townsquare.schemas.user import ProfileCreate, ProfileResponse, ProfileUpdate
from townsquare.services import users as user_service

from ..dependencies import CurrentActorDep, StoreDep

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register_profile(
    profile_data: ProfileCreate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> UserProfile:
    """Create the caller's profile under their token subject."""
    return user_service.register_profile(store, actor, profile_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(user_id: str, store: StoreDep) -> UserProfile:
    return user_service.get_profile(store, user_id)


@router.patch("/{user_id}", response_model=ProfileResponse)
async def update_profile(
    user_id: str,
    profile_data: ProfileUpdate,
    actor: CurrentActorDep,
    store: StoreDep,
) -> UserProfile:
    """Update the caller's own profile."""
    return user_service.update_profile(store, actor, user_id, profile_data)
