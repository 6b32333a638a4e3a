"""Notification endpoints for the authenticated caller."""

from fastapi import APIRouter

from townsquare.models import Notification
from townsquare.schemas.notification import NotificationResponse
from townsquare.services import notifications as notification_service

from ..dependencies import CurrentActorDep, StoreDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def list_notifications(
    actor: CurrentActorDep,
    store: StoreDep,
    unread_only: bool = False,
) -> list[Notification]:
    """List the caller's notifications, newest first."""
    return notification_service.list_notifications(store, actor, unread_only=unread_only)


@router.post("/read-all")
async def mark_all_read(actor: CurrentActorDep, store: StoreDep) -> dict[str, int]:
    return {"updated": notification_service.mark_all_read(store, actor)}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    actor: CurrentActorDep,
    store: StoreDep,
) -> Notification:
    return notification_service.mark_read(store, actor, notification_id)
