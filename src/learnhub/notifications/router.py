"""Notification endpoints for the current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.auth.dependencies import get_current_user
from learnhub.database import get_session
from learnhub.db.models import Notification, User
from learnhub.errors import NotFoundError
from learnhub.notifications.schemas import (
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
    PreferencesResponse,
    PreferencesUpdate,
    UnreadCountResponse,
)
from learnhub.notifications.service import (
    get_notifications,
    get_preferences,
    get_unread_count,
    mark_all_as_read,
    mark_as_read,
    update_preferences,
)

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


def notification_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        user_id=n.user_id,
        type=n.type,
        title=n.title,
        message=n.message,
        metadata=n.notification_metadata or {},
        is_read=n.is_read,
        sent_at=n.sent_at,
        read_at=n.read_at,
    )


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Most recent first."""
    items, total = await get_notifications(db, user.id, page, per_page, unread_only)
    unread = await get_unread_count(db, user.id)
    return NotificationListResponse(
        notifications=[notification_response(n) for n in items],
        total=total,
        unread=unread,
        page=page,
        per_page=per_page,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return UnreadCountResponse(unread=await get_unread_count(db, user.id))


@router.post("/read-all", response_model=MarkReadResponse)
async def read_all(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    updated = await mark_all_as_read(db, user.id)
    await db.commit()
    return MarkReadResponse(success=True, updated=updated)


@router.get("/preferences", response_model=PreferencesResponse)
async def read_preferences(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await get_preferences(db, user.id)


@router.put("/preferences", response_model=PreferencesResponse)
async def write_preferences(
    body: PreferencesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Partial update; omitted fields keep their value."""
    prefs = await update_preferences(db, user.id, body.model_dump(exclude_none=True))
    await db.commit()
    return prefs


@router.post("/{notification_id}/read", response_model=MarkReadResponse)
async def read_one(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if not await mark_as_read(db, user.id, notification_id):
        raise NotFoundError("Notification not found")
    await db.commit()
    return MarkReadResponse(success=True)
