"""Admin endpoints: badge catalog, point adjustments, stats and broadcasts."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.auth.dependencies import require_admin
from learnhub.database import get_session
from learnhub.db.enums import NotificationType
from learnhub.db.models import Course, User
from learnhub.errors import IneligibleError, NotFoundError
from learnhub.gamification.admin_service import (
    adjust_points,
    create_badge,
    delete_badge,
    get_gamification_stats,
    list_all_badges,
    update_badge,
)
from learnhub.gamification.router import badge_response
from learnhub.gamification.schemas import (
    AllBadgesResponse,
    BadgeCreateRequest,
    BadgeResponse,
    BadgeUpdateRequest,
    GamificationStatsResponse,
    PointAdjustRequest,
    PointAdjustResponse,
)
from learnhub.gamification.seed import BADGE_SEED_DATA, seed_badges
from learnhub.notifications.router import notification_response
from learnhub.notifications.schemas import (
    BULK_TYPES,
    AdminNotificationListResponse,
    BulkNotificationRequest,
    BulkNotificationResponse,
)
from learnhub.notifications.service import list_all_notifications, send_bulk_notification
from learnhub.notifications.triggers import notify_new_course

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


# ---- Badges ----


@router.get("/badges", response_model=AllBadgesResponse)
async def admin_list_badges(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Every badge, inactive and unsupported ones included."""
    return AllBadgesResponse(badges=[badge_response(b) for b in await list_all_badges(db)])


@router.post("/badges", response_model=BadgeResponse, status_code=status.HTTP_201_CREATED)
async def admin_create_badge(
    body: BadgeCreateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    badge = await create_badge(db, body.model_dump(mode="json"))
    return badge_response(badge)


@router.put("/badges/{badge_id}", response_model=BadgeResponse)
async def admin_update_badge(
    badge_id: int,
    body: BadgeUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    badge = await update_badge(db, badge_id, body.model_dump(mode="json", exclude_unset=True))
    return badge_response(badge)


@router.delete("/badges/{badge_id}")
async def admin_delete_badge(
    badge_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> dict:
    await delete_badge(db, badge_id)
    return {"deleted": True, "id": badge_id}


@router.post("/badges/initialize")
async def admin_initialize_badges(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Insert missing default badges and refresh existing ones to their defaults."""
    created = await seed_badges(db, refresh=True)
    return {"created": created, "total": len(BADGE_SEED_DATA)}


# ---- Points ----


@router.post("/points/adjust", response_model=PointAdjustResponse)
async def admin_adjust_points(
    body: PointAdjustRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    gp = await adjust_points(db, admin.id, body.user_id, body.points, body.reason)
    return PointAdjustResponse(user_id=body.user_id, points=body.points, total_points=gp.total_points, level=gp.level)


@router.get("/gamification/stats", response_model=GamificationStatsResponse)
async def admin_stats(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await get_gamification_stats(db)


# ---- Notifications ----


@router.get("/notifications", response_model=AdminNotificationListResponse)
async def admin_list_notifications(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    type: NotificationType | None = Query(None),  # noqa: A002
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    items, total = await list_all_notifications(db, page, per_page, type)
    return AdminNotificationListResponse(
        notifications=[notification_response(n) for n in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post("/notifications", response_model=BulkNotificationResponse)
async def admin_send_notification(
    body: BulkNotificationRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Send to the listed users, or to every learner when ``user_ids`` is empty."""
    if body.type not in BULK_TYPES:
        raise IneligibleError(f"{body.type.value} notifications cannot be sent manually")
    sent = await send_bulk_notification(
        db, body.user_ids, body.type, body.title, body.message, send_email=body.send_email,
    )
    await db.commit()
    return BulkNotificationResponse(sent=sent)


@router.post("/courses/{course_id}/announce", response_model=BulkNotificationResponse)
async def admin_announce_course(
    course_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    course = await db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    if not course.is_published:
        raise IneligibleError("Only published courses can be announced")
    sent = await notify_new_course(db, course)
    await db.commit()
    return BulkNotificationResponse(sent=sent)
