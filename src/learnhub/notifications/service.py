"""Notification creation and delivery service.

Notifications are:
1. Persisted in the database (single rows or one batch insert)
2. Optionally mirrored by email, filtered by the user's per-type email
   preference; the send runs as a background task so a provider failure
   never touches the persisted row
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub import background
from learnhub.config import get_settings
from learnhub.db.enums import NotificationType, UserRole
from learnhub.db.models import Notification, NotificationPreference, User
from learnhub.email.service import get_email_service
from learnhub.redis_client import get_optional_redis

logger = logging.getLogger(__name__)

# Notification type -> NotificationPreference column gating its email.
EMAIL_PREFERENCE_MAP: dict[NotificationType, str] = {
    NotificationType.WELCOME: "email_welcome",
    NotificationType.COURSE_ENROLLMENT: "email_course_enrollment",
    NotificationType.COURSE_COMPLETION: "email_course_completion",
    NotificationType.NEW_COURSE_AVAILABLE: "email_new_courses",
    NotificationType.PROGRESS_REMINDER: "email_progress_reminders",
    NotificationType.CERTIFICATE_ISSUED: "email_certificates",
    NotificationType.PROMOTION: "email_promotions",
    NotificationType.SYSTEM_ANNOUNCEMENT: "email_promotions",
}

PREFERENCE_FIELDS = tuple(dict.fromkeys(EMAIL_PREFERENCE_MAP.values()))

DEFAULT_PREFERENCES: dict[str, bool] = {field: True for field in PREFERENCE_FIELDS}


def should_email(preferences: NotificationPreference | None, type_: NotificationType) -> bool:
    """Whether the user accepts email for this notification type. No row means yes."""
    if preferences is None:
        return True
    field = EMAIL_PREFERENCE_MAP.get(type_)
    if field is None:
        return True
    return bool(getattr(preferences, field))


async def get_preferences(db: AsyncSession, user_id: int) -> dict[str, bool]:
    """The user's email preferences, falling back to defaults."""
    prefs = await db.get(NotificationPreference, user_id)
    if prefs is None:
        return dict(DEFAULT_PREFERENCES)
    return {field: bool(getattr(prefs, field)) for field in PREFERENCE_FIELDS}


async def update_preferences(db: AsyncSession, user_id: int, changes: dict[str, bool]) -> dict[str, bool]:
    """Apply a partial update; unknown keys are ignored. Does not commit."""
    prefs = await db.get(NotificationPreference, user_id)
    if prefs is None:
        prefs = NotificationPreference(user_id=user_id, **DEFAULT_PREFERENCES)
        db.add(prefs)
    for field, value in changes.items():
        if field in DEFAULT_PREFERENCES and value is not None:
            setattr(prefs, field, bool(value))
    prefs.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return {field: bool(getattr(prefs, field)) for field in PREFERENCE_FIELDS}


def _action_url(metadata: dict[str, Any]) -> str | None:
    path = metadata.get("action_path")
    if not path:
        return None
    return get_settings().frontend_base_url.rstrip("/") + path


async def _deliver_email(
    to: str,
    display_name: str | None,
    type_: NotificationType,
    title: str,
    message: str,
    metadata: dict,
) -> None:
    service = get_email_service(get_optional_redis())
    if type_ is NotificationType.CERTIFICATE_ISSUED and "certificate_number" in metadata:
        template, context = "certificate", {
            "display_name": display_name,
            "course_title": metadata.get("course_title", ""),
            "certificate_number": metadata["certificate_number"],
            "verify_url": _action_url(metadata) or get_settings().frontend_base_url,
        }
    else:
        template, context = "notification", {
            "display_name": display_name,
            "title": title,
            "message": message,
            "action_url": _action_url(metadata),
        }
    sent = await service.send_template(to, template, context)
    if not sent:
        logger.warning("Notification email to %s was not delivered", to)


def queue_email(user: User, type_: NotificationType, title: str, message: str, metadata: dict[str, Any]) -> None:
    """Send the email mirror in the background."""
    background.spawn(
        _deliver_email(user.email, user.name, type_, title, message, metadata),
        name=f"notification-email:{user.id}",
    )


async def create_notification(
    db: AsyncSession,
    user_id: int,
    type_: NotificationType,
    title: str,
    message: str,
    metadata: dict[str, Any] | None = None,
    send_email: bool = False,
) -> Notification:
    """Persist a notification; optionally mirror it by email. Does not commit."""
    notification = Notification(
        user_id=user_id,
        type=type_.value,
        title=title,
        message=message,
        notification_metadata=metadata or {},
        sent_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    await db.flush()

    if send_email:
        user = await db.get(User, user_id)
        prefs = await db.get(NotificationPreference, user_id)
        if user is not None and should_email(prefs, type_):
            queue_email(user, type_, title, message, metadata or {})
        else:
            logger.debug("Email for %s suppressed for user %s", type_.value, user_id)

    return notification


async def get_broadcast_audience(db: AsyncSession) -> list[int]:
    """All non-admin user ids."""
    result = await db.execute(
        select(User.id).where(User.role != UserRole.ADMIN.value).order_by(User.id)
    )
    return list(result.scalars().all())


async def send_bulk_notification(
    db: AsyncSession,
    user_ids: list[int] | None,
    type_: NotificationType,
    title: str,
    message: str,
    metadata: dict[str, Any] | None = None,
    send_email: bool = False,
) -> int:
    """Insert one notification per target in a single batch.

    ``None`` or an empty list targets every non-admin user. Returns the
    number of notifications created. Does not commit.
    """
    targets = list(dict.fromkeys(user_ids)) if user_ids else await get_broadcast_audience(db)
    if not targets:
        return 0

    now = datetime.now(timezone.utc)
    await db.execute(
        insert(Notification),
        [
            {
                "user_id": uid,
                "type": type_.value,
                "title": title,
                "message": message,
                "notification_metadata": metadata or {},
                "is_read": False,
                "sent_at": now,
            }
            for uid in targets
        ],
    )

    if send_email:
        users = (await db.execute(select(User).where(User.id.in_(targets)))).scalars().all()
        prefs = {
            p.user_id: p
            for p in (
                await db.execute(select(NotificationPreference).where(NotificationPreference.user_id.in_(targets)))
            ).scalars()
        }
        for user in users:
            if should_email(prefs.get(user.id), type_):
                queue_email(user, type_, title, message, metadata or {})

    logger.info("Bulk %s notification sent to %d users", type_.value, len(targets))
    return len(targets)


async def get_notifications(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    """Get user's notifications (paginated, most recent first)."""
    filters = [Notification.user_id == user_id]
    if unread_only:
        filters.append(Notification.is_read.is_(False))

    total = (await db.execute(select(func.count()).select_from(Notification).where(*filters))).scalar_one()

    result = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.sent_at.desc(), Notification.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def mark_as_read(db: AsyncSession, user_id: int, notification_id: int) -> bool:
    """Mark one notification as read. Returns False only if it is not this user's.

    Marking an already-read notification succeeds without changing ``read_at``.
    """
    exists = (
        await db.execute(
            select(Notification.id).where(Notification.id == notification_id, Notification.user_id == user_id)
        )
    ).scalar_one_or_none()
    if exists is None:
        return False

    await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return True


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    """Mark all unread notifications as read. Returns count updated."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    """Get count of unread notifications."""
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return result.scalar_one()


async def delete_old_notifications(db: AsyncSession, days: int = 30) -> int:
    """Delete read notifications older than ``days``. Unread ones are kept. Does not commit."""
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    result = await db.execute(
        delete(Notification)
        .where(Notification.is_read.is_(True), Notification.sent_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def list_all_notifications(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 50,
    type_: NotificationType | None = None,
) -> tuple[list[Notification], int]:
    """Admin view across all users."""
    filters = [Notification.type == type_.value] if type_ else []
    total = (await db.execute(select(func.count()).select_from(Notification).where(*filters))).scalar_one()
    result = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.sent_at.desc(), Notification.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total
