"""Pydantic models for notification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from learnhub.db.enums import NotificationType


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    metadata: dict = {}
    is_read: bool
    sent_at: datetime
    read_at: datetime | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    unread: int
    page: int
    per_page: int


class UnreadCountResponse(BaseModel):
    unread: int


class MarkReadResponse(BaseModel):
    success: bool
    updated: int = 0


class PreferencesResponse(BaseModel):
    email_welcome: bool
    email_course_enrollment: bool
    email_course_completion: bool
    email_new_courses: bool
    email_progress_reminders: bool
    email_certificates: bool
    email_promotions: bool


class PreferencesUpdate(BaseModel):
    email_welcome: bool | None = None
    email_course_enrollment: bool | None = None
    email_course_completion: bool | None = None
    email_new_courses: bool | None = None
    email_progress_reminders: bool | None = None
    email_certificates: bool | None = None
    email_promotions: bool | None = None


BULK_TYPES = frozenset(
    {NotificationType.NEW_COURSE_AVAILABLE, NotificationType.PROMOTION, NotificationType.SYSTEM_ANNOUNCEMENT}
)


class BulkNotificationRequest(BaseModel):
    type: NotificationType = NotificationType.SYSTEM_ANNOUNCEMENT
    title: str = Field(min_length=1, max_length=256)
    message: str = Field(min_length=1, max_length=5000)
    user_ids: list[int] | None = None
    send_email: bool = False


class BulkNotificationResponse(BaseModel):
    sent: int


class AdminNotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    page: int
    per_page: int
