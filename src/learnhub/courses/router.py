"""Enrollment, progress and review endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.auth.dependencies import get_current_user
from learnhub.courses.completion import get_course_progress
from learnhub.courses.enrollment import enroll_user, get_active_enrollment
from learnhub.courses.progress import list_course_progress, record_progress
from learnhub.courses.reviews import get_course_rating, write_review
from learnhub.courses.schemas import (
    AwardedBadge,
    CompletionResponse,
    CourseProgressResponse,
    EnrollmentResponse,
    ProgressEntry,
    ProgressRequest,
    ProgressUpdateResponse,
    ReviewRequest,
    ReviewResponse,
)
from learnhub.database import get_session
from learnhub.db.models import ProgressRecord, User
from learnhub.dependencies import get_event_bus
from learnhub.errors import NotFoundError
from learnhub.events.bus import EventBus

router = APIRouter(prefix="/api/v1", tags=["Courses"])


def _entry(record: ProgressRecord) -> ProgressEntry:
    return ProgressEntry(
        lesson_id=record.lesson_id,
        is_completed=record.is_completed,
        completed_at=record.completed_at,
        seconds_watched=record.seconds_watched,
        last_watched_at=record.last_watched_at,
    )


@router.post("/courses/{course_id}/enroll", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def enroll(
    course_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    events: EventBus = Depends(get_event_bus),
):
    """Enroll in a free course. Paid courses go through checkout instead."""
    enrollment = await enroll_user(db, events, user.id, course_id)
    return EnrollmentResponse(
        id=enrollment.id,
        course_id=enrollment.course_id,
        status=enrollment.status,
        enrolled_at=enrollment.enrolled_at,
        completed_at=enrollment.completed_at,
    )


@router.get("/courses/{course_id}/completion", response_model=CompletionResponse)
async def completion(
    course_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return await get_course_progress(db, user.id, course_id)


@router.post("/progress", response_model=ProgressUpdateResponse)
async def update_progress(
    body: ProgressRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Record watch time or completion for a lesson."""
    result = await record_progress(db, user.id, body.lesson_id, body.is_completed, body.seconds_watched)
    return ProgressUpdateResponse(
        progress=_entry(result.progress),
        course_id=result.course_id,
        completion=round(result.completion, 2),
        certificate_eligible=result.certificate_eligible,
        points_awarded=result.points_awarded,
        course_completed=result.course_completed,
        badges_earned=[AwardedBadge(id=b.id, name=b.name, icon=b.icon, points=b.points) for b in result.badges],
    )


@router.get("/progress", response_model=CourseProgressResponse)
async def course_progress(
    course_id: int = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if await get_active_enrollment(db, user.id, course_id) is None:
        raise NotFoundError("Not enrolled in this course")
    summary = await get_course_progress(db, user.id, course_id)
    records = await list_course_progress(db, user.id, course_id)
    return CourseProgressResponse(
        course_id=course_id,
        completion=CompletionResponse(**summary),
        lessons=[_entry(r) for r in records],
    )


@router.post("/courses/{course_id}/reviews", response_model=ReviewResponse)
async def review(
    course_id: int,
    body: ReviewRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Create or update the caller's review of a course."""
    saved, created = await write_review(db, user.id, course_id, body.rating, body.comment)
    rating = await get_course_rating(db, course_id)
    return ReviewResponse(
        id=saved.id,
        course_id=course_id,
        rating=saved.rating,
        comment=saved.comment,
        created=created,
        average_rating=rating["average_rating"],
        review_count=rating["review_count"],
    )
