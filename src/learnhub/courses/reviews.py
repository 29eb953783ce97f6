"""Course reviews: one per (user, course), updated in place."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.courses.enrollment import get_active_enrollment
from learnhub.db.enums import PointTransactionType
from learnhub.db.models import Course, Review
from learnhub.errors import ConflictError, IneligibleError, NotFoundError
from learnhub.gamification.badge_service import check_and_award_badges
from learnhub.gamification.points_service import award_points


async def write_review(
    db: AsyncSession,
    user_id: int,
    course_id: int,
    rating: int,
    comment: str | None = None,
) -> tuple[Review, bool]:
    """Create or update the user's review. Returns (review, created). Commits.

    Only the first review of a course earns REVIEW_WRITTEN points.
    """
    course = await db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    if await get_active_enrollment(db, user_id, course_id) is None:
        raise IneligibleError("You must be enrolled in this course to review it")

    now = datetime.now(timezone.utc)
    result = await db.execute(select(Review).where(Review.user_id == user_id, Review.course_id == course_id))
    review = result.scalar_one_or_none()
    created = review is None
    if review is None:
        review = Review(user_id=user_id, course_id=course_id, rating=rating, comment=comment, created_at=now)
        db.add(review)
    else:
        review.rating = rating
        review.comment = comment
    review.updated_at = now

    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Review was submitted concurrently, retry") from e

    if created:
        await award_points(
            db,
            user_id,
            PointTransactionType.REVIEW_WRITTEN,
            f"Reviewed course: {course.title}",
            metadata={"course_id": course_id, "rating": rating},
        )
    await db.commit()

    if created:
        await check_and_award_badges(db, user_id)
    return review, created


async def get_course_rating(db: AsyncSession, course_id: int) -> dict:
    row = (
        await db.execute(
            select(func.count(Review.id), func.avg(Review.rating)).where(Review.course_id == course_id)
        )
    ).one()
    count, average = row
    return {"course_id": course_id, "review_count": count, "average_rating": round(float(average or 0), 2)}
