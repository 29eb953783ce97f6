"""Pydantic models for enrollment, progress and review endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class EnrollmentResponse(BaseModel):
    id: int
    course_id: int
    status: str
    enrolled_at: datetime
    completed_at: datetime | None = None


class CompletionResponse(BaseModel):
    course_id: int
    total_lessons: int
    completed_lessons: int
    percentage: float
    certificate_eligible: bool


class ProgressRequest(BaseModel):
    lesson_id: int
    is_completed: bool = False
    seconds_watched: int = Field(default=0, ge=0)


class ProgressEntry(BaseModel):
    lesson_id: int
    is_completed: bool
    completed_at: datetime | None = None
    seconds_watched: int
    last_watched_at: datetime


class AwardedBadge(BaseModel):
    id: int
    name: str
    icon: str
    points: int


class ProgressUpdateResponse(BaseModel):
    progress: ProgressEntry
    course_id: int
    completion: float
    certificate_eligible: bool
    points_awarded: int
    course_completed: bool
    badges_earned: list[AwardedBadge] = []


class CourseProgressResponse(BaseModel):
    course_id: int
    completion: CompletionResponse
    lessons: list[ProgressEntry]


class ReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=5000)


class ReviewResponse(BaseModel):
    id: int
    course_id: int
    rating: int
    comment: str | None = None
    created: bool
    average_rating: float
    review_count: int
