"""Initial schema.

Creates the read-side course tables (users, courses, course_modules,
lessons), enrollments, lesson progress, reviews, certificates, the points
ledger and aggregates, badges, streaks and notifications.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users & catalog ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            email VARCHAR(320) UNIQUE NOT NULL,
            name VARCHAR(128),
            role VARCHAR(16) NOT NULL DEFAULT 'STUDENT',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS courses (
            id BIGSERIAL PRIMARY KEY,
            slug VARCHAR(128) UNIQUE NOT NULL,
            title VARCHAR(256) NOT NULL,
            description TEXT,
            price NUMERIC(10, 2) NOT NULL DEFAULT 0,
            is_published BOOLEAN NOT NULL DEFAULT false,
            instructor_id BIGINT REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS course_modules (
            id BIGSERIAL PRIMARY KEY,
            course_id BIGINT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            title VARCHAR(256) NOT NULL,
            position INTEGER NOT NULL DEFAULT 0,
            is_published BOOLEAN NOT NULL DEFAULT false
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_course_modules_course_id ON course_modules(course_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS lessons (
            id BIGSERIAL PRIMARY KEY,
            module_id BIGINT NOT NULL REFERENCES course_modules(id) ON DELETE CASCADE,
            title VARCHAR(256) NOT NULL,
            position INTEGER NOT NULL DEFAULT 0,
            duration_seconds INTEGER NOT NULL DEFAULT 0,
            is_published BOOLEAN NOT NULL DEFAULT false
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_lessons_module_id ON lessons(module_id)")

    # --- Enrollment, progress, reviews ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS enrollments (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            course_id BIGINT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            status VARCHAR(16) NOT NULL DEFAULT 'ACTIVE',
            enrolled_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            completed_at TIMESTAMPTZ,
            CONSTRAINT enrollments_user_id_course_id_key UNIQUE (user_id, course_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_enrollments_course_id ON enrollments(course_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS lesson_progress (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            lesson_id BIGINT NOT NULL REFERENCES lessons(id) ON DELETE CASCADE,
            is_completed BOOLEAN NOT NULL DEFAULT false,
            completed_at TIMESTAMPTZ,
            seconds_watched INTEGER NOT NULL DEFAULT 0,
            last_watched_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            points_awarded BOOLEAN NOT NULL DEFAULT false,
            CONSTRAINT lesson_progress_user_id_lesson_id_key UNIQUE (user_id, lesson_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_lesson_progress_lesson_id ON lesson_progress(lesson_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS reviews (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            course_id BIGINT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            comment TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT reviews_user_id_course_id_key UNIQUE (user_id, course_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_reviews_course_id ON reviews(course_id)")

    # --- Certificates ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS certificates (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            course_id BIGINT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            certificate_number VARCHAR(64) UNIQUE NOT NULL,
            validation_hash VARCHAR(256) NOT NULL,
            issued_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            download_count INTEGER NOT NULL DEFAULT 0,
            CONSTRAINT certificates_user_id_course_id_key UNIQUE (user_id, course_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_certificates_course_id ON certificates(course_id)")

    # --- Points ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_points (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            total_points INTEGER NOT NULL DEFAULT 0,
            lesson_points INTEGER NOT NULL DEFAULT 0,
            course_points INTEGER NOT NULL DEFAULT 0,
            streak_points INTEGER NOT NULL DEFAULT 0,
            badge_points INTEGER NOT NULL DEFAULT 0,
            review_points INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            current_level_points INTEGER NOT NULL DEFAULT 0,
            points_to_next_level INTEGER NOT NULL DEFAULT 100,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS point_transactions (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            points INTEGER NOT NULL,
            type VARCHAR(32) NOT NULL,
            description VARCHAR(512) NOT NULL,
            metadata JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_point_transactions_user_created
        ON point_transactions(user_id, created_at)
    """)

    # --- Badges & streaks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL,
            icon VARCHAR(64) NOT NULL,
            rarity VARCHAR(16) NOT NULL DEFAULT 'COMMON',
            points INTEGER NOT NULL DEFAULT 0,
            condition VARCHAR(32) NOT NULL,
            condition_value INTEGER,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id BIGINT NOT NULL REFERENCES badges(id) ON DELETE CASCADE,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_badges_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_user_badges_badge_id ON user_badges(badge_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS streaks (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_activity_date DATE NOT NULL,
            streak_start_date DATE NOT NULL
        )
    """)

    # --- Notifications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(32) NOT NULL,
            title VARCHAR(256) NOT NULL,
            message TEXT NOT NULL,
            metadata JSONB NOT NULL DEFAULT '{}',
            is_read BOOLEAN NOT NULL DEFAULT false,
            sent_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            read_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_notifications_user_read ON notifications(user_id, is_read)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS notification_preferences (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            email_welcome BOOLEAN NOT NULL DEFAULT true,
            email_course_enrollment BOOLEAN NOT NULL DEFAULT true,
            email_course_completion BOOLEAN NOT NULL DEFAULT true,
            email_new_courses BOOLEAN NOT NULL DEFAULT true,
            email_progress_reminders BOOLEAN NOT NULL DEFAULT true,
            email_certificates BOOLEAN NOT NULL DEFAULT true,
            email_promotions BOOLEAN NOT NULL DEFAULT true,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)


def downgrade() -> None:
    for table in (
        "notification_preferences",
        "notifications",
        "streaks",
        "user_badges",
        "badges",
        "point_transactions",
        "user_points",
        "certificates",
        "reviews",
        "lesson_progress",
        "enrollments",
        "lessons",
        "course_modules",
        "courses",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table}")
