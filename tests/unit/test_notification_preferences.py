"""Per-type email preference gating."""

import pytest

from learnhub.db.enums import NotificationType
from learnhub.db.models import NotificationPreference
from learnhub.notifications.service import DEFAULT_PREFERENCES, EMAIL_PREFERENCE_MAP, should_email


def _prefs(**overrides) -> NotificationPreference:
    return NotificationPreference(user_id=1, **{**DEFAULT_PREFERENCES, **overrides})


class TestShouldEmail:
    def test_no_row_means_send(self):
        for type_ in NotificationType:
            assert should_email(None, type_)

    def test_every_type_has_a_preference(self):
        assert set(EMAIL_PREFERENCE_MAP) == set(NotificationType)

    @pytest.mark.parametrize(
        ("type_", "field"),
        [
            (NotificationType.COURSE_ENROLLMENT, "email_course_enrollment"),
            (NotificationType.COURSE_COMPLETION, "email_course_completion"),
            (NotificationType.CERTIFICATE_ISSUED, "email_certificates"),
            (NotificationType.PROGRESS_REMINDER, "email_progress_reminders"),
            (NotificationType.NEW_COURSE_AVAILABLE, "email_new_courses"),
        ],
    )
    def test_opt_out_per_type(self, type_, field):
        assert should_email(_prefs(), type_)
        assert not should_email(_prefs(**{field: False}), type_)

    def test_system_announcement_follows_promotions(self):
        prefs = _prefs(email_promotions=False)
        assert not should_email(prefs, NotificationType.SYSTEM_ANNOUNCEMENT)
        assert not should_email(prefs, NotificationType.PROMOTION)
        assert should_email(prefs, NotificationType.CERTIFICATE_ISSUED)
