"""
Email templates for LearnHub.

All templates use inline CSS for email client compatibility. Dynamic text is
HTML-escaped before it is placed in the markup.

Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

from html import escape

# Color constants
BG_PAGE = "#F4F6FB"
BG_CARD = "#FFFFFF"
ACCENT = "#2563EB"
TEXT_PRIMARY = "#111827"
TEXT_SECONDARY = "#4B5563"
BORDER = "#E5E7EB"


def _base_layout(content: str, app_name: str = "LearnHub") -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{app_name}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_PAGE}; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: {BG_PAGE};">
        <tr>
            <td align="center" style="padding: 40px 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%;">
                    <tr>
                        <td align="center" style="padding-bottom: 24px;">
                            <span style="font-size: 22px; font-weight: 700; color: {ACCENT};">{app_name}</span>
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: {BG_CARD}; border: 1px solid {BORDER}; border-radius: 12px; padding: 36px 32px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 24px;">
                            <p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
                                You received this email because of your {app_name} account.<br>
                                Manage which emails you get in your notification preferences.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    """Render a CTA button."""
    return f"""\
<table role="presentation" cellspacing="0" cellpadding="0" border="0" style="margin: 28px auto;">
    <tr>
        <td align="center" style="background-color: {ACCENT}; border-radius: 8px;">
            <a href="{escape(url)}" target="_blank" style="display: inline-block; padding: 14px 32px; color: #FFFFFF; font-size: 16px; font-weight: 600; text-decoration: none; border-radius: 8px;">
                {escape(label)}
            </a>
        </td>
    </tr>
</table>"""


def notification_email(
    display_name: str | None,
    title: str,
    message: str,
    action_url: str | None = None,
    action_label: str = "Open LearnHub",
) -> tuple[str, str, str]:
    """
    Mirror of an in-app notification.

    Returns:
        (subject, html_body, text_body)
    """
    name = escape(display_name or "there")
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 22px; font-weight: 700; margin: 0 0 16px 0;">{escape(title)}</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 8px 0;">Hi {name},</p>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 16px 0;">{escape(message)}</p>
{_button(action_url, action_label) if action_url else ""}"""
    text_body = f"Hi {display_name or 'there'},\n\n{message}\n\n"
    if action_url:
        text_body += f"{action_label}: {action_url}\n\n"
    text_body += "-- The LearnHub Team"
    return title, _base_layout(content), text_body


def certificate_email(
    display_name: str | None,
    course_title: str,
    certificate_number: str,
    verify_url: str,
) -> tuple[str, str, str]:
    """
    Certificate issued email.

    Returns:
        (subject, html_body, text_body)
    """
    subject = f"Your certificate for {course_title} is ready"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 22px; font-weight: 700; margin: 0 0 16px 0;">Congratulations!</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 8px 0;">Hi {escape(display_name or "there")},</p>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 16px 0;">
    Your certificate for <strong style="color: {TEXT_PRIMARY};">{escape(course_title)}</strong> has been issued.
</p>
<p style="color: {TEXT_SECONDARY}; font-size: 14px; margin: 0;">Certificate number: <code>{escape(certificate_number)}</code></p>
{_button(verify_url, "View certificate")}"""
    text_body = (
        f"Hi {display_name or 'there'},\n\n"
        f"Your certificate for {course_title} has been issued.\n"
        f"Certificate number: {certificate_number}\n\n"
        f"Verify it at: {verify_url}\n\n"
        f"-- The LearnHub Team"
    )
    return subject, _base_layout(content), text_body
