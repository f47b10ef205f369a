"""이메일 알림 서비스 — 수신 설정 확인 후 템플릿 메일 발송.

Email notification service. Checks the recipient's preferences, renders a
small HTML template and hands it to the SMTP sender. Email is best effort:
SMTP failures are logged and never propagate to the request that caused
them.

Preference rules:
    - email_frequency "off": 아무것도 보내지 않음 (Nothing is sent)
    - email_frequency "daily": 즉시 발송하지 않음 (Digest only, nothing sent now)
    - per-type flags: likes/reblogs 기본 off, comments/follows/mentions 기본 on
"""

import html
import logging

import aiosmtplib

from app.config import settings
from app.models.profile import Profile
from app.utils.email import EmailResult, send_email

logger = logging.getLogger(__name__)

# 알림 유형별 프로필 설정 컬럼 — Preference column per notification type
_PREFERENCE_FIELDS: dict[str, str] = {
    "like": "email_likes",
    "comment": "email_comments",
    "reblog": "email_reblogs",
    "follow": "email_follows",
    "mention": "email_mentions",
}


def should_send_email(recipient: Profile, notification_type: str) -> bool:
    """수신자 설정상 즉시 발송 대상인지 판정합니다.

    Whether ``recipient`` wants an immediate email for this notification type.
    """
    if recipient.email_frequency in ("off", "daily"):
        return False
    field: str | None = _PREFERENCE_FIELDS.get(notification_type)
    if field is None:
        return False
    return bool(getattr(recipient, field))


def _layout(heading: str, body_html: str, cta_url: str, cta_label: str) -> str:
    return (
        "<div style=\"font-family:sans-serif;max-width:560px;margin:0 auto\">"
        f"<h2>{heading}</h2>"
        f"{body_html}"
        f"<p><a href=\"{cta_url}\" style=\"color:#6366f1\">{cta_label}</a></p>"
        "<hr><p style=\"font-size:12px;color:#888\">"
        f"You can change email preferences in <a href=\"{settings.APP_URL}/settings/notifications\">settings</a>."
        "</p></div>"
    )


class EmailService:
    """이메일 알림 서비스."""

    async def _deliver(self, to: str, subject: str, body: str, text: str) -> EmailResult:
        try:
            return await send_email(to, subject, body, text)
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to=%s subject=%r: %s", to, subject, exc)
            return EmailResult(success=False, error="Failed to send email")

    async def send_welcome(self, recipient: Profile) -> EmailResult:
        username: str = html.escape(recipient.username)
        body: str = _layout(
            f"Welcome, @{username}!",
            "<p>Your be.vocl account is ready. Follow a few people and start posting.</p>",
            f"{settings.APP_URL}/feed",
            "Open your feed",
        )
        return await self._deliver(
            recipient.email,
            f"Welcome to be.vocl, @{recipient.username}!",
            body,
            f"Welcome to be.vocl, @{recipient.username}! {settings.APP_URL}/feed",
        )

    async def send_follow(self, recipient: Profile, follower: Profile) -> EmailResult | None:
        if not should_send_email(recipient, "follow"):
            return None
        name: str = html.escape(follower.username)
        profile_url: str = f"{settings.APP_URL}/profile/{follower.username}"
        body: str = _layout(
            f"@{name} started following you",
            "<p>Check out their profile and follow back.</p>",
            profile_url,
            "View profile",
        )
        return await self._deliver(
            recipient.email, f"@{follower.username} started following you", body, profile_url
        )

    async def send_like(
        self,
        recipient: Profile,
        liker: Profile,
        post_id: str,
        post_preview: str,
        total_likes: int,
    ) -> EmailResult | None:
        if not should_send_email(recipient, "like"):
            return None
        subject: str = (
            f"@{liker.username} and others liked your post"
            if total_likes > 1
            else f"@{liker.username} liked your post"
        )
        post_url: str = f"{settings.APP_URL}/post/{post_id}"
        body: str = _layout(
            html.escape(subject),
            f"<blockquote>{html.escape(post_preview)}</blockquote>",
            post_url,
            "View post",
        )
        return await self._deliver(recipient.email, subject, body, post_url)

    async def send_comment(
        self,
        recipient: Profile,
        commenter: Profile,
        post_id: str,
        comment_text: str,
        post_preview: str,
    ) -> EmailResult | None:
        if not should_send_email(recipient, "comment"):
            return None
        subject: str = f"@{commenter.username} commented on your post"
        post_url: str = f"{settings.APP_URL}/post/{post_id}"
        body: str = _layout(
            html.escape(subject),
            f"<p>{html.escape(comment_text)}</p><blockquote>{html.escape(post_preview)}</blockquote>",
            post_url,
            "Reply",
        )
        return await self._deliver(recipient.email, subject, body, post_url)

    async def send_reblog(
        self,
        recipient: Profile,
        reblogger: Profile,
        reblog_post_id: str,
        post_preview: str,
        reblog_comment: str | None = None,
    ) -> EmailResult | None:
        if not should_send_email(recipient, "reblog"):
            return None
        subject: str = f"@{reblogger.username} reblogged your post"
        post_url: str = f"{settings.APP_URL}/post/{reblog_post_id}"
        comment_html: str = f"<p>{html.escape(reblog_comment)}</p>" if reblog_comment else ""
        body: str = _layout(
            html.escape(subject),
            f"{comment_html}<blockquote>{html.escape(post_preview)}</blockquote>",
            post_url,
            "View reblog",
        )
        return await self._deliver(recipient.email, subject, body, post_url)

    async def send_mention(
        self,
        recipient: Profile,
        mentioner: Profile,
        post_id: str,
        post_preview: str,
    ) -> EmailResult | None:
        if not should_send_email(recipient, "mention"):
            return None
        subject: str = f"@{mentioner.username} mentioned you"
        post_url: str = f"{settings.APP_URL}/post/{post_id}"
        body: str = _layout(
            html.escape(subject),
            f"<blockquote>{html.escape(post_preview)}</blockquote>",
            post_url,
            "View post",
        )
        return await self._deliver(recipient.email, subject, body, post_url)


email_service: EmailService = EmailService()
