"""이메일 발송 유틸리티 — SMTP (aiosmtplib).

SMTP settings come from the SMTP_* variables in config.py. When SMTP is not
configured the message is logged and reported as sent with a ``mock`` id,
so local development and tests never need a mail server.
"""

import logging
import uuid
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


def is_email_configured() -> bool:
    return bool(settings.SMTP_USER and settings.SMTP_PASSWORD and settings.SMTP_FROM_EMAIL)


async def send_email(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
) -> EmailResult:
    """이메일 발송.

    Args:
        to: 수신자 이메일 주소
        subject: 제목
        html: HTML 본문
        text: 플레인텍스트 본문 (선택)

    Returns:
        EmailResult: 발송 결과. SMTP 미설정 시 message_id="mock".
    """
    if not is_email_configured():
        logger.info("SMTP not configured, skipping email to=%s subject=%r", to, subject)
        return EmailResult(success=True, message_id="mock")

    message_id: str = f"<{uuid.uuid4().hex}@{settings.SMTP_FROM_EMAIL.split('@')[-1]}>"
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to
    msg["Message-ID"] = message_id

    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        start_tls=True,
    )
    return EmailResult(success=True, message_id=message_id)
