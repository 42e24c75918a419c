"""이메일 발송 유틸리티 — SMTP (aiosmtplib).

SMTP 설정은 config.py의 SMTP_* 환경 변수로 관리.
SMTP_HOST가 비어 있으면 발송을 생략하고 로그만 남김.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import aiosmtplib

from teamhub.config import settings
from teamhub.utils.i18n import get_translation
from teamhub.utils.logging import get_logger

logger = get_logger(__name__)


async def send_email(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
) -> None:
    """이메일 발송.

    Args:
        to: 수신자 이메일 주소
        subject: 제목
        html: HTML 본문
        text: 플레인텍스트 본문 (선택)
    """
    if not settings.SMTP_HOST:
        logger.info("email_skipped", to=to, subject=subject, reason="smtp_not_configured")
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to

    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER or None,
        password=settings.SMTP_PASSWORD or None,
        start_tls=True,
    )
    logger.info("email_sent", to=to, subject=subject)


async def send_team_invite_email(
    language: str | None,
    from_name: str,
    to: str,
    team_name: str,
    join_link: str,
) -> None:
    """팀 초대 메일 발송.

    Send the team invitation email in the invitee's language.

    Args:
        language: 언어 코드 (Language code, English fallback)
        from_name: 초대한 사람 이름 (Inviter display name)
        to: 수신자 이메일 (Invitee email)
        team_name: 팀 이름 (Team name)
        join_link: 가입/수락 링크 (Signup or settings link)
    """
    t = get_translation(language)
    subject = t["user_invited_you"].format(user=from_name, team=team_name)
    body = t["invite_body"].format(user=from_name, team=team_name)
    html = (
        f"<p>{escape(body)}</p>"
        f'<p><a href="{escape(join_link, quote=True)}">{escape(t["accept_invitation"])}</a></p>'
    )
    text = f"{body}\n\n{join_link}"
    await send_email(to=to, subject=subject, html=html, text=text)
