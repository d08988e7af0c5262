from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta, timezone

from consult_intake.email_transport import send_email
from consult_intake.models import MailResult, MailSettings, NotificationAttempt

logger = logging.getLogger(__name__)

KST = timezone(timedelta(hours=9), name="KST")
NO_CLICK_SOURCE_LABEL = "없음"


def send_consultation_email(
    attempt: NotificationAttempt,
    settings: MailSettings,
) -> MailResult:
    ts = (attempt.submitted_at or datetime.now(UTC)).astimezone(KST)
    try:
        message_id = send_email(
            settings,
            to_email=settings.recipient,
            subject=build_subject(attempt),
            body=build_body(attempt, ts),
        )
    except Exception as exc:
        logger.warning("consultation email transport failed recipient=%s error=%s", settings.recipient, exc)
        return MailResult(success=False, error=str(exc))
    return MailResult(success=True, message_id=message_id)


def build_subject(attempt: NotificationAttempt) -> str:
    return f"[상담 신청] {attempt.name}"


def build_body(attempt: NotificationAttempt, submitted_at: datetime) -> str:
    return "\n".join(
        [
            "새로운 상담 신청이 접수되었습니다.",
            "",
            f"이름: {attempt.name}",
            f"연락처: {attempt.contact}",
            f"유입 경로: {attempt.click_source or NO_CLICK_SOURCE_LABEL}",
            f"신청 시각: {submitted_at.strftime('%Y-%m-%d %H:%M:%S')} KST",
        ]
    )
