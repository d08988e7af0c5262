from __future__ import annotations

import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from consult_intake.models import MailSettings


def send_email(settings: MailSettings, *, to_email: str, subject: str, body: str) -> str:
    """Send a plain-text email over SMTP with implicit TLS and return its Message-ID."""
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = formataddr(("상담 신청 알림", settings.user))
    msg["To"] = to_email
    message_id = make_msgid(domain=settings.user.rsplit("@", 1)[-1] or None)
    msg["Message-ID"] = message_id
    msg.set_content(body)

    with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=settings.timeout_sec) as server:
        server.login(settings.user, settings.app_password)
        server.send_message(msg)
    return message_id
