from __future__ import annotations

import unittest
from datetime import UTC, datetime
from unittest.mock import patch

from consult_intake.consultation_email_service import build_body, send_consultation_email
from consult_intake.models import MailSettings, NotificationAttempt

_SETTINGS = MailSettings(user="sender@naver.com", app_password="app-pw", recipient="owner@example.com")


class ConsultationEmailServiceTests(unittest.TestCase):
    def test_send_returns_message_id(self) -> None:
        attempt = NotificationAttempt(
            name="Kim",
            contact="010-1234-5678",
            click_source="naver_ad",
            submitted_at=datetime(2026, 10, 18, 0, 0, tzinfo=UTC),
        )
        with patch(
            "consult_intake.consultation_email_service.send_email",
            return_value="<abc@naver.com>",
        ) as mocked_send:
            result = send_consultation_email(attempt, _SETTINGS)
        self.assertTrue(result.success)
        self.assertEqual(result.message_id, "<abc@naver.com>")
        kwargs = mocked_send.call_args.kwargs
        self.assertEqual(kwargs["to_email"], "owner@example.com")
        self.assertIn("Kim", kwargs["subject"])
        self.assertIn("naver_ad", kwargs["body"])
        self.assertIn("2026-10-18 09:00:00 KST", kwargs["body"])

    def test_transport_failure_becomes_unsuccessful_result(self) -> None:
        attempt = NotificationAttempt(name="Kim", contact="010")
        with patch(
            "consult_intake.consultation_email_service.send_email",
            side_effect=OSError("connection refused"),
        ):
            result = send_consultation_email(attempt, _SETTINGS)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "connection refused")
        self.assertIsNone(result.message_id)

    def test_body_marks_missing_click_source(self) -> None:
        body = build_body(NotificationAttempt(name="Kim", contact="010"), datetime(2026, 1, 1))
        self.assertIn("유입 경로: 없음", body)


if __name__ == "__main__":
    unittest.main()
