from __future__ import annotations

import threading
import unittest

from consult_intake.models import MailResult, NotificationAttempt
from consult_intake.notification_dispatcher import NotificationDispatcher, NotificationError

_ATTEMPT = NotificationAttempt(name="Kim", contact="010-1234-5678")


class NotificationDispatcherTests(unittest.TestCase):
    def test_dispatch_does_not_wait_for_send(self) -> None:
        release = threading.Event()
        finished = threading.Event()

        def _slow_send(attempt: NotificationAttempt) -> MailResult:
            release.wait(timeout=5)
            finished.set()
            return MailResult(success=True, message_id="<id>")

        dispatcher = NotificationDispatcher(_slow_send, max_workers=1)
        try:
            future = dispatcher.dispatch(_ATTEMPT)
            self.assertIsNotNone(future)
            self.assertFalse(finished.is_set())
            release.set()
            assert future is not None
            self.assertTrue(future.result(timeout=5).success)
        finally:
            release.set()
            dispatcher.shutdown(wait=True)

    def test_raising_send_is_recorded_not_propagated(self) -> None:
        failures: list[NotificationError] = []

        def _raising_send(attempt: NotificationAttempt) -> MailResult:
            raise RuntimeError("smtp auth rejected")

        dispatcher = NotificationDispatcher(
            _raising_send,
            max_workers=1,
            on_failure=lambda attempt, error: failures.append(error),
        )
        with self.assertLogs("consult_intake.notification_dispatcher", level="ERROR"):
            dispatcher.dispatch(_ATTEMPT)
            dispatcher.shutdown(wait=True)
        self.assertEqual(len(failures), 1)
        self.assertIsInstance(failures[0].cause, RuntimeError)

    def test_unsuccessful_result_is_recorded(self) -> None:
        failures: list[NotificationError] = []
        dispatcher = NotificationDispatcher(
            lambda attempt: MailResult(success=False, error="mailbox full"),
            max_workers=1,
            on_failure=lambda attempt, error: failures.append(error),
        )
        with self.assertLogs("consult_intake.notification_dispatcher", level="ERROR"):
            dispatcher.dispatch(_ATTEMPT)
            dispatcher.shutdown(wait=True)
        self.assertEqual(len(failures), 1)
        self.assertIn("mailbox full", str(failures[0]))

    def test_dispatch_after_shutdown_returns_none(self) -> None:
        dispatcher = NotificationDispatcher(lambda attempt: MailResult(success=True), max_workers=1)
        dispatcher.shutdown(wait=True)
        with self.assertLogs("consult_intake.notification_dispatcher", level="ERROR"):
            self.assertIsNone(dispatcher.dispatch(_ATTEMPT))

    def test_failing_hook_is_contained(self) -> None:
        def _hook(attempt: NotificationAttempt, error: NotificationError) -> None:
            raise ValueError("hook broke")

        dispatcher = NotificationDispatcher(
            lambda attempt: MailResult(success=False, error="x"),
            max_workers=1,
            on_failure=_hook,
        )
        with self.assertLogs("consult_intake.notification_dispatcher", level="ERROR") as logs:
            dispatcher.dispatch(_ATTEMPT)
            dispatcher.shutdown(wait=True)
        self.assertTrue(any("hook raised" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
