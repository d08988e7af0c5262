from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable

from consult_intake.models import MailResult, NotificationAttempt

logger = logging.getLogger(__name__)

SendFn = Callable[[NotificationAttempt], MailResult]
FailureHook = Callable[[NotificationAttempt, "NotificationError"], None]


class NotificationError(RuntimeError):
    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NotificationDispatcher:
    """Runs notification sends on a background executor without waiting for them.

    Outcomes are only logged (and passed to ``on_failure`` when set); nothing
    raised by a send ever reaches the caller of :meth:`dispatch`.
    """

    def __init__(
        self,
        send: SendFn,
        *,
        executor: Executor | None = None,
        max_workers: int = 2,
        on_failure: FailureHook | None = None,
    ) -> None:
        self._send = send
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="consult-notify",
        )
        self._on_failure = on_failure

    def dispatch(self, attempt: NotificationAttempt) -> Future[MailResult] | None:
        try:
            future = self._executor.submit(self._send, attempt)
        except Exception as exc:
            self._record_failure(attempt, NotificationError(f"dispatch rejected: {exc}", cause=exc))
            return None
        future.add_done_callback(lambda f: self._observe(attempt, f))
        return future

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _observe(self, attempt: NotificationAttempt, future: Future[MailResult]) -> None:
        exc = future.exception()
        if exc is not None:
            self._record_failure(attempt, NotificationError(f"send raised: {exc}", cause=exc))
            return
        result = future.result()
        if not result.success:
            self._record_failure(attempt, NotificationError(f"send failed: {result.error}"))
            return
        logger.info("consultation email sent message_id=%s", result.message_id)

    def _record_failure(self, attempt: NotificationAttempt, error: NotificationError) -> None:
        logger.error(
            "consultation email not delivered name=%s click_source=%s error=%s",
            attempt.name,
            attempt.click_source,
            error,
            exc_info=error.cause,
        )
        if self._on_failure is None:
            return
        try:
            self._on_failure(attempt, error)
        except Exception:
            logger.exception("notification failure hook raised")
