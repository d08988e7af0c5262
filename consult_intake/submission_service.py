from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import partial
from typing import Any, Callable

from consult_intake.consultation_email_service import send_consultation_email
from consult_intake.consultation_store import ConsultationStore, open_consultation_store
from consult_intake.diagnostics import SubmissionDiagnostics
from consult_intake.models import (
    AppSettings,
    ConsultationRecord,
    FailureKind,
    NotificationAttempt,
    SubmissionRequest,
    SubmissionResult,
)
from consult_intake.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "이름과 연락처를 입력해주세요."
CONSENT_REQUIRED_MESSAGE = "개인정보 처리방침에 동의해주세요."
STORE_UNCONFIGURED_MESSAGE = "데이터베이스 연결 설정이 필요합니다."
PERSISTENCE_FAILED_MESSAGE = "데이터 저장 중 오류가 발생했습니다."

StoreFactory = Callable[[], ConsultationStore | None]


class SubmissionError(ValueError):
    kind: FailureKind

    def __init__(self, code: str, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class ValidationError(SubmissionError):
    kind = FailureKind.VALIDATION


class ConfigurationError(SubmissionError):
    kind = FailureKind.CONFIGURATION


class PersistenceError(SubmissionError):
    kind = FailureKind.PERSISTENCE


class SubmissionPipeline:
    def __init__(
        self,
        store_factory: StoreFactory,
        *,
        dispatcher: NotificationDispatcher | None = None,
        diagnostics: SubmissionDiagnostics | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store_factory = store_factory
        self._dispatcher = dispatcher
        self._diagnostics = diagnostics or SubmissionDiagnostics()
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def dispatcher(self) -> NotificationDispatcher | None:
        return self._dispatcher

    def submit(self, payload: dict[str, Any]) -> SubmissionResult:
        """Validate, persist and (without waiting) notify one consultation request.

        Only the durable write decides success. Errors before or during the
        write short-circuit into a failed result; anything unexpected
        propagates to the caller.
        """
        received_at = self._clock()
        self._diagnostics.request_received(payload)
        request = SubmissionRequest.from_payload(payload)
        try:
            records = self._validate_and_persist(request)
        except SubmissionError as exc:
            return SubmissionResult.failed(exc.kind, exc.message, details=exc.details)

        self._notify(request, received_at)
        self._diagnostics.stage("done", records=len(records))
        return SubmissionResult.ok(records)

    def _validate_and_persist(self, request: SubmissionRequest) -> list[dict[str, Any]]:
        validate_submission(request)
        self._diagnostics.stage("validated")

        store = self._store_factory()
        if store is None:
            logger.error("consultation store is not configured; submission rejected")
            raise ConfigurationError("STORE_NOT_CONFIGURED", STORE_UNCONFIGURED_MESSAGE)

        record = ConsultationRecord.from_request(request)
        try:
            rows = store.insert_consultation(record)
        except Exception as exc:
            logger.error("consultation insert failed: %s", exc)
            raise PersistenceError(
                "PERSISTENCE_FAILED",
                PERSISTENCE_FAILED_MESSAGE,
                details=str(exc),
            ) from exc
        self._diagnostics.stage("persisted", click_source=record.click_source)
        return rows

    def _notify(self, request: SubmissionRequest, received_at: datetime) -> None:
        if self._dispatcher is None:
            self._diagnostics.stage("notify-skipped", reason="mail not configured")
            return
        self._dispatcher.dispatch(NotificationAttempt.from_request(request, submitted_at=received_at))
        self._diagnostics.stage("notify-dispatched")


def validate_submission(request: SubmissionRequest) -> None:
    if not request.name or not request.contact:
        logger.info("submission rejected: missing name/contact")
        raise ValidationError("MISSING_FIELDS", MISSING_FIELDS_MESSAGE)
    if not request.privacy_agreed:
        logger.info("submission rejected: privacy consent not given")
        raise ValidationError("CONSENT_REQUIRED", CONSENT_REQUIRED_MESSAGE)


def build_pipeline(settings: AppSettings) -> SubmissionPipeline:
    diagnostics = SubmissionDiagnostics(enabled=settings.verbose_diagnostics)
    diagnostics.configuration(settings)

    dispatcher = None
    if settings.mail is not None:
        dispatcher = NotificationDispatcher(
            partial(send_consultation_email, settings=settings.mail),
            max_workers=settings.notify_workers,
        )
    else:
        logger.warning("mail credentials missing; consultation emails are disabled")

    return SubmissionPipeline(
        partial(open_consultation_store, settings.store),
        dispatcher=dispatcher,
        diagnostics=diagnostics,
    )
