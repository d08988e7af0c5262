from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

DEFAULT_CLICK_SOURCE = "unknown"


class FailureKind(str, Enum):
    VALIDATION = "VALIDATION"
    CONFIGURATION = "CONFIGURATION"
    PERSISTENCE = "PERSISTENCE"


@dataclass(frozen=True)
class SubmissionRequest:
    name: str | None
    contact: str | None
    privacy_agreed: bool
    click_source: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> SubmissionRequest:
        return cls(
            name=_optional_str(data, "name"),
            contact=_optional_str(data, "contact"),
            privacy_agreed=data.get("privacyAgreed") is True,
            click_source=_optional_str(data, "clickSource"),
        )


@dataclass(frozen=True)
class ConsultationRecord:
    name: str
    contact: str
    click_source: str = DEFAULT_CLICK_SOURCE
    is_completed: bool = False

    @classmethod
    def from_request(cls, request: SubmissionRequest) -> ConsultationRecord:
        return cls(
            name=request.name or "",
            contact=request.contact or "",
            click_source=request.click_source or DEFAULT_CLICK_SOURCE,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "contact": self.contact,
            "is_completed": self.is_completed,
            "click_source": self.click_source,
        }


@dataclass(frozen=True)
class NotificationAttempt:
    """Projection of a freshly written consultation handed to the mailer.

    ``click_source`` stays ``None`` when the submission carried no tag; the
    persisted record uses ``"unknown"`` for the same case.
    """

    name: str
    contact: str
    click_source: str | None = None
    submitted_at: datetime | None = None

    @classmethod
    def from_request(cls, request: SubmissionRequest, *, submitted_at: datetime) -> NotificationAttempt:
        return cls(
            name=request.name or "",
            contact=request.contact or "",
            click_source=request.click_source or None,
            submitted_at=submitted_at,
        )


@dataclass(frozen=True)
class MailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    records: list[dict[str, Any]] = field(default_factory=list)
    kind: FailureKind | None = None
    message: str | None = None
    details: str | None = None

    @classmethod
    def ok(cls, records: list[dict[str, Any]]) -> SubmissionResult:
        return cls(success=True, records=records)

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        message: str,
        *,
        details: str | None = None,
    ) -> SubmissionResult:
        return cls(success=False, kind=kind, message=message, details=details)


@dataclass(frozen=True)
class StoreSettings:
    host: str
    password: str
    port: int = 3306
    database: str = "consult_intake"
    user: str = "consult_intake"
    connect_timeout_sec: int = 10


@dataclass(frozen=True)
class MailSettings:
    user: str
    app_password: str
    recipient: str
    smtp_host: str = "smtp.naver.com"
    smtp_port: int = 465
    timeout_sec: int = 15


@dataclass(frozen=True)
class AppSettings:
    store: StoreSettings | None
    mail: MailSettings | None
    notify_workers: int
    verbose_diagnostics: bool
    api_host: str
    api_port: int
    log_level: str
    log_dir: str
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        return None
    return value
