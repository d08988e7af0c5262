from __future__ import annotations

import logging
from typing import Any

from consult_intake.models import AppSettings

logger = logging.getLogger(__name__)


class SubmissionDiagnostics:
    """Verbose per-request tracing, switched on per deployment.

    Disabled instances log nothing. Secrets are reported only as set/unset.
    """

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled

    def request_received(self, payload: dict[str, Any]) -> None:
        if not self.enabled:
            return
        logger.info(
            "submission received name=%s contact=%s privacyAgreed=%r clickSource=%r",
            _present(payload.get("name")),
            _present(payload.get("contact")),
            payload.get("privacyAgreed"),
            payload.get("clickSource"),
        )

    def configuration(self, settings: AppSettings) -> None:
        if not self.enabled:
            return
        logger.info(
            "store configured=%s mail configured=%s mail sender=%s mail recipient=%s",
            settings.store is not None,
            settings.mail is not None,
            mask_secret(settings.mail.user) if settings.mail else "NOT SET",
            settings.mail.recipient if settings.mail else "NOT SET",
        )

    def stage(self, name: str, **fields: Any) -> None:
        if not self.enabled:
            return
        extra = " ".join(f"{key}={value}" for key, value in fields.items())
        logger.info("submission stage=%s %s", name, extra)


def mask_secret(value: str, visible: int = 3) -> str:
    if not value:
        return "NOT SET"
    return f"{value[:visible]}..."


def _present(value: Any) -> str:
    return "SET" if value else "EMPTY"
