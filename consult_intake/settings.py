from __future__ import annotations

import os

from dotenv import load_dotenv

from consult_intake.models import AppSettings, MailSettings, StoreSettings

_TRUE_VALUES = {"1", "true", "yes", "on"}


def load_settings() -> AppSettings:
    load_dotenv()
    return AppSettings(
        store=load_store_settings(),
        mail=load_mail_settings(),
        notify_workers=int(os.getenv("NOTIFY_WORKERS", "2")),
        verbose_diagnostics=os.getenv("VERBOSE_DIAGNOSTICS", "").strip().lower() in _TRUE_VALUES,
        api_host=os.getenv("API_HOST", "127.0.0.1"),
        api_port=int(os.getenv("API_PORT", "8080")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
        log_max_bytes=int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024))),
        log_backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
    )


def load_store_settings() -> StoreSettings | None:
    host = os.getenv("MARIADB_HOST", "")
    password = os.getenv("MARIADB_PASSWORD", "")
    if not host or not password:
        return None
    return StoreSettings(
        host=host,
        password=password,
        port=int(os.getenv("MARIADB_PORT", "3306")),
        database=os.getenv("MARIADB_DATABASE", "consult_intake"),
        user=os.getenv("MARIADB_USER", "consult_intake"),
        connect_timeout_sec=int(os.getenv("MARIADB_CONNECT_TIMEOUT_SEC", "10")),
    )


def load_mail_settings() -> MailSettings | None:
    user = os.getenv("MAIL_USER", "")
    app_password = os.getenv("MAIL_APP_PASSWORD", "")
    if not user or not app_password:
        return None
    return MailSettings(
        user=user,
        app_password=app_password,
        recipient=os.getenv("CONSULTATION_EMAIL") or user,
        smtp_host=os.getenv("SMTP_HOST", "smtp.naver.com"),
        smtp_port=int(os.getenv("SMTP_PORT", "465")),
        timeout_sec=int(os.getenv("SMTP_TIMEOUT_SEC", "15")),
    )
