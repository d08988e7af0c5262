from __future__ import annotations

from pathlib import Path
from typing import Any

from consult_intake.models import StoreSettings

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def connect_mariadb(settings: StoreSettings, *, autocommit: bool = True) -> Any:
    try:
        import pymysql
        from pymysql.cursors import DictCursor
    except ImportError as exc:
        raise RuntimeError(
            "pymysql is required for MariaDB storage. Install dependency: pymysql>=1.1"
        ) from exc

    return pymysql.connect(
        host=settings.host,
        port=settings.port,
        user=settings.user,
        password=settings.password,
        database=settings.database,
        autocommit=autocommit,
        charset="utf8mb4",
        connect_timeout=settings.connect_timeout_sec,
        cursorclass=DictCursor,
    )


def ping_mariadb(settings: StoreSettings) -> None:
    conn = connect_mariadb(settings)
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1 AS ok")
    finally:
        conn.close()


def apply_mariadb_migrations(settings: StoreSettings, migration_dir: Path = MIGRATIONS_DIR) -> int:
    paths = sorted(migration_dir.glob("*.sql"))
    if not paths:
        raise FileNotFoundError(f"No migration files found in {migration_dir}")

    conn = connect_mariadb(settings)
    applied = 0
    try:
        with conn.cursor() as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version VARCHAR(128) NOT NULL PRIMARY KEY,
                    applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            for path in paths:
                version = path.name
                cur.execute(
                    "SELECT version FROM schema_migrations WHERE version=%s",
                    (version,),
                )
                if cur.fetchone():
                    continue

                sql = path.read_text(encoding="utf-8")
                for statement in [s.strip() for s in sql.split(";") if s.strip()]:
                    cur.execute(statement)
                cur.execute(
                    "INSERT INTO schema_migrations (version) VALUES (%s)",
                    (version,),
                )
                applied += 1
    finally:
        conn.close()
    return applied
