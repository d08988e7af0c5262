from __future__ import annotations

from datetime import datetime
from typing import Any

from consult_intake.mariadb import connect_mariadb
from consult_intake.models import ConsultationRecord, StoreSettings


class ConsultationStore:
    def __init__(self, settings: StoreSettings) -> None:
        self._settings = settings

    def insert_consultation(self, record: ConsultationRecord) -> list[dict[str, Any]]:
        """Insert one consultation and return the stored row(s).

        The insert is committed only after the row was read back, so a failure
        at any point leaves no record behind.
        """
        conn = connect_mariadb(self._settings, autocommit=False)
        try:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO consultations (name, contact, is_completed, click_source)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (
                        record.name,
                        record.contact,
                        int(record.is_completed),
                        record.click_source,
                    ),
                )
                row_id = cur.lastrowid
                cur.execute(
                    """
                    SELECT id, name, contact, is_completed, click_source, created_at
                    FROM consultations
                    WHERE id=%s
                    """,
                    (row_id,),
                )
                rows = cur.fetchall()
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return [_row_to_dict(row) for row in rows]


def open_consultation_store(settings: StoreSettings | None) -> ConsultationStore | None:
    if settings is None or not settings.host or not settings.password:
        return None
    return ConsultationStore(settings)


def _row_to_dict(row: dict[str, Any]) -> dict[str, Any]:
    created_at = row.get("created_at")
    return {
        "id": row.get("id"),
        "name": row["name"],
        "contact": row["contact"],
        "is_completed": bool(row["is_completed"]),
        "click_source": row.get("click_source"),
        "created_at": created_at.isoformat() if isinstance(created_at, datetime) else created_at,
    }
