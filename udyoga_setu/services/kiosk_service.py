"""
Kiosk Service - registry of walk-up application kiosks.

Kiosks identify themselves by kiosk_code and send periodic heartbeats
(last_ping, software_version).
"""

import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import text

from udyoga_setu.db.postgres import get_db_session, execute_raw_sql, fetch_one
from udyoga_setu.utils.timeutils import now_iso

logger = logging.getLogger(__name__)


def _serialize(row: dict) -> dict:
    kiosk = dict(row)
    kiosk["is_active"] = bool(kiosk["is_active"])
    return kiosk


class KioskService:

    def register_kiosk(self, data: dict) -> dict:
        if fetch_one("SELECT id FROM kiosks WHERE kiosk_code = :code", {"code": data["kiosk_code"]}):
            raise HTTPException(status_code=409, detail="Kiosk code already registered")

        now = now_iso()
        row = {
            "id": str(uuid.uuid4()),
            "kiosk_code": data["kiosk_code"],
            "location_name": data["location_name"],
            "address": data.get("address"),
            "city": data.get("city"),
            "country": data.get("country"),
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO kiosks (id, kiosk_code, location_name, address, city, country,
                        is_active, created_at, updated_at)
                    VALUES (:id, :kiosk_code, :location_name, :address, :city, :country,
                        :is_active, :created_at, :updated_at)
                """),
                row
            )
        logger.info("Kiosk %s registered at %s", row["kiosk_code"], row["location_name"])
        return self.get_by_code(row["kiosk_code"])

    def list_kiosks(self, active_only: bool = False) -> List[dict]:
        sql = "SELECT * FROM kiosks"
        params = {}
        if active_only:
            sql += " WHERE is_active = :active"
            params["active"] = True
        rows = execute_raw_sql(sql + " ORDER BY kiosk_code", params)
        return [_serialize(r) for r in rows]

    def get_by_code(self, kiosk_code: str) -> dict:
        row = fetch_one("SELECT * FROM kiosks WHERE kiosk_code = :code", {"code": kiosk_code})
        if not row:
            raise HTTPException(status_code=404, detail="Kiosk not found")
        return _serialize(row)

    def ping(self, kiosk_code: str, software_version: Optional[str] = None) -> dict:
        """Heartbeat. Deactivated kiosks are refused."""
        kiosk = self.get_by_code(kiosk_code)
        if not kiosk["is_active"]:
            raise HTTPException(status_code=403, detail="Kiosk is deactivated")
        now = now_iso()
        with get_db_session() as db:
            db.execute(
                text("""
                    UPDATE kiosks
                    SET last_ping = :now, updated_at = :now,
                        software_version = COALESCE(:version, software_version)
                    WHERE kiosk_code = :code
                """),
                {"now": now, "version": software_version, "code": kiosk_code}
            )
        return self.get_by_code(kiosk_code)

    def deactivate(self, kiosk_code: str) -> dict:
        self.get_by_code(kiosk_code)
        with get_db_session() as db:
            db.execute(
                text("UPDATE kiosks SET is_active = :active, updated_at = :now WHERE kiosk_code = :code"),
                {"active": False, "now": now_iso(), "code": kiosk_code}
            )
        logger.info("Kiosk %s deactivated", kiosk_code)
        return self.get_by_code(kiosk_code)


_kiosks: KioskService = None


def get_kiosk_service() -> KioskService:
    global _kiosks
    if _kiosks is None:
        _kiosks = KioskService()
    return _kiosks
