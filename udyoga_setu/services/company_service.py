"""
Company Service - employer company profiles.

Each employer account owns at most one company row (companies.user_id).
"""

import logging
import uuid
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import text

from udyoga_setu.db.postgres import get_db_session, fetch_one
from udyoga_setu.utils.timeutils import now_iso

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "location", "industry", "website", "description")


class CompanyService:

    def get_company(self, company_id: str) -> dict:
        row = fetch_one("SELECT * FROM companies WHERE id = :id", {"id": company_id})
        if not row:
            raise HTTPException(status_code=404, detail="Company not found")
        return row

    def get_for_user(self, user_id: str) -> Optional[dict]:
        return fetch_one("SELECT * FROM companies WHERE user_id = :uid", {"uid": user_id})

    def create_company(self, user_id: str, data: dict) -> dict:
        if self.get_for_user(user_id):
            raise HTTPException(status_code=400, detail="Profile already exists")

        now = now_iso()
        row = {name: data.get(name) for name in PROFILE_FIELDS}
        row.update({"id": str(uuid.uuid4()), "user_id": user_id, "created_at": now, "updated_at": now})
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO companies (id, user_id, name, location, industry, website, description,
                        created_at, updated_at)
                    VALUES (:id, :user_id, :name, :location, :industry, :website, :description,
                        :created_at, :updated_at)
                """),
                row
            )
        logger.info("Company %s created for user %s", row["id"], user_id)
        return self.get_company(row["id"])

    def update_company(self, company_id: str, updates: dict) -> dict:
        cols = {k: v for k, v in updates.items() if k in PROFILE_FIELDS}
        if not cols:
            raise HTTPException(status_code=400, detail="No fields to update")
        cols["updated_at"] = now_iso()
        assignments = ", ".join(f"{k} = :{k}" for k in cols)
        with get_db_session() as db:
            db.execute(text(f"UPDATE companies SET {assignments} WHERE id = :company_id"),
                       {**cols, "company_id": company_id})
        return self.get_company(company_id)


_companies: CompanyService = None


def get_company_service() -> CompanyService:
    global _companies
    if _companies is None:
        _companies = CompanyService()
    return _companies
