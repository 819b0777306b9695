"""
Notification records for applicants.

Rows are written with status 'pending' when an application reaches a decision
status. Nothing here sends SMS or WhatsApp messages; an external worker may
pick the rows up later.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import text

from udyoga_setu.db.postgres import get_db_session, execute_raw_sql
from udyoga_setu.services.realtime import get_change_feed
from udyoga_setu.utils.timeutils import now_iso

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATES = {
    "approved": "Hello {name}, your application for {job} has been approved. The employer will contact you soon.",
    "hired": "Congratulations {name}! You have been selected for {job}.",
    "rejected": "Hello {name}, thank you for applying for {job}. The employer has decided not to move forward.",
    "interview_scheduled": "Hello {name}, an interview for {job} has been scheduled on {when}.",
}


class NotificationService:

    def record(self, application_id: str, recipient_phone: str, notification_type: str,
               message: str, company_id: Optional[str] = None, provider: str = "sms") -> dict:
        """Insert a pending notification row and announce it on the change feed."""
        row = {
            "id": str(uuid.uuid4()),
            "application_id": application_id,
            "recipient_phone": recipient_phone,
            "notification_type": notification_type,
            "message": message,
            "status": "pending",
            "provider": provider,
            "created_at": now_iso(),
        }
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO notifications (id, application_id, recipient_phone, notification_type,
                        message, status, provider, created_at)
                    VALUES (:id, :application_id, :recipient_phone, :notification_type,
                        :message, :status, :provider, :created_at)
                """),
                row
            )
        logger.info("Recorded %s notification for application %s", notification_type, application_id)
        get_change_feed().publish("notifications", "INSERT", new=row, company_id=company_id)
        return row

    def record_for_status(self, application: dict, status: str, company_id: Optional[str] = None,
                          when: str = None) -> Optional[dict]:
        """Record the templated message for a decision status, if there is one."""
        template = MESSAGE_TEMPLATES.get(status)
        if not template or not application.get("applicant_phone"):
            return None
        message = template.format(
            name=application.get("applicant_name") or "Applicant",
            job=application.get("job_title") or "the job",
            when=when or "",
        )
        return self.record(
            application_id=application["id"],
            recipient_phone=application["applicant_phone"],
            notification_type=status,
            message=message,
            company_id=company_id,
        )

    def list_for_application(self, application_id: str) -> List[dict]:
        return execute_raw_sql(
            "SELECT * FROM notifications WHERE application_id = :id ORDER BY created_at",
            {"id": application_id}
        )


_notifications: NotificationService = None


def get_notification_service() -> NotificationService:
    global _notifications
    if _notifications is None:
        _notifications = NotificationService()
    return _notifications
