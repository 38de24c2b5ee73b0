from __future__ import annotations

import html
import logging
import uuid
from typing import Any, Dict, Optional

import httpx
from sqlalchemy.orm import Session

from ..core.celery_app import celery_app
from ..core.config import Settings, get_settings
from ..core.db import SessionLocal
from ..models.company import Company
from ..models.partnership_inquiry import PartnershipInquiry

logger = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"
TASK_NAME = "company_discovery.services.notifications.send_partnership_inquiry_email"


def build_inquiry_email(company: Company, inquiry: PartnershipInquiry, from_email: str) -> Dict[str, Any]:
    """Resend payload for one inquiry. User-supplied text is HTML-escaped."""
    name = html.escape(company.name or "")
    description = html.escape(company.description or "")
    message = html.escape(inquiry.message or "").replace("\n", "<br>")
    requester = html.escape(inquiry.requester_email or "Not provided")

    body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333; border-bottom: 2px solid #007bff; padding-bottom: 10px;">New Partnership Inquiry</h2>
  <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h3 style="margin-top: 0;">Company: {name}</h3>
    <p style="margin-bottom: 0;">{description}</p>
  </div>
  <h3>Inquiry Details:</h3>
  <p style="padding: 15px; border-left: 4px solid #007bff;">{message}</p>
  <p><strong>Email:</strong> {requester}</p>
  <p>Please reply directly to this email to get in touch regarding this partnership inquiry.</p>
</div>
"""
    payload: Dict[str, Any] = {
        "from": from_email,
        "to": [company.contact_email],
        "subject": f"Partnership Inquiry for {company.name}",
        "html": body,
    }
    if inquiry.requester_email:
        payload["reply_to"] = inquiry.requester_email
    return payload


def deliver_inquiry_email(
    db: Session,
    inquiry_id: str,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> bool:
    """
    Send the notification for one inquiry. Returns True when Resend accepted
    it; False when skipped (no API key, no company e-mail) or rejected.
    """
    settings = settings or get_settings()
    inquiry = db.query(PartnershipInquiry).filter(PartnershipInquiry.id == uuid.UUID(str(inquiry_id))).first()
    if not inquiry:
        logger.warning("Inquiry not found", extra={"step": "inquiry_email"})
        return False
    company = db.query(Company).filter(Company.id == inquiry.company_id).first()
    if not company or not company.contact_email:
        logger.info(
            "Company has no contact e-mail; inquiry recorded only",
            extra={"company_id": str(inquiry.company_id), "step": "inquiry_email"},
        )
        return False
    if not settings.RESEND_API_KEY:
        logger.info("RESEND_API_KEY not set; skipping inquiry e-mail", extra={"step": "inquiry_email"})
        return False

    payload = build_inquiry_email(company, inquiry, settings.INQUIRY_FROM_EMAIL)
    with httpx.Client(timeout=20.0, transport=transport) as client:
        resp = client.post(
            RESEND_EMAILS_URL,
            headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
            json=payload,
        )
    if not resp.is_success:
        logger.warning(
            "Resend rejected inquiry e-mail (%s): %s",
            resp.status_code,
            resp.text[:200],
            extra={"company_id": str(company.id), "step": "inquiry_email"},
        )
        return False

    logger.info(
        "Partnership inquiry e-mail sent",
        extra={"company_id": str(company.id), "user_id": inquiry.user_id, "step": "inquiry_email"},
    )
    return True


@celery_app.task(name=TASK_NAME)
def send_partnership_inquiry_email(inquiry_id: str) -> bool:
    db: Session = SessionLocal()
    try:
        return deliver_inquiry_email(db, inquiry_id)
    finally:
        db.close()


def queue_inquiry_notification(inquiry_id: str, settings: Optional[Settings] = None) -> None:
    """Default notifier: hand the e-mail to the notifications worker."""
    settings = settings or get_settings()
    if not settings.REDIS_URL:
        logger.info("REDIS_URL not set; inquiry e-mail not queued", extra={"step": "inquiry_email"})
        return
    celery_app.send_task(TASK_NAME, args=[str(inquiry_id)], queue="notifications")
