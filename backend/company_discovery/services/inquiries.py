from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ..models.company import Company
from ..models.partnership_inquiry import PartnershipInquiry
from .identity import CurrentUser

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


def _parse_company_id(company_id: Any) -> uuid.UUID:
    try:
        return company_id if isinstance(company_id, uuid.UUID) else uuid.UUID(str(company_id))
    except ValueError:
        raise LookupError("Company not found")


def create_partnership_inquiry(
    db: Session,
    user: Optional[CurrentUser],
    company_id: Any,
    message: str,
    notify: Optional[Notifier] = None,
) -> PartnershipInquiry:
    """
    Record an inquiry, then best-effort notify the company.

    The row is committed before `notify` runs; a notifier failure is logged
    and never undoes or fails the inquiry.
    """
    if user is None:
        raise PermissionError("User must be logged in to create partnership inquiry")
    message = (message or "").strip()
    if not message:
        raise ValueError("Message must not be empty")

    cid = _parse_company_id(company_id)
    if db.query(Company.id).filter(Company.id == cid).first() is None:
        raise LookupError("Company not found")

    inquiry = PartnershipInquiry(
        user_id=user.id,
        requester_email=user.email,
        company_id=cid,
        message=message,
        status="pending",
    )
    db.add(inquiry)
    db.commit()
    db.refresh(inquiry)

    logger.info(
        "Partnership inquiry created",
        extra={"user_id": user.id, "company_id": str(cid), "step": "inquiry_created"},
    )

    if notify is not None:
        try:
            notify(str(inquiry.id))
        except Exception as e:
            logger.warning(
                "Failed to queue inquiry notification: %s",
                e,
                extra={"user_id": user.id, "company_id": str(cid), "step": "inquiry_email"},
            )
    return inquiry


def list_user_inquiries(db: Session, user_id: str) -> List[Dict[str, Any]]:
    """The caller's inquiries, newest first, each with a short company summary."""
    rows = (
        db.query(PartnershipInquiry, Company)
        .outerjoin(Company, Company.id == PartnershipInquiry.company_id)
        .filter(PartnershipInquiry.user_id == user_id)
        .order_by(PartnershipInquiry.created_at.desc())
        .all()
    )
    out: List[Dict[str, Any]] = []
    for inquiry, company in rows:
        out.append(
            {
                "id": str(inquiry.id),
                "company_id": str(inquiry.company_id),
                "message": inquiry.message,
                "status": inquiry.status,
                "created_at": inquiry.created_at,
                "company": (
                    {
                        "id": str(company.id),
                        "name": company.name,
                        "description": company.description,
                        "website_url": company.website_url,
                    }
                    if company
                    else None
                ),
            }
        )
    return out
