import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..schemas.companies import InquiryCreate, InquiryOut
from ..services.identity import CurrentUser
from ..services.inquiries import Notifier, create_partnership_inquiry, list_user_inquiries
from ..services.notifications import queue_inquiry_notification
from .auth import require_user

router = APIRouter(tags=["inquiries"])
logger = logging.getLogger(__name__)


def get_inquiry_notifier() -> Notifier:
    return queue_inquiry_notification


@router.post("/inquiries", response_model=InquiryOut, status_code=201)
def create_inquiry(
    payload: InquiryCreate,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
    notify: Notifier = Depends(get_inquiry_notifier),
):
    try:
        inquiry = create_partnership_inquiry(db, user, payload.company_id, payload.message, notify=notify)
    except LookupError:
        raise HTTPException(status_code=404, detail="Company not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "id": str(inquiry.id),
        "company_id": str(inquiry.company_id),
        "message": inquiry.message,
        "status": inquiry.status,
        "created_at": inquiry.created_at,
    }


@router.get("/inquiries", response_model=List[InquiryOut])
def get_inquiries(
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    return list_user_inquiries(db, user.id)
