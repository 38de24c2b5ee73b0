from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid
from datetime import datetime
import uuid
from ..core.db import Base

class PartnershipInquiry(Base):
    __tablename__ = "partnership_inquiries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, index=True, nullable=False)
    requester_email = Column(String, nullable=True)  # reply-to for the notification
    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), index=True, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
