"""
Entitlement tables consulted by the contact access check.

Rows are written by the subscription/role management layer; this service
only reads them.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime
import enum

from ..core.db import Base


class AppRole(str, enum.Enum):
    ADMIN = "admin"
    PREMIUM = "premium"
    BASIC = "basic"


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, index=True, nullable=False)
    role = Column(String, nullable=False, default=AppRole.BASIC.value)
    granted_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Subscriber(Base):
    __tablename__ = "subscribers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, index=True, nullable=True)
    email = Column(String, nullable=False)
    subscribed = Column(Boolean, nullable=False, default=False)
    subscription_tier = Column(String, nullable=True)
    subscription_end = Column(DateTime, nullable=True)
