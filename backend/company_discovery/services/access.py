"""
Contact-field redaction for search results.

Redaction is presentational: stored rows are never modified, callers get
copies with `contact_email` / `phone` nulled and a flag explaining why.
Any failure while checking entitlement fails closed.
"""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..models.access import AppRole, Subscriber, UserRole
from ..models.company import Company

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("contact_email", "phone")
ENTITLED_ROLES = (AppRole.ADMIN.value, AppRole.PREMIUM.value)


class EntitlementChecker(ABC):
    @abstractmethod
    def can_access_contacts(self, user_id: str, company_id: str) -> bool:
        ...


class DatabaseEntitlementChecker(EntitlementChecker):
    """
    Grants contact access to admin/premium roles, active subscribers and the
    owner of the record. User-level entitlement is looked up once per
    instance (one instance per request).
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self._user_entitled: Dict[str, bool] = {}

    def _has_role_or_subscription(self, user_id: str) -> bool:
        if user_id in self._user_entitled:
            return self._user_entitled[user_id]

        role = (
            self.db.query(UserRole.id)
            .filter(UserRole.user_id == user_id, UserRole.role.in_(ENTITLED_ROLES))
            .first()
        )
        entitled = role is not None
        if not entitled:
            now = datetime.utcnow()
            subscriptions = (
                self.db.query(Subscriber)
                .filter(Subscriber.user_id == user_id, Subscriber.subscribed.is_(True))
                .all()
            )
            entitled = any(s.subscription_end is None or s.subscription_end > now for s in subscriptions)

        self._user_entitled[user_id] = entitled
        return entitled

    def can_access_contacts(self, user_id: str, company_id: str) -> bool:
        if self._has_role_or_subscription(user_id):
            return True
        owner = self.db.query(Company.user_id).filter(Company.id == uuid.UUID(str(company_id))).scalar()
        return owner is not None and owner == user_id


def _redacted(company: Dict[str, Any], **flags: bool) -> Dict[str, Any]:
    out = dict(company)
    for field in CONTACT_FIELDS:
        out[field] = None
    out["_contact_restricted"] = True
    out.update(flags)
    return out


class AccessFilter:
    def __init__(self, checker: EntitlementChecker | None) -> None:
        self.checker = checker

    def apply_one(self, company: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
        if not user_id:
            return _redacted(company, _upgrade_required=True)
        if self.checker is None:
            return _redacted(company, _access_error=True)

        try:
            allowed = self.checker.can_access_contacts(user_id, company["id"])
        except Exception as e:
            logger.warning(
                "Contact access check failed: %s",
                e,
                extra={"user_id": user_id, "company_id": company.get("id"), "step": "access_check"},
            )
            return _redacted(company, _access_error=True)

        if not allowed:
            return _redacted(company, _upgrade_required=True)
        out = dict(company)
        out["_contact_restricted"] = False
        return out

    def apply(self, companies: List[Dict[str, Any]], user_id: Optional[str]) -> List[Dict[str, Any]]:
        return [self.apply_one(c, user_id) for c in companies]
