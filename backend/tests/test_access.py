"""
Tests for access.py

Contact redaction: anonymous callers never see contacts, entitled callers
always do, and a failing check never leaks them.
"""
from datetime import datetime, timedelta

from company_discovery.models.access import Subscriber, UserRole
from company_discovery.models.company import company_to_dict
from company_discovery.services.access import AccessFilter, DatabaseEntitlementChecker, EntitlementChecker


class AllowAll(EntitlementChecker):
    def can_access_contacts(self, user_id, company_id):
        return True


class Broken(EntitlementChecker):
    def can_access_contacts(self, user_id, company_id):
        raise RuntimeError("entitlement store unavailable")


def company_dict(add_company, **fields):
    values = {"contact_email": "sales@acme.example", "phone": "+1-415-555-0100"}
    values.update(fields)
    return company_to_dict(add_company("Acme Widgets", **values))


class TestAccessFilter:
    """Flag semantics of AccessFilter."""

    def test_anonymous_is_redacted(self, add_company):
        """No user: contacts nulled, upgrade flagged."""
        company = company_dict(add_company)
        out = AccessFilter(AllowAll()).apply_one(company, None)

        assert out["contact_email"] is None
        assert out["phone"] is None
        assert out["_contact_restricted"] is True
        assert out["_upgrade_required"] is True

    def test_entitled_sees_contacts(self, add_company):
        """An allowed caller gets the stored values unchanged."""
        company = company_dict(add_company)
        out = AccessFilter(AllowAll()).apply_one(company, "user-1")

        assert out["contact_email"] == "sales@acme.example"
        assert out["phone"] == "+1-415-555-0100"
        assert out["_contact_restricted"] is False

    def test_failing_check_fails_closed(self, add_company):
        """A raising checker redacts and sets the error flag."""
        company = company_dict(add_company)
        out = AccessFilter(Broken()).apply_one(company, "user-1")

        assert out["contact_email"] is None
        assert out["_access_error"] is True

    def test_missing_checker_fails_closed(self, add_company):
        """A signed-in caller with no checker configured is redacted."""
        out = AccessFilter(None).apply_one(company_dict(add_company), "user-1")
        assert out["phone"] is None
        assert out["_access_error"] is True

    def test_originals_are_not_mutated(self, add_company):
        """apply returns copies."""
        company = company_dict(add_company)
        AccessFilter(None).apply([company], None)
        assert company["contact_email"] == "sales@acme.example"
        assert "_contact_restricted" not in company


class TestDatabaseEntitlementChecker:
    """Role, subscription and ownership grants."""

    def test_plain_user_is_denied(self, db_session, add_company):
        """No role, no subscription, not the owner."""
        company = company_dict(add_company)
        out = AccessFilter(DatabaseEntitlementChecker(db_session)).apply_one(company, "user-1")

        assert out["contact_email"] is None
        assert out["_upgrade_required"] is True

    def test_premium_role_grants_access(self, db_session, add_company):
        """admin/premium roles see all contacts; basic does not."""
        company = company_dict(add_company)
        db_session.add_all([UserRole(user_id="premium-user", role="premium"), UserRole(user_id="basic-user", role="basic")])
        db_session.commit()
        checker = DatabaseEntitlementChecker(db_session)

        assert checker.can_access_contacts("premium-user", company["id"]) is True
        assert checker.can_access_contacts("basic-user", company["id"]) is False

    def test_active_subscription_grants_access(self, db_session, add_company):
        """Subscriptions count until their end date; open-ended ones always."""
        company = company_dict(add_company)
        now = datetime.utcnow()
        db_session.add_all(
            [
                Subscriber(user_id="active", email="a@x.example", subscribed=True, subscription_end=now + timedelta(days=30)),
                Subscriber(user_id="expired", email="e@x.example", subscribed=True, subscription_end=now - timedelta(days=1)),
                Subscriber(user_id="open", email="o@x.example", subscribed=True, subscription_end=None),
                Subscriber(user_id="cancelled", email="c@x.example", subscribed=False, subscription_end=None),
            ]
        )
        db_session.commit()
        checker = DatabaseEntitlementChecker(db_session)

        assert checker.can_access_contacts("active", company["id"]) is True
        assert checker.can_access_contacts("expired", company["id"]) is False
        assert checker.can_access_contacts("open", company["id"]) is True
        assert checker.can_access_contacts("cancelled", company["id"]) is False

    def test_owner_sees_own_record(self, db_session, add_company):
        """The user who created a record can see its contacts."""
        own = company_dict(add_company, user_id="owner-1")
        other = company_to_dict(add_company("Other Co", contact_email="x@other.example", user_id="someone-else"))
        checker = DatabaseEntitlementChecker(db_session)

        assert checker.can_access_contacts("owner-1", own["id"]) is True
        assert checker.can_access_contacts("owner-1", other["id"]) is False
