from sqlalchemy import Column, String, Text, JSON, Boolean, Integer, DateTime, Uuid
from datetime import datetime
import uuid
import enum
from ..core.db import Base


class DataSource(str, enum.Enum):
    SUPABASE = "supabase"
    GOOGLE_PLACES = "google_places"
    OPENCORPORATES = "opencorporates"
    WEB_SCRAPING = "web_scraping"
    CRUNCHBASE = "crunchbase"
    YELLOW_PAGES = "yellow_pages"
    COMPANIES_HOUSE = "companies_house"
    MANUAL = "manual"
    SAMPLE = "sample"


class CompanySize(str, enum.Enum):
    MICRO = "micro"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Company(Base):
    __tablename__ = "companies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    # canonical form (https, no query/fragment, no trailing slash); dedup key for scraping
    website_url = Column(String, index=True, nullable=True)
    contact_email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    location_country = Column(String, nullable=True)
    location_city = Column(String, nullable=True)
    industry = Column(JSON, nullable=False, default=list)      # ["technology", ...]
    specialties = Column(JSON, nullable=False, default=list)   # at most 5 short strings
    company_size = Column(String, nullable=True, default=CompanySize.SMALL.value)
    established_year = Column(Integer, nullable=True)
    data_source = Column(String, nullable=False, default=DataSource.MANUAL.value, index=True)
    verified = Column(Boolean, nullable=False, default=False)
    user_id = Column(String, nullable=True)  # owner of manually created records
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


COMPANY_FIELDS = (
    "name",
    "description",
    "website_url",
    "contact_email",
    "phone",
    "location_country",
    "location_city",
    "industry",
    "specialties",
    "company_size",
    "established_year",
    "data_source",
    "verified",
)


DEFAULT_TAG = "business_services"


def company_row(record: dict) -> dict:
    """
    Column values for a new Company from an extracted/provider record.

    Unknown keys (e.g. internal `_raw_text`) are dropped and empty
    industry/specialties get the default tag.
    """
    row = {field: record.get(field) for field in COMPANY_FIELDS}
    row["industry"] = [i for i in (record.get("industry") or []) if i] or [DEFAULT_TAG]
    row["specialties"] = [s for s in (record.get("specialties") or []) if s][:5] or [DEFAULT_TAG]
    row["company_size"] = record.get("company_size") or CompanySize.SMALL.value
    row["data_source"] = record.get("data_source") or DataSource.MANUAL.value
    row["verified"] = bool(record.get("verified"))
    return row


def company_to_dict(company: Company) -> dict:
    """Plain-dict view used by the search and access layers."""
    data = {"id": str(company.id)}
    for field in COMPANY_FIELDS:
        data[field] = getattr(company, field)
    data["industry"] = list(company.industry or [])
    data["specialties"] = list(company.specialties or [])
    data["created_at"] = company.created_at.isoformat() if company.created_at else None
    return data
