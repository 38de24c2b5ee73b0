import os

# Point the app at throwaway storage before anything reads settings.
os.environ["DATABASE_URL"] = "sqlite://"
for _var in (
    "REDIS_URL",
    "SUPABASE_URL",
    "GOOGLE_PLACES_API_KEY",
    "OPENCORPORATES_API_TOKEN",
    "COMPANIES_HOUSE_API_KEY",
    "FIRECRAWL_API_KEY",
    "OPENAI_API_KEY",
    "OPENROUTER_API_KEY",
    "RESEND_API_KEY",
):
    os.environ.pop(_var, None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from company_discovery.core.db import Base
from company_discovery.models import access, partnership_inquiry  # noqa: F401  (register tables)
from company_discovery.models.company import Company
from tests.fixtures.settings import make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def add_company(db_session):
    """Insert a company row; unspecified list fields get the default tag."""

    def _add(name: str, **fields) -> Company:
        values = {
            "industry": ["business_services"],
            "specialties": ["business_services"],
            "data_source": "manual",
        }
        values.update(fields)
        company = Company(name=name, **values)
        db_session.add(company)
        db_session.commit()
        db_session.refresh(company)
        return company

    return _add
