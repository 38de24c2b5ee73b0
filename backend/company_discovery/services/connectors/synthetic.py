"""
Placeholder generators standing in for Crunchbase and Yellow Pages.

Neither has a live integration. The records they produce exist to exercise
the common schema in demos, so they are tagged `synthetic`, never verified,
labelled as sample data and use the reserved `.example` domain.
"""
from __future__ import annotations

import re
import zlib
from typing import Any, Dict, List, Optional

from .base import BaseConnector, CompanyRecord
from ...models.company import CompanySize, DataSource

NAME_PREFIXES = ("Global", "Prime", "Pioneer", "Nexus", "Vertex", "Apex", "Momentum")
NAME_SUFFIXES = ("Group", "Holdings", "Partners", "Industries", "Solutions")
LISTING_SUFFIXES = ("Services", "Solutions", "Group", "Corp", "Partners")

LOCATION_COUNTRIES = {
    "usa": "United States",
    "uk": "United Kingdom",
    "germany": "Germany",
    "japan": "Japan",
    "australia": "Australia",
}

SAMPLE_LABEL = "Sample record"


def fallback_company_name(industry: Optional[str], index: int = 0) -> str:
    """"Global Fashion Group", "Prime Fashion Holdings", ..."""
    ind = (industry or "Business").replace("_", " ").replace("-", " ")
    prefix = NAME_PREFIXES[index % len(NAME_PREFIXES)]
    suffix = NAME_SUFFIXES[index % len(NAME_SUFFIXES)]
    return f"{prefix} {ind}".title() + f" {suffix}"


def country_from_location(location: str) -> str:
    return LOCATION_COUNTRIES.get(location.strip().lower(), location.strip())


def synthetic_phone(seed: str) -> str:
    """Deterministic +1-555 number (the 555 exchange is reserved for fiction)."""
    digest = zlib.crc32(seed.encode("utf-8"))
    return f"+1-555-{100 + digest % 900}-{1000 + (digest // 900) % 9000}"


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "sample"


class CrunchbaseSyntheticConnector(BaseConnector):
    name = DataSource.CRUNCHBASE.value
    synthetic = True

    async def search(
        self,
        query: str,
        location: Optional[str] = None,
        industry: Optional[str] = None,
        max_results: int = 10,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[CompanyRecord]:
        if max_results < 1:
            return []
        q = (query or "").strip()
        name = f"{q} Technologies" if q else fallback_company_name(industry or "technology")
        return [
            {
                "name": name,
                "description": f"{SAMPLE_LABEL}: technology company specializing in {industry or 'software solutions'}",
                "website_url": f"https://{_slug(q or 'global-tech')}.example",
                "contact_email": None,
                "phone": None,
                "location_country": country_from_location(location) if location else "United States",
                "location_city": location or "San Francisco",
                "industry": ["technology", "software"],
                "specialties": ["software", "technology", "innovation"],
                "company_size": CompanySize.MEDIUM.value,
                "data_source": self.name,
                "verified": False,
            }
        ]

    async def test_connection(self) -> bool:
        return True


class YellowPagesSyntheticConnector(BaseConnector):
    name = DataSource.YELLOW_PAGES.value
    synthetic = True

    async def search(
        self,
        query: str,
        location: Optional[str] = None,
        industry: Optional[str] = None,
        max_results: int = 10,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[CompanyRecord]:
        q = " ".join((query or "").split())
        records: List[CompanyRecord] = []
        for i in range(min(max_results, 5)):
            base = q or fallback_company_name(industry, i)
            name = f"{base} {LISTING_SUFFIXES[i % len(LISTING_SUFFIXES)]}"
            records.append(
                {
                    "name": name,
                    "description": f"{SAMPLE_LABEL}: local business providing {industry or 'professional services'}",
                    "website_url": None,
                    "contact_email": None,
                    "phone": synthetic_phone(f"{name}|{location or ''}"),
                    "location_country": country_from_location(location) if location else "United States",
                    "location_city": location or "Local Area",
                    "industry": [industry] if industry else ["business_services"],
                    "specialties": ["local_business", industry or "services"],
                    "company_size": CompanySize.SMALL.value,
                    "data_source": self.name,
                    "verified": False,
                }
            )
        return records

    async def test_connection(self) -> bool:
        return True
