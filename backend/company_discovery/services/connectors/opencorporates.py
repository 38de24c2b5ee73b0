from __future__ import annotations

from typing import Any, Dict, List, Optional

import logging

import httpx

from tenacity import retry, wait_exponential, stop_after_attempt, retry_if_exception_type

from .base import BaseConnector, CompanyRecord, city_from_address, industry_from_company_type

from ..caching import cached_get
from ..extractor import COUNTRIES

from ...models.company import CompanySize, DataSource

logger = logging.getLogger(__name__)

JURISDICTION_CODES = {
    "united states": "us",
    "usa": "us",
    "united kingdom": "gb",
    "uk": "gb",
    "germany": "de",
    "japan": "jp",
    "australia": "au",
    "canada": "ca",
    "france": "fr",
    "italy": "it",
}

_COUNTRY_BY_CODE = {code.lower(): name for name, code, _aliases in COUNTRIES}


def jurisdiction_code(location: str) -> str:
    """Map a location string to an OpenCorporates jurisdiction code (first two letters as fallback)."""
    key = location.strip().lower()
    return JURISDICTION_CODES.get(key) or key[:2]


def country_from_jurisdiction(code: Optional[str]) -> Optional[str]:
    """"us_de" -> "United States"; unknown codes come back upper-cased."""
    if not code:
        return None
    country = code.split("_", 1)[0].lower()
    return _COUNTRY_BY_CODE.get(country, code.upper())


class OpenCorporatesConnector(BaseConnector):
    """
    OpenCorporates company search.

    Registry-grade data: `verified` mirrors the registry's Active status.
    """

    name = DataSource.OPENCORPORATES.value

    @property
    def api_token(self) -> Optional[str]:
        return self.settings.OPENCORPORATES_API_TOKEN

    @property
    def base_url(self) -> str:
        return self.settings.OPENCORPORATES_BASE_URL.rstrip("/")

    def is_configured(self) -> bool:
        return bool(self.api_token)

    def _headers(self) -> Dict[str, str]:
        if not self.api_token:
            return {}
        return {
            "X-API-TOKEN": self.api_token,
            "Accept": "application/json",
        }

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(httpx.HTTPError),
    )
    async def _search_companies(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        cache_key = "opencorporates:search:" + ":".join(f"{k}={params[k]}" for k in sorted(params))
        cached = await cached_get(cache_key)
        if cached is not None:
            return cached

        async with self._client() as client:
            data = await self._get_json_allow_404(
                client,
                f"{self.base_url}/companies/search",
                params=params,
                headers=self._headers(),
            )

        # Each element is {"company": {...}}
        wrappers = ((data or {}).get("results") or {}).get("companies") or []
        companies = [w.get("company") for w in wrappers if isinstance(w, dict) and isinstance(w.get("company"), dict)]
        if companies:
            await cached_get(cache_key, set_value=companies, ttl=self.settings.SOURCE_CACHE_TTL_SECONDS)
        return companies

    def _to_record(self, company: Dict[str, Any]) -> Optional[CompanyRecord]:
        name = (company.get("name") or "").strip()
        if not name:
            return None
        company_type = company.get("company_type")
        return {
            "name": name,
            "description": (
                f"{company_type or 'Company'} incorporated in "
                f"{company.get('incorporation_date') or 'N/A'}"
            ),
            "website_url": None,
            "contact_email": None,
            "phone": None,
            "location_country": country_from_jurisdiction(company.get("jurisdiction_code")),
            "location_city": city_from_address(company.get("registered_address_in_full")),
            "industry": industry_from_company_type(company_type),
            "specialties": [company_type] if company_type else [],
            "company_size": CompanySize.SMALL.value,
            "data_source": self.name,
            "verified": (company.get("current_status") or "").lower() == "active",
        }

    async def search(
        self,
        query: str,
        location: Optional[str] = None,
        industry: Optional[str] = None,
        max_results: int = 10,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[CompanyRecord]:
        if not self.api_token:
            logger.debug("OPENCORPORATES_API_TOKEN not configured; skipping.", extra={"source": self.name})
            return []

        params: Dict[str, Any] = {
            "q": query.strip() if query and query.strip() else "company",
            "per_page": max(1, min(max_results, 10)),
        }
        if location:
            params["jurisdiction_code"] = jurisdiction_code(location)

        try:
            companies = await self._search_companies(params)
        except Exception as e:
            logger.warning("OpenCorporates search failed: %s", e, extra={"source": self.name})
            return []

        records = [self._to_record(c) for c in companies[:max_results]]
        return [r for r in records if r]

    async def test_connection(self) -> bool:
        if not self.api_token:
            return False
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{self.base_url}/companies/search",
                    params={"q": "test", "per_page": 1},
                    headers=self._headers(),
                )
            return resp.is_success
        except httpx.HTTPError as e:
            logger.warning("OpenCorporates connection test failed: %s", e, extra={"source": self.name})
            return False
