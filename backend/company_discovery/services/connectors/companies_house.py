from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, wait_exponential, stop_after_attempt, retry_if_exception_type

from .base import BaseConnector, CompanyRecord, industry_from_company_type
from ..caching import cached_get
from ...models.company import CompanySize, DataSource

logger = logging.getLogger(__name__)


class CompaniesHouseConnector(BaseConnector):
    name = DataSource.COMPANIES_HOUSE.value

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.COMPANIES_HOUSE_API_KEY

    @property
    def base_url(self) -> str:
        return self.settings.COMPANIES_HOUSE_BASE_URL.rstrip("/")

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(httpx.HTTPError),
    )
    async def _search_items(self, query: str, items_per_page: int) -> List[Dict[str, Any]]:
        cache_key = f"ch:search:{items_per_page}:{query.lower()}"
        cached = await cached_get(cache_key)
        if cached is not None:
            return cached

        async with self._client(auth=(self.api_key, "")) as client:
            data = await self._get_json_allow_404(
                client,
                f"{self.base_url}/search/companies",
                params={"q": query, "items_per_page": items_per_page},
            )

        items = [i for i in ((data or {}).get("items") or []) if isinstance(i, dict)]
        if items:
            await cached_get(cache_key, set_value=items, ttl=self.settings.SOURCE_CACHE_TTL_SECONDS)
        return items

    def _to_record(self, item: Dict[str, Any]) -> Optional[CompanyRecord]:
        name = (item.get("title") or "").strip()
        if not name:
            return None
        company_type = item.get("company_type")
        status = item.get("company_status")
        return {
            "name": name,
            "description": f"UK company ({company_type or 'Limited Company'}) - {status or 'Active'}",
            "website_url": None,
            "contact_email": None,
            "phone": None,
            "location_country": "United Kingdom",
            "location_city": (item.get("address") or {}).get("locality") or None,
            "industry": industry_from_company_type(company_type),
            "specialties": [company_type] if company_type else [],
            "company_size": CompanySize.SMALL.value,
            "data_source": self.name,
            "verified": status == "active",
        }

    async def search(
        self,
        query: str,
        location: Optional[str] = None,
        industry: Optional[str] = None,
        max_results: int = 10,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[CompanyRecord]:
        if not self.api_key:
            logger.debug("COMPANIES_HOUSE_API_KEY not configured; skipping.", extra={"source": self.name})
            return []
        if not query or not query.strip():
            return []

        try:
            items = await self._search_items(query.strip(), max(1, min(max_results, 20)))
        except Exception as e:
            logger.warning("Companies House search failed: %s", e, extra={"source": self.name})
            return []

        records = [self._to_record(item) for item in items[:max_results]]
        return [r for r in records if r]

    async def test_connection(self) -> bool:
        if not self.api_key:
            return False
        try:
            async with self._client(auth=(self.api_key, "")) as client:
                resp = await client.get(
                    f"{self.base_url}/search/companies",
                    params={"q": "test", "items_per_page": 1},
                )
            return resp.is_success
        except httpx.HTTPError as e:
            logger.warning("Companies House connection test failed: %s", e, extra={"source": self.name})
            return False
