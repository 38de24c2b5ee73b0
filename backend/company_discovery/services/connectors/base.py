from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ...core.config import Settings, get_settings

logger = logging.getLogger(__name__)

CompanyRecord = Dict[str, Any]

ADDRESS_COUNTRY_ALIASES = {
    "USA": "United States",
    "US": "United States",
    "UK": "United Kingdom",
    "GB": "United Kingdom",
    "DE": "Germany",
    "JP": "Japan",
    "AU": "Australia",
}


class BaseConnector(ABC):
    """
    One external company source.

    `search` must never raise: provider outages, missing credentials and
    malformed payloads all come back as an empty list so a single source
    cannot break aggregation.
    """

    name: str
    # placeholder generators with no live provider behind them
    synthetic: bool = False

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.transport = transport
        self.timeout: int = self.settings.SOURCE_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        return True

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport, **kwargs)

    async def _get_json_allow_404(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        - returns None for 404 or non-retriable 4xx
        - handles 429 with a short backoff
        - raises for 5xx so Tenacity can retry
        """
        resp = await client.get(url, params=params, headers=headers)

        if resp.status_code == 404:
            return None

        if resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After")
            delay = int(retry_after) if retry_after and retry_after.isdigit() else 2
            await asyncio.sleep(min(delay, 5))
            resp = await client.get(url, params=params, headers=headers)

        if 400 <= resp.status_code < 500:
            logger.warning(
                "%s returned %s: %s",
                self.name,
                resp.status_code,
                resp.text[:200],
                extra={"source": self.name},
            )
            return None

        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, dict) else None

    @abstractmethod
    async def search(
        self,
        query: str,
        location: Optional[str] = None,
        industry: Optional[str] = None,
        max_results: int = 10,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[CompanyRecord]:
        ...

    @abstractmethod
    async def test_connection(self) -> bool:
        ...


def industry_from_company_type(company_type: Optional[str]) -> List[str]:
    """Coarse industry guess from a registry company_type string."""
    if not company_type:
        return ["business_services"]
    value = company_type.lower()
    if "tech" in value or "software" in value:
        return ["technology"]
    if "manufacturing" in value:
        return ["manufacturing"]
    if "consulting" in value:
        return ["consulting"]
    if "trading" in value or "import" in value or "export" in value:
        return ["trade"]
    return ["business_services"]


def country_from_address(address: Optional[str]) -> Optional[str]:
    """Last comma-separated part of a formatted address, with common codes expanded."""
    if not address:
        return None
    last = address.split(",")[-1].strip()
    return ADDRESS_COUNTRY_ALIASES.get(last, last) or None


def city_from_address(address: Optional[str]) -> Optional[str]:
    """Second-to-last part of a formatted address (the only part if there is one)."""
    if not address:
        return None
    parts = [p.strip() for p in address.split(",") if p.strip()]
    if not parts:
        return None
    return parts[-2] if len(parts) > 1 else parts[0]
