from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .base import BaseConnector, CompanyRecord
from .google_places import GooglePlacesConnector
from .opencorporates import OpenCorporatesConnector
from .companies_house import CompaniesHouseConnector
from .synthetic import CrunchbaseSyntheticConnector, YellowPagesSyntheticConnector
from ..url_utils import normalize_url
from ...core.config import Settings, get_settings
from ...models.company import Company, DataSource, company_row

logger = logging.getLogger(__name__)

# The local database is listed alongside providers but is never fanned out to.
LOCAL_SOURCE = DataSource.SUPABASE.value

SOURCE_PRIORITY = {
    LOCAL_SOURCE: 1,
    DataSource.GOOGLE_PLACES.value: 2,
    DataSource.OPENCORPORATES.value: 3,
    DataSource.CRUNCHBASE.value: 4,
    DataSource.YELLOW_PAGES.value: 5,
    DataSource.COMPANIES_HOUSE.value: 6,
}


class ConnectorRunner:
    """
    Registry + executor for external company sources.

    - Live connectors and synthetic (placeholder) generators are registered
      separately; synthetic ones are only reachable with
      ENABLE_SYNTHETIC_SOURCES.
    - `search_sources` fans out concurrently and never raises.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        connectors: Optional[Dict[str, BaseConnector]] = None,
        synthetic_connectors: Optional[Dict[str, BaseConnector]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        if connectors is None:
            connectors = {
                c.name: c
                for c in (
                    GooglePlacesConnector(self.settings, transport),
                    OpenCorporatesConnector(self.settings, transport),
                    CompaniesHouseConnector(self.settings, transport),
                )
            }
        if synthetic_connectors is None:
            synthetic_connectors = {
                c.name: c
                for c in (
                    CrunchbaseSyntheticConnector(self.settings),
                    YellowPagesSyntheticConnector(self.settings),
                )
            }
        self._connectors: Dict[str, BaseConnector] = connectors
        self._synthetic_connectors: Dict[str, BaseConnector] = synthetic_connectors

    @property
    def synthetic_enabled(self) -> bool:
        return self.settings.ENABLE_SYNTHETIC_SOURCES

    def _get_connector(self, name: str) -> BaseConnector | None:
        if name in self._connectors:
            return self._connectors[name]
        if self.synthetic_enabled:
            return self._synthetic_connectors.get(name)
        return None

    def default_source_names(self) -> List[str]:
        names = list(self._connectors)
        if self.synthetic_enabled:
            names.extend(self._synthetic_connectors)
        return names

    def available_sources(self) -> List[Dict[str, Any]]:
        """Every known source with its priority and whether it would run."""
        sources: List[Dict[str, Any]] = [
            {"name": LOCAL_SOURCE, "priority": SOURCE_PRIORITY[LOCAL_SOURCE], "enabled": True, "synthetic": False}
        ]
        for name, connector in self._connectors.items():
            sources.append(
                {
                    "name": name,
                    "priority": SOURCE_PRIORITY.get(name, 99),
                    "enabled": connector.is_configured(),
                    "synthetic": False,
                }
            )
        for name in self._synthetic_connectors:
            sources.append(
                {
                    "name": name,
                    "priority": SOURCE_PRIORITY.get(name, 99),
                    "enabled": self.synthetic_enabled,
                    "synthetic": True,
                }
            )
        return sorted(sources, key=lambda s: s["priority"])

    async def _run_search(
        self,
        connector: BaseConnector,
        query: str,
        location: Optional[str],
        industry: Optional[str],
        max_results: int,
        options: Optional[Dict[str, Any]],
    ) -> List[CompanyRecord]:
        try:
            results = await connector.search(query, location, industry, max_results, options)
        except Exception as e:
            logger.exception(
                "Source '%s' search failed: %s",
                connector.name,
                e,
                extra={"source": connector.name, "step": "search_sources"},
            )
            return []
        logger.info(
            "Found %d companies from %s",
            len(results),
            connector.name,
            extra={"source": connector.name, "step": "search_sources"},
        )
        return results

    async def search_sources(
        self,
        query: str,
        location: Optional[str] = None,
        industry: Optional[str] = None,
        sources: Optional[List[str]] = None,
        max_results: int = 20,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[CompanyRecord]:
        """
        Query the given sources concurrently; each gets ceil(max_results / n)
        slots and the merged list is capped at max_results.
        """
        names = [s for s in (sources if sources is not None else self.default_source_names()) if s != LOCAL_SOURCE]
        if not names or max_results < 1:
            return []
        per_source = math.ceil(max_results / len(names))

        tasks: Dict[str, asyncio.Task] = {}
        for name in names:
            connector = self._get_connector(name)
            if not connector:
                logger.warning(
                    "Unknown or disabled data source '%s'; skipping",
                    name,
                    extra={"source": name, "step": "search_sources"},
                )
                continue
            tasks[name] = asyncio.create_task(
                self._run_search(connector, query, location, industry, per_source, options)
            )

        companies: List[CompanyRecord] = []
        for name, task in tasks.items():
            companies.extend(await task)
        return companies[:max_results]

    def store_companies(self, db: Session, companies: List[CompanyRecord]) -> int:
        """
        Persist provider records, skipping any (name, data_source) already
        stored. Each record commits on its own; a failing record is rolled
        back and skipped.
        """
        stored = 0
        for record in companies:
            row = company_row(record)
            if not row.get("name"):
                continue
            row["website_url"] = normalize_url(row.get("website_url"))
            try:
                existing = (
                    db.query(Company.id)
                    .filter(Company.name == row["name"], Company.data_source == row["data_source"])
                    .first()
                )
                if existing:
                    logger.debug(
                        "Company already exists: %s",
                        row["name"],
                        extra={"source": row["data_source"], "step": "store_companies"},
                    )
                    continue
                db.add(Company(**row))
                db.commit()
                stored += 1
            except SQLAlchemyError as e:
                db.rollback()
                logger.warning(
                    "Error storing company %s: %s",
                    row["name"],
                    e,
                    extra={"source": row["data_source"], "step": "store_companies"},
                )
        return stored

    async def test_source(self, name: str) -> bool:
        connector = self._get_connector(name)
        if connector is None:
            raise LookupError(f"Unknown data source: {name}")
        try:
            return await connector.test_connection()
        except Exception as e:
            logger.warning(
                "Connection test for '%s' failed: %s",
                name,
                e,
                extra={"source": name, "step": "test_source"},
            )
            return False


def get_connector_runner() -> ConnectorRunner:
    return ConnectorRunner()
