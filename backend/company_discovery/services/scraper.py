from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..models.company import Company, company_row
from .decoding import decode_html
from .enrichment import Enricher, LLMEnricher, enrich_record
from .extractor import SENTINEL_DESCRIPTION, extract_company, is_garbled
from .url_utils import normalize_url, site_origin

logger = logging.getLogger(__name__)

CONTACT_PATHS = (
    "/contact",
    "/contact-us",
    "/contactus",
    "/inquiry",
    "/about",
    "/about-us",
    "/company",
    "/ja/contact",
    "/jp/contact",
    "/ja/inquiry",
    "/jp/inquiry",
    "/ja/company",
    "/jp/company",
)

ABOUT_PATHS = (
    "/about",
    "/about-us",
    "/company",
    "/company/profile",
    "/corporate",
    "/ja/about",
    "/jp/about",
    "/ja/company",
    "/jp/company",
    "/ja/corporate",
)

ACCEPT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,ja;q=0.8",
}


class WebsiteScraper:
    """
    Fetch company websites, extract records, backfill gaps and optionally
    persist them.

    One URL failing never fails the batch: it is reported in `failed_urls`
    and left out of `companies`.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        db: Session | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        enricher: Enricher | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.db = db
        self.transport = transport
        self.enricher = enricher if enricher is not None else LLMEnricher(self.settings)
        self.max_concurrency = max(1, self.settings.SCRAPE_MAX_CONCURRENCY)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.SCRAPE_TIMEOUT_SECONDS,
            follow_redirects=True,
            headers={"User-Agent": self.settings.SCRAPER_USER_AGENT, **ACCEPT_HEADERS},
            transport=self.transport,
        )

    async def _fetch_page(
        self,
        client: httpx.AsyncClient,
        url: str,
        timeout: Optional[float] = None,
    ) -> Optional[str]:
        try:
            resp = await client.get(url, timeout=timeout or self.settings.SCRAPE_TIMEOUT_SECONDS)
        except httpx.HTTPError as e:
            logger.info("Fetch failed: %s", e, extra={"url": url, "step": "fetch"})
            return None
        if not resp.is_success:
            logger.info("Fetch returned %s", resp.status_code, extra={"url": url, "step": "fetch"})
            return None
        return decode_html(resp.content, resp.headers.get("content-type"))

    async def _scrape_with_firecrawl(
        self,
        client: httpx.AsyncClient,
        url: str,
        industry: Optional[str],
    ) -> Optional[Dict[str, Any]]:
        try:
            resp = await client.post(
                f"{self.settings.FIRECRAWL_BASE_URL.rstrip('/')}/scrape",
                headers={"Authorization": f"Bearer {self.settings.FIRECRAWL_API_KEY}"},
                json={"url": url, "formats": ["markdown", "html"], "onlyMainContent": True},
            )
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Firecrawl error: %s", e, extra={"url": url, "step": "firecrawl"})
            return None

        payload = payload if isinstance(payload, dict) else {}
        data = payload.get("data") or {}
        content = data.get("html") or data.get("markdown")
        if not payload.get("success") or not content:
            logger.warning("Firecrawl returned no content", extra={"url": url, "step": "firecrawl"})
            return None
        return extract_company(content, url, industry)

    async def _scrape_with_basic_fetch(
        self,
        client: httpx.AsyncClient,
        url: str,
        industry: Optional[str],
    ) -> Optional[Dict[str, Any]]:
        html = await self._fetch_page(client, url)
        if not html:
            return None
        return extract_company(html, url, industry)

    # ------------------------------------------------------------------
    # Backfilling
    # ------------------------------------------------------------------

    async def _probe_contacts(
        self,
        client: httpx.AsyncClient,
        url: str,
        record: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Fill missing email/phone from the first contact-like page that has either."""
        if record.get("contact_email") and record.get("phone"):
            return record

        origin = site_origin(url)
        for path in CONTACT_PATHS:
            html = await self._fetch_page(client, origin + path, timeout=self.settings.PROBE_TIMEOUT_SECONDS)
            if not html:
                continue
            probe = extract_company(html, url) or {}
            found = False
            for field in ("contact_email", "phone"):
                if not record.get(field) and probe.get(field):
                    record[field] = probe[field]
                    found = True
            if found:
                logger.info("Contacts found on %s", path, extra={"url": url, "step": "probe_contacts"})
                break
        return record

    async def _probe_about(
        self,
        client: httpx.AsyncClient,
        url: str,
        record: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Replace a placeholder description from the first about-like page that has a real one."""
        if record.get("description") != SENTINEL_DESCRIPTION:
            return record

        origin = site_origin(url)
        for path in ABOUT_PATHS:
            html = await self._fetch_page(client, origin + path, timeout=self.settings.PROBE_TIMEOUT_SECONDS)
            if not html:
                continue
            probe = extract_company(html, url) or {}
            description = probe.get("description")
            if description and description != SENTINEL_DESCRIPTION:
                record["description"] = description
                logger.info("Description found on %s", path, extra={"url": url, "step": "probe_about"})
                break
        return record

    # ------------------------------------------------------------------
    # Per-URL pipeline
    # ------------------------------------------------------------------

    async def _scrape_one(
        self,
        client: httpx.AsyncClient,
        url: str,
        industry: Optional[str],
        llm: bool,
    ) -> Optional[Dict[str, Any]]:
        record: Optional[Dict[str, Any]] = None

        if self.settings.FIRECRAWL_API_KEY:
            record = await self._scrape_with_firecrawl(client, url, industry)
            if record and is_garbled(record):
                logger.info(
                    "Firecrawl text looks garbled; retrying with direct fetch",
                    extra={"url": url, "step": "firecrawl"},
                )
                record = None

        if record is None:
            record = await self._scrape_with_basic_fetch(client, url, industry)
        if record is None:
            return None

        record = await self._probe_contacts(client, url, record)
        record = await self._probe_about(client, url, record)
        record = await enrich_record(record, self.enricher, requested=llm)
        record.pop("_raw_text", None)
        return record

    async def _scrape_all(
        self,
        urls: List[str],
        industry: Optional[str],
        llm: bool,
    ) -> List[Optional[Dict[str, Any]]]:
        """Bounded worker pool over the URL list; results keep input order."""
        results: List[Optional[Dict[str, Any]]] = [None] * len(urls)
        queue: asyncio.Queue[int] = asyncio.Queue()
        for index in range(len(urls)):
            queue.put_nowait(index)

        async with self._client() as client:

            async def _worker() -> None:
                while True:
                    try:
                        index = queue.get_nowait()
                    except asyncio.QueueEmpty:
                        return
                    try:
                        results[index] = await self._scrape_one(client, urls[index], industry, llm)
                    except Exception as e:
                        logger.exception(
                            "Scrape failed: %s",
                            e,
                            extra={"url": urls[index], "step": "scrape"},
                        )
                        results[index] = None

            workers = [asyncio.create_task(_worker()) for _ in range(min(self.max_concurrency, len(urls)))]
            await asyncio.gather(*workers)

        return results

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, companies: List[Dict[str, Any]], replace: bool) -> Tuple[int, int, int]:
        """
        Insert each record unless its canonical URL is already stored.

        With `replace`, existing rows are deleted and the new row inserted in
        the same commit, reusing the old primary key so inquiries stay linked.
        """
        if self.db is None:
            raise RuntimeError("WebsiteScraper needs a database session to persist results")

        stored = replaced = skipped = 0
        for record in companies:
            row = company_row(record)
            url = row.get("website_url")
            try:
                existing = self.db.query(Company).filter(Company.website_url == url).all()
                if existing and not replace:
                    skipped += 1
                    logger.info("Company website already exists", extra={"url": url, "step": "persist"})
                    continue

                if existing:
                    row["id"] = existing[0].id
                    for company in existing:
                        self.db.delete(company)
                self.db.add(Company(**row))
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.warning("Error storing company: %s", e, extra={"url": url, "step": "persist"})
                continue

            if existing:
                replaced += 1
            else:
                stored += 1
        return stored, replaced, skipped

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def scrape(
        self,
        urls: List[str],
        industry: Optional[str] = None,
        *,
        confirm: bool = True,
        replace: bool = False,
        llm: bool = False,
    ) -> Dict[str, Any]:
        valid: List[str] = []
        invalid: List[str] = []
        for raw in urls or []:
            canonical = normalize_url(raw)
            if canonical is None:
                invalid.append(raw)
            elif canonical not in valid:
                valid.append(canonical)

        if not valid:
            raise ValueError("No valid URLs provided")

        logger.info(
            "Scraping %d website(s)",
            len(valid),
            extra={"step": "scrape", "url": valid[0] if len(valid) == 1 else None},
        )
        results = await self._scrape_all(valid, industry, llm)
        companies = [r for r in results if r]
        failed = [url for url, r in zip(valid, results) if not r]

        stored = replaced = skipped = 0
        if confirm and companies:
            stored, replaced, skipped = self._persist(companies, replace)

        return {
            "companies": companies,
            "count": len(companies),
            "stored_count": stored,
            "replaced_count": replaced,
            "skipped_count": skipped,
            "failed_urls": failed,
            "invalid_urls": invalid,
        }
