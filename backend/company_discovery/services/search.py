from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, and_, cast, or_
from sqlalchemy.orm import Session

from ..models.company import Company, company_to_dict
from .access import AccessFilter
from .connectors import ConnectorRunner
from .taxonomy import DEFAULT_TAXONOMY, SearchTaxonomy

logger = logging.getLogger(__name__)

# Filter values the UI sends for "no filter".
ALL_INDUSTRIES = "all"
ALL_REGIONS = ("all-regions", "all")
ALL_SIZES = "all"

DEFAULT_PAGE_SIZE = 20
EXTERNAL_MAX_RESULTS = 20
MIN_QUERY_LENGTH = 2


@dataclass
class SearchFilters:
    industry: Optional[str] = None
    location: Optional[str] = None
    company_size: Optional[str] = None
    verified: Optional[bool] = None
    data_sources: Optional[List[str]] = None
    location_place_id: Optional[str] = None

    def normalized(self) -> "SearchFilters":
        """Copy with the UI's "all" placeholders turned into None."""
        industry = (self.industry or "").strip() or None
        location = (self.location or "").strip() or None
        size = (self.company_size or "").strip() or None
        return SearchFilters(
            industry=None if industry == ALL_INDUSTRIES else industry,
            location=None if location in ALL_REGIONS else location,
            company_size=None if size == ALL_SIZES else size,
            verified=self.verified,
            data_sources=self.data_sources,
            location_place_id=self.location_place_id,
        )

    def has_criteria(self) -> bool:
        return bool(self.industry or self.location or self.company_size)


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _ilike(column, term: str):
    return column.ilike(f"%{escape_like(term)}%", escape="\\")


def _text_match(term: str):
    return or_(_ilike(Company.name, term), _ilike(Company.description, term))


def _industry_contains(tag: str):
    # JSON list stored as text; match the quoted element
    return cast(Company.industry, String).ilike(f'%"{escape_like(tag)}"%', escape="\\")


def _region_match(terms: Tuple[str, ...]):
    return or_(*[or_(_ilike(Company.location_country, t), _ilike(Company.location_city, t)) for t in terms])


class CompanySearchEngine:
    """
    Search over the local `companies` table with a one-shot external fallback.

    Flow for `search()`:
    - build predicates (category/region branch or generic branch)
    - page in SQL ordered verified-first, newest-first
    - on a thin first page, pull from external sources once and re-query
    - redact contact fields for the caller
    """

    def __init__(
        self,
        db: Session,
        taxonomy: SearchTaxonomy = DEFAULT_TAXONOMY,
        runner: ConnectorRunner | None = None,
        access: AccessFilter | None = None,
    ) -> None:
        self.db = db
        self.taxonomy = taxonomy
        self.runner = runner
        self.access = access or AccessFilter(None)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def build_conditions(self, query: str, filters: SearchFilters) -> List[Any]:
        query = (query or "").strip()
        category_key = self.taxonomy.detect_category(query) if query else None
        if category_key is None and filters.industry and self.taxonomy.category(filters.industry):
            category_key = filters.industry
        category = self.taxonomy.category(category_key)

        region_groups: List[Tuple[str, ...]] = []
        detected_region = self.taxonomy.detect_region(query) if query else None
        if detected_region:
            region_groups.append(detected_region)
        if filters.location:
            filter_region = self.taxonomy.region_terms(filters.location)
            if filter_region not in region_groups:
                region_groups.append(filter_region)

        conditions: List[Any] = []
        if category or region_groups:
            if category:
                conditions.append(
                    or_(
                        *[_text_match(t) for t in category.match_terms],
                        *[_industry_contains(i) for i in category.industries],
                    )
                )
            elif filters.industry:
                conditions.append(self._industry_group(filters.industry))
            for terms in region_groups:
                conditions.append(_region_match(terms))
        else:
            if query:
                conditions.append(_text_match(query))
            if filters.industry:
                conditions.append(self._industry_group(filters.industry))

        if filters.company_size:
            conditions.append(Company.company_size == filters.company_size)
        if filters.verified is not None:
            conditions.append(Company.verified == filters.verified)
        return conditions

    def _industry_group(self, industry: str):
        terms = self.taxonomy.industry_terms(industry)
        return or_(*[_text_match(t) for t in terms], *[_industry_contains(t) for t in terms])

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query_local(
        self,
        query: str,
        filters: SearchFilters,
        page: int,
        page_size: int,
    ) -> Tuple[List[Company], int]:
        q = self.db.query(Company)
        conditions = self.build_conditions(query, filters)
        if conditions:
            q = q.filter(and_(*conditions))
        count = q.count()
        rows = (
            q.order_by(Company.verified.desc(), Company.created_at.desc())
            .offset(page * page_size)
            .limit(page_size)
            .all()
        )
        return rows, count

    async def _fetch_external(self, query: str, filters: SearchFilters) -> int:
        if self.runner is None:
            return 0
        sources = filters.data_sources if filters.data_sources is not None else self.runner.default_source_names()
        options = {"locationPlaceId": filters.location_place_id} if filters.location_place_id else None
        try:
            records = await self.runner.search_sources(
                query,
                location=filters.location,
                industry=filters.industry,
                sources=sources,
                max_results=EXTERNAL_MAX_RESULTS,
                options=options,
            )
            stored = self.runner.store_companies(self.db, records)
        except Exception as e:
            logger.exception("External search failed: %s", e, extra={"step": "search_fallback"})
            return 0
        logger.info(
            "External search stored %d of %d companies",
            stored,
            len(records),
            extra={"step": "search_fallback"},
        )
        return stored

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        page: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        query = (query or "").strip()
        filters = (filters or SearchFilters()).normalized()
        page = max(0, page)
        page_size = max(1, page_size)

        rows, count = self.query_local(query, filters, page, page_size)

        wants_more = len(query) >= MIN_QUERY_LENGTH or filters.has_criteria()
        if len(rows) < page_size and page == 0 and wants_more:
            await self._fetch_external(query, filters)
            rows, count = self.query_local(query, filters, page, page_size)

        companies = self.access.apply([company_to_dict(c) for c in rows], user_id)
        return {
            "companies": companies,
            "count": count,
            "has_more": count > (page + 1) * page_size,
        }
