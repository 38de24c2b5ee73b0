import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..schemas.companies import (
    CompanySearchRequest,
    CompanySearchResponse,
    ScrapeRequest,
    ScrapeResponse,
)
from ..services.access import AccessFilter, DatabaseEntitlementChecker
from ..services.connectors import ConnectorRunner, get_connector_runner
from ..services.identity import CurrentUser
from ..services.scraper import WebsiteScraper
from ..services.search import CompanySearchEngine
from .auth import get_optional_user, require_user

router = APIRouter(tags=["companies"])
logger = logging.getLogger(__name__)


def get_search_engine(
    db: Session = Depends(get_db),
    runner: ConnectorRunner = Depends(get_connector_runner),
) -> CompanySearchEngine:
    return CompanySearchEngine(db, runner=runner, access=AccessFilter(DatabaseEntitlementChecker(db)))


def get_scraper(db: Session = Depends(get_db)) -> WebsiteScraper:
    return WebsiteScraper(db=db)


@router.post("/companies/search", response_model=CompanySearchResponse)
async def search_companies(
    payload: CompanySearchRequest,
    user: CurrentUser | None = Depends(get_optional_user),
    engine: CompanySearchEngine = Depends(get_search_engine),
):
    logger.info(
        "Company search",
        extra={"user_id": user.id if user else None, "step": "search"},
    )
    return await engine.search(
        payload.query,
        payload.filters.to_filters(),
        page=payload.page,
        page_size=payload.page_size,
        user_id=user.id if user else None,
    )


@router.post("/companies/scrape", response_model=ScrapeResponse)
async def scrape_companies(
    payload: ScrapeRequest,
    user: CurrentUser = Depends(require_user),
    scraper: WebsiteScraper = Depends(get_scraper),
):
    logger.info(
        "Scrape requested for %d URL(s)",
        len(payload.urls),
        extra={"user_id": user.id, "step": "scrape"},
    )
    try:
        return await scraper.scrape(
            payload.urls,
            payload.industry,
            confirm=payload.confirm,
            replace=payload.replace,
            llm=payload.llm,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
