import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..schemas.companies import (
    SourceOut,
    SourceSearchRequest,
    SourceSearchResponse,
    SourceTestOut,
)
from ..services.connectors import ConnectorRunner, get_connector_runner
from ..services.identity import CurrentUser
from .auth import require_user

router = APIRouter(tags=["sources"])
logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


@router.get("/sources", response_model=List[SourceOut])
def list_sources(runner: ConnectorRunner = Depends(get_connector_runner)):
    return runner.available_sources()


@router.post("/sources/{name}/test", response_model=SourceTestOut)
async def check_source(name: str, runner: ConnectorRunner = Depends(get_connector_runner)):
    try:
        success = await runner.test_source(name)
    except LookupError:
        raise HTTPException(status_code=404, detail=f"Unknown data source: {name}")
    return {"name": name, "success": success}


@router.post("/sources/search", response_model=SourceSearchResponse)
async def search_sources(
    payload: SourceSearchRequest,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
    runner: ConnectorRunner = Depends(get_connector_runner),
):
    """Query external providers directly and store what they return."""
    if len(payload.query) < MIN_QUERY_LENGTH and not (payload.industry or payload.location):
        raise HTTPException(
            status_code=400,
            detail="Provide a query of at least 2 characters or an industry/location filter",
        )

    options = {"locationPlaceId": payload.location_place_id} if payload.location_place_id else None
    companies = await runner.search_sources(
        payload.query,
        location=payload.location,
        industry=payload.industry,
        sources=payload.data_sources,
        max_results=payload.max_results,
        options=options,
    )
    stored = runner.store_companies(db, companies)
    logger.info(
        "Direct source search stored %d of %d companies",
        stored,
        len(companies),
        extra={"user_id": user.id, "step": "search_sources"},
    )
    return {"companies": companies, "count": len(companies), "stored_count": stored}
