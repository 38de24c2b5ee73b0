from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, wait_exponential, stop_after_attempt, retry_if_exception_type

from .base import BaseConnector, CompanyRecord, city_from_address, country_from_address
from ..caching import cached_get
from ..url_utils import normalize_url
from ...models.company import CompanySize, DataSource

logger = logging.getLogger(__name__)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"

LOCATION_BIAS_RADIUS_METERS = 50_000

# Query phrase used when the caller gives an industry but no free text.
INDUSTRY_QUERY_PHRASES = {
    "fashion": "fashion clothing apparel textile garment company",
    "technology": "technology software tech company",
    "manufacturing": "manufacturing factory production company",
    "automotive": "automotive car auto company",
    "healthcare": "healthcare medical health company",
    "finance": "finance financial fintech company",
}

PLACE_TYPE_INDUSTRY = {
    "restaurant": "food_service",
    "food": "food_service",
    "store": "retail",
    "shopping_mall": "retail",
    "clothing_store": "fashion",
    "shoe_store": "fashion",
    "jewelry_store": "fashion",
    "department_store": "retail",
    "bank": "financial_services",
    "hospital": "healthcare",
    "school": "education",
    "university": "education",
    "hotel": "hospitality",
    "gym": "fitness",
    "car_dealer": "automotive",
    "gas_station": "automotive",
    "lawyer": "legal_services",
    "real_estate_agency": "real_estate",
    "beauty_salon": "beauty_wellness",
}

FASHION_TYPE_FRAGMENTS = ("clothing", "fashion", "apparel", "textile", "garment")

GENERIC_PLACE_TYPES = {"establishment", "point_of_interest"}


def industry_from_place_types(types: List[str]) -> List[str]:
    industries: List[str] = []
    for place_type in types:
        mapped = PLACE_TYPE_INDUSTRY.get(place_type)
        if mapped and mapped not in industries:
            industries.append(mapped)
    if any(frag in t for t in types for frag in FASHION_TYPE_FRAGMENTS) and "fashion" not in industries:
        industries.append("fashion")
    return industries or ["business_services"]


def build_text_query(query: str, location: Optional[str], industry: Optional[str]) -> str:
    if query and query.strip():
        text = f"{query.strip()} company business"
    elif industry:
        text = INDUSTRY_QUERY_PHRASES.get(industry, f"{industry} company business")
    else:
        text = "company business"
    if location:
        text += f" in {location}"
    if industry:
        text += f" {industry}"
    return text


class GooglePlacesConnector(BaseConnector):
    """
    Google Places text search.

    Results are establishments, not registry entities, so records are never
    marked verified.
    """

    name = DataSource.GOOGLE_PLACES.value

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.GOOGLE_PLACES_API_KEY

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _location_bias(self, client: httpx.AsyncClient, place_id: str) -> Dict[str, Any]:
        """lat/lng + radius params for a place id; {} when it cannot be resolved."""
        try:
            data = await self._get_json_allow_404(
                client,
                DETAILS_URL,
                params={"place_id": place_id, "fields": "geometry", "key": self.api_key},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "Failed to load place details for locationPlaceId: %s",
                e,
                extra={"source": self.name},
            )
            return {}

        loc = (((data or {}).get("result") or {}).get("geometry") or {}).get("location") or {}
        if loc.get("lat") is None or loc.get("lng") is None:
            return {}
        return {"location": f"{loc['lat']},{loc['lng']}", "radius": LOCATION_BIAS_RADIUS_METERS}

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(httpx.HTTPError),
    )
    async def _text_search(self, params: Dict[str, Any], place_id: Optional[str] = None) -> Dict[str, Any]:
        cache_key = "google_places:" + hashlib.sha1(
            repr((sorted((k, v) for k, v in params.items() if k != "key"), place_id)).encode()
        ).hexdigest()
        cached = await cached_get(cache_key)
        if cached is not None:
            return cached

        request_params = dict(params)
        async with self._client() as client:
            if place_id:
                request_params.update(await self._location_bias(client, place_id))
            data = await self._get_json_allow_404(client, TEXT_SEARCH_URL, params=request_params) or {}

        if data.get("status") == "OK":
            await cached_get(cache_key, set_value=data, ttl=self.settings.SOURCE_CACHE_TTL_SECONDS)
        return data

    def _to_record(self, place: Dict[str, Any]) -> Optional[CompanyRecord]:
        name = (place.get("name") or "").strip()
        if not name:
            return None
        types = [t for t in (place.get("types") or []) if isinstance(t, str)]
        rating = place.get("rating")
        address = place.get("formatted_address")
        return {
            "name": name,
            "description": (
                f"Business found via Google Places (Rating: {rating})"
                if rating
                else "Business found via Google Places"
            ),
            "website_url": normalize_url(place.get("website")),
            "contact_email": None,
            "phone": place.get("formatted_phone_number"),
            "location_country": country_from_address(address),
            "location_city": city_from_address(address),
            "industry": industry_from_place_types(types),
            "specialties": [t for t in types if t not in GENERIC_PLACE_TYPES][:5],
            "company_size": CompanySize.SMALL.value,
            "data_source": self.name,
            "verified": False,
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
            logger.debug("GOOGLE_PLACES_API_KEY not configured; skipping.", extra={"source": self.name})
            return []

        params: Dict[str, Any] = {
            "query": build_text_query(query, location, industry),
            "key": self.api_key,
            "type": "establishment",
            "language": "en",
        }
        place_id = (options or {}).get("locationPlaceId")

        try:
            data = await self._text_search(params, place_id)
        except Exception as e:
            logger.warning("Google Places search failed: %s", e, extra={"source": self.name})
            return []

        if data.get("status") != "OK":
            logger.warning(
                "Google Places API error: %s %s",
                data.get("status"),
                data.get("error_message") or "",
                extra={"source": self.name},
            )
            return []

        records: List[CompanyRecord] = []
        for place in (data.get("results") or [])[:max_results]:
            if isinstance(place, dict):
                record = self._to_record(place)
                if record:
                    records.append(record)
        return records

    async def test_connection(self) -> bool:
        return bool(self.api_key)
