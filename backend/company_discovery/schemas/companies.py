# backend/company_discovery/schemas/companies.py
from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..services.search import SearchFilters

MAX_QUERY_LEN = 200
MAX_URLS = 20
MAX_MESSAGE_LEN = 4000


class _CamelModel(BaseModel):
    # UI sends camelCase; snake_case is accepted too
    model_config = ConfigDict(populate_by_name=True)


class SearchFiltersIn(_CamelModel):
    industry: str | None = None
    location: str | None = None
    company_size: str | None = Field(default=None, alias="companySize")
    verified: bool | None = None
    data_sources: List[str] | None = Field(default=None, alias="dataSources")
    location_place_id: str | None = Field(default=None, alias="locationPlaceId")

    def to_filters(self) -> SearchFilters:
        return SearchFilters(
            industry=self.industry,
            location=self.location,
            company_size=self.company_size,
            verified=self.verified,
            data_sources=self.data_sources,
            location_place_id=self.location_place_id,
        )


class CompanySearchRequest(_CamelModel):
    query: str = ""
    filters: SearchFiltersIn = Field(default_factory=SearchFiltersIn)
    page: int = Field(default=0, ge=0)
    page_size: int = Field(default=20, ge=1, le=100, alias="pageSize")

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) > MAX_QUERY_LEN:
            raise ValueError(f"query must be at most {MAX_QUERY_LEN} characters")
        return v


class CompanyOut(_CamelModel):
    id: str | None = None
    name: str
    description: str | None = None
    website_url: str | None = None
    contact_email: str | None = None
    phone: str | None = None
    location_country: str | None = None
    location_city: str | None = None
    industry: List[str] = Field(default_factory=list)
    specialties: List[str] = Field(default_factory=list)
    company_size: str | None = None
    established_year: int | None = None
    data_source: str | None = None
    verified: bool = False
    created_at: datetime | None = None
    contact_restricted: bool | None = Field(default=None, alias="_contact_restricted")
    upgrade_required: bool | None = Field(default=None, alias="_upgrade_required")
    access_error: bool | None = Field(default=None, alias="_access_error")


class CompanySearchResponse(_CamelModel):
    companies: List[CompanyOut]
    count: int
    has_more: bool = Field(alias="hasMore")


class ScrapeRequest(_CamelModel):
    urls: List[str]
    industry: str | None = None
    confirm: bool = True
    replace: bool = False
    llm: bool = False

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, v: List[str]) -> List[str]:
        if len(v) > MAX_URLS:
            raise ValueError(f"at most {MAX_URLS} URLs per request")
        return v


class ScrapeResponse(_CamelModel):
    companies: List[CompanyOut]
    count: int
    stored_count: int = Field(alias="storedCount")
    replaced_count: int = Field(alias="replacedCount")
    skipped_count: int = Field(alias="skippedCount")
    failed_urls: List[str] = Field(default_factory=list, alias="failedUrls")
    invalid_urls: List[str] = Field(default_factory=list, alias="invalidUrls")


class SourceOut(BaseModel):
    name: str
    priority: int
    enabled: bool
    synthetic: bool


class SourceTestOut(BaseModel):
    name: str
    success: bool


class SourceSearchRequest(_CamelModel):
    query: str = ""
    location: str | None = None
    industry: str | None = None
    data_sources: List[str] | None = Field(default=None, alias="dataSources")
    max_results: int = Field(default=20, ge=1, le=100, alias="maxResults")
    location_place_id: str | None = Field(default=None, alias="locationPlaceId")

    @field_validator("query", "location", "industry", mode="before")
    @classmethod
    def _strip(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class SourceSearchResponse(_CamelModel):
    companies: List[CompanyOut]
    count: int
    stored_count: int = Field(alias="storedCount")


class InquiryCreate(_CamelModel):
    company_id: UUID = Field(alias="companyId")
    message: str

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message must not be empty")
        if len(v) > MAX_MESSAGE_LEN:
            raise ValueError(f"message is too long; maximum length is {MAX_MESSAGE_LEN} characters")
        return v


class InquiryCompanyOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    website_url: str | None = None


class InquiryOut(_CamelModel):
    id: str
    company_id: str
    message: str
    status: str
    created_at: datetime | None = None
    company: InquiryCompanyOut | None = None
