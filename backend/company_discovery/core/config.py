from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    API_PREFIX: str = "/api"

    # database & redis
    DATABASE_URL: str = "sqlite:///./company_discovery.db"
    # Optional: enables the provider response cache and the notification queue
    REDIS_URL: str | None = None

    # auth provider (bearer token -> user identity)
    SUPABASE_URL: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    AUTH_TIMEOUT_SECONDS: int = 10

    # external company sources
    GOOGLE_PLACES_API_KEY: str | None = None
    OPENCORPORATES_API_TOKEN: str | None = None
    OPENCORPORATES_BASE_URL: str = "https://api.opencorporates.com/v0.4"
    COMPANIES_HOUSE_API_KEY: str | None = None
    COMPANIES_HOUSE_BASE_URL: str = "https://api.company-information.service.gov.uk"
    SOURCE_TIMEOUT_SECONDS: int = 15
    SOURCE_CACHE_TTL_SECONDS: int = 60 * 60 * 24
    # Crunchbase / Yellow Pages only produce placeholder records
    ENABLE_SYNTHETIC_SOURCES: bool = False

    # website scraping
    FIRECRAWL_API_KEY: str | None = None
    FIRECRAWL_BASE_URL: str = "https://api.firecrawl.dev/v1"
    SCRAPE_TIMEOUT_SECONDS: int = 15
    PROBE_TIMEOUT_SECONDS: int = 10
    SCRAPE_MAX_CONCURRENCY: int = 3
    SCRAPER_USER_AGENT: str = "Mozilla/5.0 (compatible; CompanyDiscoveryBot/1.0; +partner-search)"

    # llm
    OPENROUTER_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    LLM_MODEL: str = "gpt-4o-mini"
    # Hard cap on concurrent LLM calls per process
    LLM_MAX_CONCURRENCY: int = 4
    LLM_TIMEOUT_SECONDS: int = 20

    # notifications
    RESEND_API_KEY: str | None = None
    INQUIRY_FROM_EMAIL: str = "Partnership Inquiry <partnerships@resend.dev>"

    # auth / security
    FRONTEND_ORIGIN: str | None = None
    # Explicit debug-only switch for wide-open CORS in non-prod envs
    CORS_ALLOW_ALL_ORIGINS: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
