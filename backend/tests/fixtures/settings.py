from company_discovery.core.config import Settings


def make_settings(**overrides) -> Settings:
    """Settings with every external credential off unless overridden."""
    values = dict(
        REDIS_URL=None,
        SUPABASE_URL=None,
        GOOGLE_PLACES_API_KEY=None,
        OPENCORPORATES_API_TOKEN=None,
        COMPANIES_HOUSE_API_KEY=None,
        FIRECRAWL_API_KEY=None,
        OPENAI_API_KEY=None,
        OPENROUTER_API_KEY=None,
        RESEND_API_KEY=None,
        ENABLE_SYNTHETIC_SOURCES=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)
