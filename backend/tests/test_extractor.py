"""
Tests for extractor.py

Covers structured-data precedence, heuristic fallbacks, industry/size
inference and the garbled-text detector.
"""
import pytest

from company_discovery.services.extractor import (
    SENTINEL_DESCRIPTION,
    contains_term,
    extract_company,
    extract_specialties,
    infer_company_size,
    infer_industry,
    is_garbled,
    size_from_employee_count,
    strip_title_suffix,
)
from tests.fixtures.sample_pages import (
    BANK_PAGE,
    BARE_PAGE,
    JA_COMPANY_PAGE,
    JSONLD_MANUFACTURER_PAGE,
    MARKDOWN_PAGE,
    PLAIN_CONSULTING_PAGE,
)


class TestJsonLdExtraction:
    """Organization JSON-LD wins over meta tags and body text."""

    def test_fields_from_graph_node(self):
        """Name, description, contacts, location, size and founding year come from JSON-LD."""
        record = extract_company(JSONLD_MANUFACTURER_PAGE, "https://kansai-precision.example.jp")

        assert record["name"] == "Kansai Precision Works"
        assert record["description"].startswith("Kansai Precision Works manufactures")
        assert record["contact_email"] == "sales@kansai-precision.example.jp"
        assert record["phone"] == "+81-6-1234-5678"
        assert record["location_country"] == "Japan"
        assert record["location_city"] == "Osaka"
        assert record["company_size"] == "medium"
        assert record["established_year"] == 1987

    def test_specialties_from_meta_keywords(self):
        """Meta keywords feed the specialties list."""
        record = extract_company(JSONLD_MANUFACTURER_PAGE, "https://kansai-precision.example.jp")
        assert record["specialties"] == ["CNC machining", "precision parts", "prototyping"]

    def test_record_shape(self):
        """Scraped records are web_scraping, unverified and carry raw text for enrichment."""
        record = extract_company(JSONLD_MANUFACTURER_PAGE, "https://kansai-precision.example.jp")
        assert record["data_source"] == "web_scraping"
        assert record["verified"] is False
        assert record["website_url"] == "https://kansai-precision.example.jp"
        assert "factory" in record["_raw_text"]


class TestHeuristicExtraction:
    """Pages without structured data."""

    def test_plain_page(self):
        """Title suffix is stripped and contacts come from mailto/tel links."""
        record = extract_company(PLAIN_CONSULTING_PAGE, "https://northwind-advisory.example")

        assert record["name"] == "Northwind Advisory"
        assert record["description"].startswith("Northwind Advisory helps mid-market companies")
        assert record["contact_email"] == "hello@northwind-advisory.example"
        assert record["phone"] == "+44 20 7946 0958"
        assert record["location_country"] == "United Kingdom"
        assert record["location_city"] == "London"
        assert record["industry"] == ["consulting"]
        assert record["company_size"] == "small"
        assert record["specialties"] == ["market entry", "partner search", "regulatory advice"]

    def test_bare_page_defaults(self):
        """Nothing recognizable: default industry, placeholder description, domain-derived name."""
        record = extract_company(BARE_PAGE, "https://www.acme-widgets.example")

        assert record["industry"] == ["business_services"]
        assert record["description"] == SENTINEL_DESCRIPTION
        assert record["name"] == "Acme Widgets"
        assert record["contact_email"] is None
        assert record["phone"] is None
        assert record["company_size"] == "small"

    def test_markdown_content(self):
        """Markdown from a scraping API yields a paragraph description and inline e-mail."""
        record = extract_company(MARKDOWN_PAGE, "https://bluelantern.example")

        assert record["description"].startswith("Blue Lantern Foods is a family-run catering company")
        assert record["contact_email"] == "orders@bluelantern.example"
        assert record["industry"] == ["food_service"]

    def test_japanese_page(self):
        """Japanese title separator, JP phone format, city table and 名 employee counts."""
        record = extract_company(JA_COMPANY_PAGE, "https://sakura-logi.example.jp")

        assert record["name"] == "株式会社サクラ物流"
        assert record["description"] != SENTINEL_DESCRIPTION
        assert record["phone"] == "03-1234-5678"
        assert record["location_city"] == "Tokyo"
        assert record["location_country"] == "Japan"
        assert record["industry"] == ["logistics"]
        assert record["company_size"] == "small"

    def test_words_containing_boilerplate_terms_are_kept(self):
        """"catalog integration" is a real description, not a login prompt."""
        page = (
            "<p>Acme Instruments designs catalog integration software and analog "
            "instrumentation for process plants.</p>"
        )
        record = extract_company(page, "https://acme-instruments.example")

        assert record["description"] == (
            "Acme Instruments designs catalog integration software and analog instrumentation for process plants."
        )

    def test_page_chrome_paragraph_is_skipped(self):
        """A login prompt long enough to pass the length check still falls back to the placeholder."""
        page = "<p>Log in to your account to manage your subscription and view invoices online today.</p>"
        record = extract_company(page, "https://acme-instruments.example")

        assert record["description"] == SENTINEL_DESCRIPTION

    def test_empty_content_returns_none(self):
        """No content, no record."""
        assert extract_company("", "https://example.com") is None


class TestInferIndustry:
    """Tests for infer_industry."""

    def test_default_is_never_empty(self):
        """No recognizable keyword yields the default tag."""
        assert infer_industry("We are happy to meet you.") == ["business_services"]
        assert infer_industry("") == ["business_services"]

    def test_hint_wins(self):
        """An explicit industry hint is used as-is."""
        assert infer_industry("software company", hint="fashion") == ["fashion"]

    def test_all_hint_is_ignored(self):
        """The UI's "all" placeholder is not an industry."""
        assert infer_industry("software company", hint="all") == ["technology"]

    def test_finance_drops_retail(self):
        """A finance trigger forces finance and removes retail."""
        record = extract_company(BANK_PAGE, "https://harborsavings.example")
        assert record["industry"] == ["finance"]

    def test_retail_alone_is_kept(self):
        """Without a finance trigger retail survives."""
        assert infer_industry("Our store sells handmade gifts.") == ["retail"]

    def test_word_boundaries(self):
        """"tech" inside another word does not match."""
        assert "technology" not in infer_industry("We run a biotechnician staffing desk.")

    def test_jsonld_industry_is_slugged(self):
        """JSON-LD industry values become lowercase slugs."""
        org = {"industry": "Food Service, Catering"}
        assert infer_industry("", org=org) == ["food_service", "catering"]


class TestCompanySize:
    """Tests for size inference."""

    @pytest.mark.parametrize(
        "count,expected",
        [(5, "micro"), (30, "small"), (100, "medium"), (500, "large"), (9, "micro"), (10, "small"), (250, "large")],
    )
    def test_thresholds(self, count, expected):
        """Employee count boundaries map to the four size bands."""
        assert size_from_employee_count(count) == expected

    def test_text_patterns(self):
        """English and Japanese employee phrases are recognized."""
        assert infer_company_size("We have 1,200 employees worldwide.") == "large"
        assert infer_company_size("従業員数：8名") == "micro"
        assert infer_company_size("A startup building tools.") == "micro"
        assert infer_company_size("Nothing to see here.") == "small"

    def test_jsonld_range(self):
        """numberOfEmployees ranges use the midpoint."""
        org = {"numberOfEmployees": {"minValue": 40, "maxValue": 80}}
        assert infer_company_size("", org) == "medium"


class TestSpecialties:
    """Tests for extract_specialties."""

    def test_capped_at_five_and_deduplicated(self):
        """At most five unique specialties are kept."""
        keywords = "a1a, b2b, c3c, d4d, e5e, f6f, A1A"
        assert extract_specialties("", keywords) == ["a1a", "b2b", "c3c", "d4d", "e5e"]

    def test_html_and_boilerplate_rejected(self):
        """Fragments that look like markup or page chrome are dropped."""
        keywords = "<b>bold</b>, privacy policy, https://x.example, logistics"
        assert extract_specialties("", keywords) == ["bold", "logistics"]

    def test_words_containing_boilerplate_terms_are_kept(self):
        """Only whole boilerplate words reject a phrase."""
        text = "We offer catalog integration, analog instruments and blog infrastructure."
        assert extract_specialties(text) == ["catalog integration", "analog instruments", "blog infrastructure"]
        assert extract_specialties("", "sign up, cookies, widgets") == ["widgets"]


class TestHelpers:
    """Tests for small helpers."""

    def test_strip_title_suffix(self):
        """Generic heads are skipped in favour of the first real name."""
        assert strip_title_suffix("Acme Tools | Industrial Supplies") == "Acme Tools"
        assert strip_title_suffix("Home | Acme Tools") == "Acme Tools"
        assert strip_title_suffix("Welcome to Acme - Since 1990") == "Acme"

    def test_katakana_terms_do_not_bleed(self):
        """"タイ" (Thailand) must not match inside "タイプ"."""
        assert contains_term("新しいタイプの製品", "タイ") is False
        assert contains_term("タイの会社", "タイ") is True

    def test_is_garbled(self):
        """Replacement characters or mojibake mark a record as garbled."""
        assert is_garbled({"name": "���", "description": "x"}) is True
        assert is_garbled({"name": "Acme", "description": "CafÃ© and Ã¼ber"}) is True
        assert is_garbled({"name": "Acme", "description": "Café and über"}) is False
