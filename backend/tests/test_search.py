"""
Tests for search.py

Runs against in-memory SQLite; external sources are stub connectors behind
the real ConnectorRunner.
"""
import asyncio
from datetime import datetime

from company_discovery.services.connectors import ConnectorRunner
from company_discovery.services.search import CompanySearchEngine, SearchFilters, escape_like
from company_discovery.services.taxonomy import CategoryConfig, SearchTaxonomy
from tests.fixtures.connectors import StubConnector
from tests.fixtures.settings import make_settings


def stub_runner(records=None):
    connector = StubConnector(records=records)
    runner = ConnectorRunner(make_settings(), connectors={"stub": connector}, synthetic_connectors={})
    return runner, connector


def names(result):
    return [c["name"] for c in result["companies"]]


def run_search(engine, query, filters=None, **kwargs):
    return asyncio.run(engine.search(query, filters, **kwargs))


class TestCategorySearch:
    """Category and region branch."""

    def test_finance_query_does_not_leak_fashion(self, db_session, add_company):
        """Finance terms only surface finance records, and vice versa."""
        add_company(
            "Harbor Capital Partners",
            description="Investment banking for mid-market firms.",
            industry=["finance"],
        )
        add_company(
            "Threadline Studio",
            description="Sportswear and footwear design for independent labels.",
            industry=["fashion"],
        )
        engine = CompanySearchEngine(db_session)

        assert names(run_search(engine, "finance")) == ["Harbor Capital Partners"]
        assert names(run_search(engine, "fashion")) == ["Threadline Studio"]
        assert names(run_search(engine, "金融")) == ["Harbor Capital Partners"]

    def test_industry_tag_alone_matches_category(self, db_session, add_company):
        """Array containment on `industry` matches even with no term in the text."""
        add_company("Quiet Holdings", description="A holding company.", industry=["fintech"])
        engine = CompanySearchEngine(db_session)

        assert names(run_search(engine, "finance")) == ["Quiet Holdings"]

    def test_category_and_region_are_both_required(self, db_session, add_company):
        """Category group AND region group."""
        add_company(
            "Osaka Machining",
            description="Precision factory.",
            industry=["manufacturing"],
            location_country="Japan",
            location_city="Osaka",
        )
        add_company(
            "Detroit Stamping",
            description="Metal stamping factory.",
            industry=["manufacturing"],
            location_country="United States",
            location_city="Detroit",
        )
        add_company(
            "Tokyo Cloud",
            description="Cloud hosting.",
            industry=["technology"],
            location_country="Japan",
            location_city="Tokyo",
        )
        engine = CompanySearchEngine(db_session)

        assert names(run_search(engine, "manufacturing japan")) == ["Osaka Machining"]
        assert names(run_search(engine, "製造業 日本")) == ["Osaka Machining"]
        assert names(run_search(engine, "manufacturing", SearchFilters(location="japan"))) == ["Osaka Machining"]

    def test_region_only(self, db_session, add_company):
        """A region with no category matches on location alone."""
        add_company("Tokyo Cloud", location_country="Japan", location_city="Tokyo")
        add_company("Berlin Bakery", location_country="Germany", location_city="Berlin")
        engine = CompanySearchEngine(db_session)

        assert names(run_search(engine, "", SearchFilters(location="日本"))) == ["Tokyo Cloud"]
        assert names(run_search(engine, "", SearchFilters(location="Berlin"))) == ["Berlin Bakery"]

    def test_industry_filter_supplies_category(self, db_session, add_company):
        """An industry filter that names a category behaves like the category query."""
        add_company("Harbor Capital Partners", description="Private capital.", industry=["finance"])
        add_company("Threadline Studio", description="Apparel.", industry=["fashion"])
        engine = CompanySearchEngine(db_session)

        assert names(run_search(engine, "", SearchFilters(industry="finance"))) == ["Harbor Capital Partners"]


class TestGenericSearch:
    """Free text and synonym filters."""

    def test_text_matches_name_or_description(self, db_session, add_company):
        """Case-insensitive substring on name or description."""
        add_company("Acme Widgets", description="Widget maker.")
        add_company("Blue Gadgets", description="We sell WIDGETS too.")
        add_company("Other Co", description="Nothing relevant.")
        engine = CompanySearchEngine(db_session)

        assert sorted(names(run_search(engine, "widgets"))) == ["Acme Widgets", "Blue Gadgets"]

    def test_unknown_industry_filter(self, db_session, add_company):
        """Industry values outside the synonym table match themselves."""
        add_company("Bright Academy", industry=["education"])
        add_company("Acme Widgets", industry=["manufacturing"])
        engine = CompanySearchEngine(db_session)

        assert names(run_search(engine, "", SearchFilters(industry="education"))) == ["Bright Academy"]

    def test_size_and_verified_filters(self, db_session, add_company):
        """company_size and verified are exact-match predicates."""
        add_company("Big Verified", company_size="large", verified=True)
        add_company("Big Unverified", company_size="large", verified=False)
        add_company("Small Verified", company_size="small", verified=True)
        engine = CompanySearchEngine(db_session)

        result = run_search(engine, "", SearchFilters(company_size="large", verified=True))
        assert names(result) == ["Big Verified"]

    def test_all_placeholders_are_ignored(self, db_session, add_company):
        """"all" / "all-regions" mean no filter."""
        add_company("Acme Widgets")
        add_company("Blue Gadgets")
        engine = CompanySearchEngine(db_session)

        filters = SearchFilters(industry="all", location="all-regions", company_size="all")
        assert filters.normalized().has_criteria() is False
        assert run_search(engine, "", filters)["count"] == 2

    def test_like_wildcards_are_literal(self, db_session, add_company):
        """% and _ in the query do not act as wildcards."""
        add_company("100% Organic Farms")
        add_company("1000 Acres Ltd")
        engine = CompanySearchEngine(db_session)

        assert names(run_search(engine, "100%")) == ["100% Organic Farms"]
        assert escape_like("a_b%c") == "a\\_b\\%c"


class TestPagination:
    """Ordering, paging and has_more."""

    def test_verified_first_then_newest(self, db_session, add_company):
        """Verified rows lead; within a tier newer rows come first."""
        for i in range(5):
            add_company(
                f"Widget Co {i}",
                verified=(i == 0),
                created_at=datetime(2024, 1, i + 1),
            )
        engine = CompanySearchEngine(db_session)

        first = run_search(engine, "widget", page=0, page_size=2)
        assert names(first) == ["Widget Co 0", "Widget Co 4"]
        assert first["count"] == 5
        assert first["has_more"] is True

        last = run_search(engine, "widget", page=2, page_size=2)
        assert names(last) == ["Widget Co 1"]
        assert last["has_more"] is False


class TestExternalFallback:
    """At most one external fetch per search."""

    def test_thin_first_page_fetches_and_requeries(self, db_session):
        """Stored external results are returned by the second local query."""
        runner, connector = stub_runner(
            [{"name": "Remote Widgets Ltd", "description": "Widgets by post.", "data_source": "opencorporates"}]
        )
        engine = CompanySearchEngine(db_session, runner=runner)

        result = run_search(
            engine,
            "widgets",
            SearchFilters(location_place_id="ChIJ123", data_sources=["stub"]),
        )

        assert names(result) == ["Remote Widgets Ltd"]
        assert result["count"] == 1
        assert len(connector.calls) == 1
        assert connector.calls[0]["options"] == {"locationPlaceId": "ChIJ123"}

    def test_fallback_runs_once_even_when_empty(self, db_session):
        """No results after the fetch is final; no second fetch."""
        runner, connector = stub_runner([])
        engine = CompanySearchEngine(db_session, runner=runner)

        result = run_search(engine, "widgets")

        assert result == {"companies": [], "count": 0, "has_more": False}
        assert len(connector.calls) == 1

    def test_no_fallback_for_trivial_query(self, db_session):
        """A one-character query with no filters stays local."""
        runner, connector = stub_runner([])
        engine = CompanySearchEngine(db_session, runner=runner)

        run_search(engine, "a")
        assert connector.calls == []

    def test_no_fallback_when_page_is_full(self, db_session, add_company):
        """A full first page does not trigger a fetch."""
        add_company("Acme Widgets")
        runner, connector = stub_runner([])
        engine = CompanySearchEngine(db_session, runner=runner)

        run_search(engine, "widgets", page_size=1)
        assert connector.calls == []

    def test_no_fallback_after_first_page(self, db_session):
        """Later pages never fetch."""
        runner, connector = stub_runner([])
        engine = CompanySearchEngine(db_session, runner=runner)

        run_search(engine, "widgets", page=1)
        assert connector.calls == []

    def test_filters_alone_trigger_fallback(self, db_session):
        """A filter with no query text is enough to fetch."""
        runner, connector = stub_runner([])
        engine = CompanySearchEngine(db_session, runner=runner)

        run_search(engine, "", SearchFilters(industry="manufacturing"))
        assert connector.calls[0]["industry"] == "manufacturing"

    def test_unconfigured_source_yields_empty_result(self, db_session):
        """Google Places without a key: empty result, no error."""
        engine = CompanySearchEngine(db_session, runner=ConnectorRunner(make_settings()))

        result = run_search(engine, "manufacturing", SearchFilters(data_sources=["google_places"]))

        assert result == {"companies": [], "count": 0, "has_more": False}


class TestTaxonomyInjection:
    """Smaller tables can replace the defaults."""

    def test_custom_taxonomy(self, db_session, add_company):
        """Category detection and match terms come from the injected tables."""
        add_company("Gizmo Works", description="Gizmos.")
        add_company("Widget Co", description="Widgets.")
        taxonomy = SearchTaxonomy(
            categories={"widgets": CategoryConfig("Widgets", ("widget",), ("gizmo",), ("widgets",))},
            regions={},
            industry_synonyms={},
        )
        engine = CompanySearchEngine(db_session, taxonomy=taxonomy)

        assert names(run_search(engine, "widget")) == ["Gizmo Works"]

    def test_default_region_detection(self):
        """Longest region key wins; bare country terms expand through their own key."""
        from company_discovery.services.taxonomy import DEFAULT_TAXONOMY

        assert DEFAULT_TAXONOMY.detect_region("partners in south america")[0] == "south america"
        assert "osaka" in DEFAULT_TAXONOMY.detect_region("suppliers in japan")
        assert DEFAULT_TAXONOMY.detect_region("suppliers in berlin") == ("berlin",)
        assert DEFAULT_TAXONOMY.detect_region("widgets") is None


class TestRedaction:
    """Search results pass through the access filter."""

    def test_anonymous_caller_sees_no_contacts(self, db_session, add_company):
        """Contact fields are nulled and flagged for anonymous callers."""
        add_company("Acme Widgets", contact_email="sales@acme.example", phone="+1-415-555-0100")
        engine = CompanySearchEngine(db_session)

        company = run_search(engine, "acme")["companies"][0]

        assert company["contact_email"] is None
        assert company["phone"] is None
        assert company["_upgrade_required"] is True
