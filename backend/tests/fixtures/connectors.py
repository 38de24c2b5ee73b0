from company_discovery.services.connectors.base import BaseConnector

from tests.fixtures.settings import make_settings


class StubConnector(BaseConnector):
    """In-memory source: returns `records` (or raises `error`) and records each call."""

    def __init__(self, name="stub", records=None, error=None):
        super().__init__(make_settings())
        self.name = name
        self.records = records or []
        self.error = error
        self.calls = []

    async def search(self, query, location=None, industry=None, max_results=10, options=None):
        self.calls.append(
            {
                "query": query,
                "location": location,
                "industry": industry,
                "max_results": max_results,
                "options": options,
            }
        )
        if self.error:
            raise self.error
        return self.records[:max_results]

    async def test_connection(self):
        return True


def make_records(source, count):
    return [
        {"name": f"{source} company {i}", "industry": ["technology"], "data_source": source, "verified": False}
        for i in range(count)
    ]
