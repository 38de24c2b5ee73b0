"""
In-process Enricher that records what it was asked and returns a canned payload.
"""
from company_discovery.services.enrichment import Enricher


class FakeEnricher(Enricher):
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    async def enrich(self, text, hints):
        self.calls.append((text, hints))
        if self.error:
            raise self.error
        return self.payload
