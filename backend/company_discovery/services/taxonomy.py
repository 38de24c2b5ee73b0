"""
Category / region / industry-synonym tables used by the search engine.

The tables are immutable and handed to `CompanySearchEngine` at construction
so tests (or other deployments) can substitute smaller ones.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .extractor import contains_term


@dataclass(frozen=True)
class CategoryConfig:
    label: str
    # terms that put a free-text query into this category
    search_terms: Tuple[str, ...]
    # terms matched against name/description; kept disjoint across categories
    match_terms: Tuple[str, ...]
    # tags matched against the `industry` list
    industries: Tuple[str, ...]


@dataclass(frozen=True)
class SearchTaxonomy:
    categories: Mapping[str, CategoryConfig]
    regions: Mapping[str, Tuple[str, ...]]
    industry_synonyms: Mapping[str, Tuple[str, ...]]

    def category(self, key: Optional[str]) -> Optional[CategoryConfig]:
        if not key:
            return None
        return self.categories.get(key) or self.categories.get(key.strip().lower())

    def detect_category(self, query: str) -> Optional[str]:
        """Exact key match first, then the first category with a matching search term."""
        text = (query or "").strip().lower()
        if not text:
            return None
        for key in self.categories:
            if text == key.lower():
                return key
        for key, config in self.categories.items():
            if any(contains_term(text, term) for term in config.search_terms):
                return key
        return None

    def detect_region(self, query: str) -> Optional[Tuple[str, ...]]:
        """
        Region named in the query: the longest region key found wins
        ("south america" over "america"); otherwise a single country/city term
        from any region list, expanded through its own key when it has one.
        """
        text = (query or "").strip().lower()
        if not text:
            return None

        keys = sorted(self.regions, key=len, reverse=True)
        for key in keys:
            if contains_term(text, key.lower()):
                return self.regions[key]

        for terms in self.regions.values():
            for term in terms:
                if contains_term(text, term):
                    return self.regions.get(term) or (term,)
        return None

    def region_terms(self, location: str) -> Tuple[str, ...]:
        """Location filter value -> country/city terms (the value itself if unknown)."""
        value = location.strip()
        return self.regions.get(value) or self.regions.get(value.lower()) or (value,)

    def industry_terms(self, industry: str) -> Tuple[str, ...]:
        value = industry.strip()
        return self.industry_synonyms.get(value) or self.industry_synonyms.get(value.lower()) or (value,)


def _category(label: str, search_terms, match_terms, industries) -> CategoryConfig:
    return CategoryConfig(label, tuple(search_terms), tuple(match_terms), tuple(industries))


_MEDICAL = _category(
    "医療業界",
    ("health", "medical", "clinic", "hospital", "pharmaceutical", "healthcare", "医療"),
    ("health", "medical", "clinic", "hospital", "pharmaceutical", "医療", "病院"),
    ("healthcare", "medical"),
)
_MANUFACTURING = _category(
    "製造業",
    ("manufacturing", "factory", "production", "assembly", "industrial", "製造業", "製造"),
    ("manufacturing", "manufacturer", "factory", "production", "assembly", "industrial", "製造", "工場"),
    ("manufacturing", "automotive"),
)
_TECHNOLOGY = _category(
    "技術",
    ("technology", "tech", "software", "digital", "innovation", "技術", "テクノロジー"),
    ("technology", "digital", "innovation", "information systems", "テクノロジー", "デジタル"),
    ("technology", "software"),
)
_LOGISTICS = _category(
    "物流",
    ("logistics", "shipping", "transport", "delivery", "supply chain", "warehouse", "物流"),
    ("logistics", "shipping", "transport", "delivery", "supply chain", "warehouse", "freight", "物流", "倉庫"),
    ("logistics",),
)
_TRADE = _category(
    "貿易",
    ("trade", "import", "export", "commerce", "貿易"),
    ("trade", "trading", "import", "export", "commerce", "貿易", "輸出", "輸入"),
    ("trade",),
)
_FINANCE = _category(
    "金融",
    ("finance", "financial", "banking", "investment", "fintech", "金融"),
    ("finance", "financial", "banking", "bank", "investment", "fintech", "capital", "金融", "銀行", "投資"),
    ("fintech", "finance", "financial_services"),
)
_FASHION = _category(
    "ファッション",
    ("fashion", "clothing", "apparel", "garment", "textile", "ファッション"),
    ("fashion", "clothing", "apparel", "garment", "textile", "footwear", "sportswear", "ファッション", "アパレル"),
    ("fashion", "textile"),
)
_AUTOMOTIVE = _category(
    "自動車",
    ("automotive", "automobile", "car", "vehicle", "auto", "自動車"),
    ("automotive", "automobile", "vehicle", "motor", "自動車"),
    ("automotive",),
)
_SOFTWARE = _category(
    "ソフトウェア",
    ("software", "app", "application", "development", "programming", "ソフトウェア"),
    ("software", "application", "mobile app", "programming", "saas", "ソフトウェア"),
    ("software", "technology"),
)
_RETAIL = _category(
    "小売",
    ("retail", "store", "shop", "sales", "小売"),
    ("retail", "store", "shopping", "online shop", "小売", "通販"),
    ("retail",),
)

_CATEGORIES: Dict[str, CategoryConfig] = {
    "医療": _MEDICAL,
    "製造業": _MANUFACTURING,
    "技術": _TECHNOLOGY,
    "物流": _LOGISTICS,
    "貿易": _TRADE,
    "金融": _FINANCE,
    "ファッション": _FASHION,
    "自動車": _AUTOMOTIVE,
    "medical": _MEDICAL,
    "healthcare": _MEDICAL,
    "manufacturing": _MANUFACTURING,
    "technology": _TECHNOLOGY,
    "logistics": _LOGISTICS,
    "trade": _TRADE,
    "finance": _FINANCE,
    "fashion": _FASHION,
    "automotive": _AUTOMOTIVE,
    "fintech": _FINANCE,
    "software": _SOFTWARE,
    "retail": _RETAIL,
}

_ASIA = ("asia", "japan", "china", "korea", "thailand", "singapore", "malaysia", "indonesia", "vietnam", "philippines", "india")
_EUROPE = (
    "europe", "germany", "france", "italy", "spain", "netherlands", "belgium", "switzerland",
    "austria", "sweden", "norway", "denmark", "finland", "poland", "czech", "hungary",
)
_NORTH_AMERICA = ("north america", "usa", "united states", "canada", "mexico")
_SOUTH_AMERICA = ("south america", "brazil", "argentina", "chile", "colombia", "peru", "venezuela")
_AFRICA = ("africa", "south africa", "egypt", "nigeria", "kenya", "morocco")
_OCEANIA = ("oceania", "australia", "new zealand")
_JAPAN = ("japan", "tokyo", "osaka", "kyoto", "yokohama", "nagoya", "fukuoka")
_CHINA = ("china", "beijing", "shanghai", "guangzhou", "shenzhen", "hong kong")
_USA = ("usa", "united states", "america", "california", "new york", "texas", "florida")
_THAILAND = ("thailand", "bangkok", "phuket", "chiang mai")

_REGIONS: Dict[str, Tuple[str, ...]] = {
    "アジア": _ASIA,
    "ヨーロッパ": _EUROPE,
    "北米": _NORTH_AMERICA,
    "南米": _SOUTH_AMERICA,
    "アフリカ": _AFRICA,
    "オセアニア": _OCEANIA,
    "日本": _JAPAN,
    "中国": _CHINA,
    "アメリカ": _USA,
    "タイ": _THAILAND,
    "asia": _ASIA,
    "europe": _EUROPE,
    "north america": _NORTH_AMERICA,
    "south america": _SOUTH_AMERICA,
    "africa": _AFRICA,
    "oceania": _OCEANIA,
    "japan": _JAPAN,
    "china": _CHINA,
    "usa": _USA,
    "america": _USA,
    "thailand": _THAILAND,
    "germany": ("germany", "berlin", "munich", "hamburg", "cologne"),
    "france": ("france", "paris", "lyon", "marseille", "nice"),
    "italy": ("italy", "rome", "milan", "naples", "turin"),
    "spain": ("spain", "madrid", "barcelona", "valencia", "seville"),
}

_INDUSTRY_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "医療": ("medical", "healthcare", "health"),
    "製造業": ("manufacturing", "automotive", "industrial"),
    "技術": ("technology", "software", "tech"),
    "物流": ("logistics", "transport", "shipping"),
    "貿易": ("trade", "import", "export"),
    "金融": ("fintech", "finance", "financial"),
    "ファッション": ("fashion", "textile", "apparel"),
    "自動車": ("automotive", "automobile"),
    "medical": ("medical", "healthcare", "health"),
    "manufacturing": ("manufacturing", "automotive", "industrial"),
    "technology": ("technology", "software", "tech"),
    "logistics": ("logistics", "transport", "shipping"),
    "trade": ("trade", "import", "export"),
    "finance": ("fintech", "finance", "financial"),
    "fashion": ("fashion", "textile", "apparel"),
    "automotive": ("automotive", "automobile"),
}

DEFAULT_TAXONOMY = SearchTaxonomy(
    categories=MappingProxyType(_CATEGORIES),
    regions=MappingProxyType(_REGIONS),
    industry_synonyms=MappingProxyType(_INDUSTRY_SYNONYMS),
)
