"""
Heuristic company-record extraction from a fetched page.

Input is raw HTML (or the markdown a scraping API returns) plus the page URL;
output is a dict shaped like a `companies` row, before enrichment. Structured
data (JSON-LD) always wins over meta tags, and meta tags over body-text
heuristics.
"""
from __future__ import annotations

import html as html_lib
import json
import logging
import re
import unicodedata
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import unquote

from bs4 import BeautifulSoup

from ..models.company import CompanySize, DataSource
from .url_utils import display_name_from_domain

logger = logging.getLogger(__name__)

SENTINEL_DESCRIPTION = "Company information extracted from website"
DEFAULT_INDUSTRY = "business_services"
MAX_DESCRIPTION_LEN = 500
MAX_SPECIALTIES = 5

ORG_TYPE_RE = re.compile(r"(Organization|Corporation|LocalBusiness)", re.IGNORECASE)

TITLE_SEPARATOR_RE = re.compile(r"\s+[-–—]\s+|\s*[|｜]\s*|[:：]\s+")

GENERIC_NAMES = {
    "home",
    "homepage",
    "home page",
    "top",
    "top page",
    "index",
    "welcome",
    "untitled",
    "default",
    "official site",
    "official website",
    "ホーム",
    "トップ",
    "トップページ",
    "ホームページ",
    "公式サイト",
    "公式ホームページ",
    "ようこそ",
}

BOILERPLATE_RE = re.compile(
    r"\b(?:cookies?|privacy|copyright|all rights reserved|terms of (?:use|service)|"
    r"official (?:site|website|web site)|javascript|skip to (?:main )?content|"
    r"click here|sign ?up|log ?in|subscribe)\b|©|"
    r"クッキー|プライバシー|個人情報|著作権|無断転載|利用規約|公式サイト|公式ホームページ|"
    r"ホームページへようこそ|こちらをクリック",
    re.IGNORECASE,
)

HTMLISH_RE = re.compile(r"<|>|\{|\}|=|&[a-z]+;|https?://|www\.", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]*>")
CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
WS_RE = re.compile(r"\s+")

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".bmp", ".ico")

JP_PHONE_RE = re.compile(r"(?<!\d)0\d{1,4}-\d{1,4}-\d{3,4}(?!\d)")
INTL_PHONE_RES = (
    re.compile(r"\+\d[\d\s().\-]{8,}\d"),
    re.compile(r"\(\d{2,4}\)\s?\d[\d\s.\-]{5,}\d"),
    re.compile(r"(?<!\d)\d{3}[.\-]\d{3}[.\-]\d{4}(?!\d)"),
)

LOCATION_CONTEXT_RE = re.compile(
    r"address|location|headquarter(?:s|ed)?|based in|located in|所在地|本社|住所",
    re.IGNORECASE,
)
LOCATION_CONTEXT_WINDOW = 160
EN_CITY_RE = re.compile(
    r"(?:based|located|headquartered)\s+in\s+([A-Z][A-Za-z.'\-]+(?:\s+[A-Z][A-Za-z.'\-]+){0,2})"
)
JA_CITY_RE = re.compile(r"(?:都|道|府|県)?\s*([一-龥ぁ-んァ-ヶ]{1,5}[市区町村])")

# (canonical name, ISO code, aliases matched in page text)
COUNTRIES: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("United States", "US", ("united states", "usa", "u.s.a.", "アメリカ", "米国")),
    ("United Kingdom", "GB", ("united kingdom", "uk", "england", "great britain", "イギリス", "英国")),
    ("Japan", "JP", ("japan", "日本")),
    ("Germany", "DE", ("germany", "ドイツ")),
    ("France", "FR", ("france", "フランス")),
    ("Italy", "IT", ("italy", "イタリア")),
    ("Spain", "ES", ("spain", "スペイン")),
    ("Netherlands", "NL", ("netherlands", "オランダ")),
    ("Switzerland", "CH", ("switzerland", "スイス")),
    ("Sweden", "SE", ("sweden", "スウェーデン")),
    ("Canada", "CA", ("canada", "カナダ")),
    ("Mexico", "MX", ("mexico", "メキシコ")),
    ("Brazil", "BR", ("brazil", "ブラジル")),
    ("Australia", "AU", ("australia", "オーストラリア")),
    ("New Zealand", "NZ", ("new zealand", "ニュージーランド")),
    ("Singapore", "SG", ("singapore", "シンガポール")),
    ("Thailand", "TH", ("thailand", "タイ王国", "タイ")),
    ("China", "CN", ("china", "中国")),
    ("Hong Kong", "HK", ("hong kong", "香港")),
    ("Taiwan", "TW", ("taiwan", "台湾")),
    ("South Korea", "KR", ("south korea", "korea", "韓国")),
    ("India", "IN", ("india", "インド")),
    ("Vietnam", "VN", ("vietnam", "viet nam", "ベトナム")),
    ("Indonesia", "ID", ("indonesia", "インドネシア")),
    ("Malaysia", "MY", ("malaysia", "マレーシア")),
    ("Philippines", "PH", ("philippines", "フィリピン")),
)

# (city, country, aliases)
CITIES: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("Tokyo", "Japan", ("tokyo", "東京")),
    ("Osaka", "Japan", ("osaka", "大阪")),
    ("Kyoto", "Japan", ("kyoto", "京都")),
    ("Yokohama", "Japan", ("yokohama", "横浜")),
    ("Nagoya", "Japan", ("nagoya", "名古屋")),
    ("Fukuoka", "Japan", ("fukuoka", "福岡")),
    ("Sapporo", "Japan", ("sapporo", "札幌")),
    ("Kobe", "Japan", ("kobe", "神戸")),
    ("Bangkok", "Thailand", ("bangkok", "バンコク")),
    ("London", "United Kingdom", ("london", "ロンドン")),
    ("Manchester", "United Kingdom", ("manchester",)),
    ("Berlin", "Germany", ("berlin", "ベルリン")),
    ("Munich", "Germany", ("munich", "münchen", "ミュンヘン")),
    ("Hamburg", "Germany", ("hamburg",)),
    ("Paris", "France", ("paris", "パリ")),
    ("Lyon", "France", ("lyon",)),
    ("Milan", "Italy", ("milan", "ミラノ")),
    ("Rome", "Italy", ("rome",)),
    ("Madrid", "Spain", ("madrid",)),
    ("Barcelona", "Spain", ("barcelona",)),
    ("Amsterdam", "Netherlands", ("amsterdam",)),
    ("Zurich", "Switzerland", ("zurich", "zürich")),
    ("New York", "United States", ("new york", "ニューヨーク")),
    ("San Francisco", "United States", ("san francisco", "サンフランシスコ")),
    ("Los Angeles", "United States", ("los angeles", "ロサンゼルス")),
    ("Chicago", "United States", ("chicago",)),
    ("Seattle", "United States", ("seattle",)),
    ("Boston", "United States", ("boston",)),
    ("Austin", "United States", ("austin",)),
    ("Toronto", "Canada", ("toronto",)),
    ("Vancouver", "Canada", ("vancouver",)),
    ("Sydney", "Australia", ("sydney", "シドニー")),
    ("Melbourne", "Australia", ("melbourne",)),
    ("Shanghai", "China", ("shanghai", "上海")),
    ("Beijing", "China", ("beijing", "北京")),
    ("Shenzhen", "China", ("shenzhen", "深圳")),
    ("Seoul", "South Korea", ("seoul", "ソウル")),
    ("Taipei", "Taiwan", ("taipei", "台北")),
    ("Kuala Lumpur", "Malaysia", ("kuala lumpur",)),
    ("Jakarta", "Indonesia", ("jakarta",)),
    ("Ho Chi Minh City", "Vietnam", ("ho chi minh", "ホーチミン")),
    ("Hanoi", "Vietnam", ("hanoi", "ハノイ")),
    ("Manila", "Philippines", ("manila",)),
    ("Mumbai", "India", ("mumbai",)),
    ("Bangalore", "India", ("bangalore", "bengaluru")),
)

INDUSTRY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "technology": (
        "software", "technology", "tech", "digital", "artificial intelligence",
        "machine learning", "blockchain", "cloud", "saas",
        "ソフトウェア", "システム開発", "テクノロジー", "デジタル", "クラウド",
    ),
    "manufacturing": (
        "manufacturing", "manufacturer", "production", "factory", "industrial", "machinery",
        "製造", "工場", "生産", "機械",
    ),
    "consulting": (
        "consulting", "consultancy", "advisory", "strategy", "management consulting",
        "コンサルティング", "コンサル",
    ),
    "healthcare": (
        "healthcare", "medical", "hospital", "clinic", "pharmaceutical",
        "医療", "病院", "クリニック", "製薬", "ヘルスケア",
    ),
    "finance": (
        "finance", "financial", "banking", "investment", "insurance",
        "金融", "保険", "証券",
    ),
    "retail": (
        "retail", "e-commerce", "ecommerce", "shopping", "store", "marketplace",
        "小売", "通販", "ショップ", "店舗",
    ),
    "education": (
        "education", "training", "learning", "university", "school",
        "教育", "学校", "研修", "スクール",
    ),
    "food_service": (
        "restaurant", "food", "catering", "hospitality", "cuisine",
        "飲食", "レストラン", "食品", "ケータリング",
    ),
    "logistics": (
        "logistics", "shipping", "transportation", "supply chain", "delivery", "freight",
        "物流", "配送", "運送", "倉庫", "輸送",
    ),
}

# A hit here forces "finance" and drops a "retail" tag matched alongside it.
FINANCE_TRIGGERS: Tuple[str, ...] = (
    "bank", "banking", "loan", "mortgage", "investment",
    "銀行", "金融", "投資", "ローン", "証券", "保険",
)

EN_SPECIALTY_RE = re.compile(
    r"(?:speciali[sz](?:e|es|ing) in|expertise in|focus(?:es|ing)? on|services include|"
    r"we offer|providing|solutions for)\s+([^.\n]{3,100})",
    re.IGNORECASE,
)
JA_SPECIALTY_RE = re.compile(r"(?:サービス|事業内容|取り扱い|提供)[：:\s]*([^。\n]{2,60})")
SPECIALTY_SPLIT_RE = re.compile(r"\s*(?:,|、|，|・|/|;|；|\band\b|&)\s*", re.IGNORECASE)

EN_EMPLOYEES_RE = re.compile(
    r"(\d[\d,]*)\s*\+?\s*(?:full[- ]time\s+)?(?:employees|staff|people|team members|workers|professionals)\b",
    re.IGNORECASE,
)
EN_TEAM_OF_RE = re.compile(r"team of\s+(\d[\d,]*)", re.IGNORECASE)
JA_EMPLOYEES_RE = re.compile(r"(?:従業員|社員|スタッフ|職員)(?:数)?[^\d]{0,6}(\d[\d,]*)\s*(?:人|名)")

LARGE_HINTS = ("fortune 500", "global leader", "multinational")
MICRO_HINTS = ("startup", "start-up", "small business", "freelance", "スタートアップ")
MEDIUM_HINTS = ("medium", "mid-sized", "growing company")

MOJIBAKE_RE = re.compile(r"Ã.|â€.|ã[\x80-\xbf]|ï¿½|\\u00[0-9a-fA-F]{2}|\\x[0-9a-fA-F]{2}")


def sanitize_text(text: Optional[str]) -> str:
    """Strip tags and control characters, unescape entities, collapse whitespace."""
    if not text:
        return ""
    cleaned = html_lib.unescape(TAG_RE.sub(" ", str(text)))
    cleaned = CONTROL_RE.sub("", cleaned)
    return WS_RE.sub(" ", cleaned).strip()


def size_from_employee_count(count: int) -> str:
    if count < 10:
        return CompanySize.MICRO.value
    if count < 50:
        return CompanySize.SMALL.value
    if count < 250:
        return CompanySize.MEDIUM.value
    return CompanySize.LARGE.value


def _term_pattern(term: str) -> str:
    """
    ASCII terms match on word boundaries (optional plural); CJK terms match as
    substrings, except that a katakana term may not run into more katakana
    ("タイ" must not match "タイプ").
    """
    if term.isascii():
        return r"(?<![a-z0-9])" + re.escape(term.lower()) + r"(?:s|es)?(?![a-z0-9])"
    pattern = re.escape(term)
    if re.search(r"[ァ-ヶー]$", term):
        pattern += r"(?![ァ-ヶー])"
    return pattern


def contains_term(haystack_lower: str, term: str) -> bool:
    return re.search(_term_pattern(term), haystack_lower) is not None


def _find_term(haystack_lower: str, term: str) -> int:
    m = re.search(_term_pattern(term), haystack_lower)
    return m.start() if m else -1


def is_generic_name(name: Optional[str]) -> bool:
    if not name:
        return True
    key = name.strip().lower()
    key = re.sub(r"^welcome to\s+", "", key)
    return key in GENERIC_NAMES or len(key) < 2


def strip_title_suffix(title: str) -> str:
    """
    "Acme Tools | Industrial Supplies" -> "Acme Tools".

    If the head is a placeholder ("Home | Acme Tools") the first usable part
    is returned instead.
    """
    parts = [p.strip() for p in TITLE_SEPARATOR_RE.split(title) if p and p.strip()]
    if not parts:
        return ""
    for part in parts:
        if not is_generic_name(part):
            return re.sub(r"^welcome to\s+", "", part, flags=re.IGNORECASE)
    return parts[0]


def is_garbled(record: Dict[str, Any]) -> bool:
    """
    True when name/description/location carry >=3 U+FFFD characters or >=2
    mojibake sequences, i.e. the text was decoded with the wrong charset.
    """
    blob = " ".join(
        str(record.get(k) or "")
        for k in ("name", "description", "location_country", "location_city")
    )
    if blob.count("�") >= 3:
        return True
    return len(MOJIBAKE_RE.findall(blob)) >= 2


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

def _walk_jsonld(data: Any) -> Iterable[Dict[str, Any]]:
    if isinstance(data, list):
        for item in data:
            yield from _walk_jsonld(item)
    elif isinstance(data, dict):
        graph = data.get("@graph")
        if isinstance(graph, list):
            yield from _walk_jsonld(graph)
        yield data


def _is_org_node(node: Dict[str, Any]) -> bool:
    types = node.get("@type")
    if isinstance(types, str):
        types = [types]
    if not isinstance(types, list):
        return False
    return any(isinstance(t, str) and ORG_TYPE_RE.search(t) for t in types)


def find_organization_node(soup: BeautifulSoup) -> Dict[str, Any]:
    """First Organization/Corporation/LocalBusiness node across all JSON-LD blocks."""
    for script in soup.find_all("script", attrs={"type": lambda v: v and "ld+json" in str(v).lower()}):
        raw = (script.string or script.get_text() or "").strip()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            continue
        for node in _walk_jsonld(data):
            if _is_org_node(node):
                return node
    return {}


def _ld_text(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = next((v for v in value if v), None)
    if isinstance(value, dict):
        value = value.get("name") or value.get("@value")
    if value is None:
        return None
    text = sanitize_text(str(value))
    return text or None


def _ld_terms(value: Any) -> List[str]:
    """keywords / knowsAbout / industry: comma string, list of strings, or list of {name}."""
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    out: List[str] = []
    for item in items:
        if isinstance(item, dict):
            item = item.get("name") or item.get("@value")
        if not item:
            continue
        for piece in re.split(r"[,、，]", str(item)):
            piece = sanitize_text(piece)
            if piece:
                out.append(piece)
    return out


def _ld_contact_points(node: Dict[str, Any]) -> List[Dict[str, Any]]:
    points = node.get("contactPoint")
    if isinstance(points, dict):
        return [points]
    if isinstance(points, list):
        return [p for p in points if isinstance(p, dict)]
    return []


def _employee_count_from_ld(value: Any) -> Optional[int]:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        if value.get("value") is not None:
            value = value.get("value")
        else:
            lo, hi = _to_int(value.get("minValue")), _to_int(value.get("maxValue"))
            if lo is not None and hi is not None:
                return (lo + hi) // 2
            return lo if lo is not None else hi
    return _to_int(value)


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    m = re.search(r"\d[\d,]*", str(value))
    if not m:
        return None
    try:
        return int(m.group().replace(",", ""))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------

def _collect_meta(soup: BeautifulSoup) -> Dict[str, str]:
    metas: Dict[str, str] = {}
    for tag in soup.find_all("meta"):
        key = (tag.get("name") or tag.get("property") or "").strip().lower()
        content = tag.get("content")
        if key and content and key not in metas:
            metas[key] = content.strip()
    return metas


def _paragraph_candidates(soup: BeautifulSoup, text: str) -> Iterable[str]:
    # lxml wraps bare markdown in a single <p>, so blocks are split on blank lines
    sources = [p.get_text() for p in soup.find_all("p")] or [text]
    for source in sources:
        for block in re.split(r"\n\s*\n", source):
            block = block.strip()
            if block and not block.startswith(("#", "!", "[", "|", "-", "*", ">")):
                yield block


def _resolve_description(org: Dict[str, Any], metas: Dict[str, str], soup: BeautifulSoup, text: str) -> str:
    for candidate in (_ld_text(org.get("description")), metas.get("description"), metas.get("og:description")):
        cleaned = sanitize_text(candidate)
        if cleaned:
            return cleaned[:MAX_DESCRIPTION_LEN]

    for raw in _paragraph_candidates(soup, text):
        if "<" in raw or ">" in raw:
            continue
        cleaned = sanitize_text(raw)
        if 60 <= len(cleaned) <= 400 and not BOILERPLATE_RE.search(cleaned):
            return cleaned[:MAX_DESCRIPTION_LEN]

    return SENTINEL_DESCRIPTION


def _clean_email(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = unquote(str(value)).strip()
    if value.lower().startswith("mailto:"):
        value = value[7:]
    value = value.split("?", 1)[0].strip()
    if not EMAIL_RE.fullmatch(value) or value.lower().endswith(IMAGE_SUFFIXES):
        return None
    return value


def _resolve_email(org: Dict[str, Any], soup: BeautifulSoup, text: str) -> Optional[str]:
    candidates: List[Any] = [org.get("email")]
    candidates.extend(p.get("email") for p in _ld_contact_points(org))
    for raw in candidates:
        email = _clean_email(_ld_text(raw))
        if email:
            return email

    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if href.lower().startswith("mailto:"):
            email = _clean_email(href)
            if email:
                return email

    for m in EMAIL_RE.finditer(text):
        email = _clean_email(m.group())
        if email:
            return email
    return None


def _digit_count(value: str) -> int:
    return sum(ch.isdigit() for ch in value)


def _clean_phone(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = unquote(str(value)).strip()
    if value.lower().startswith("tel:"):
        value = value[4:]
    value = WS_RE.sub(" ", unicodedata.normalize("NFKC", value)).strip()
    if not 7 <= _digit_count(value) <= 15:
        return None
    return value


def _resolve_phone(org: Dict[str, Any], soup: BeautifulSoup, text: str) -> Optional[str]:
    candidates: List[Any] = [org.get("telephone")]
    candidates.extend(p.get("telephone") for p in _ld_contact_points(org))
    for raw in candidates:
        phone = _clean_phone(_ld_text(raw))
        if phone:
            return phone

    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if href.lower().startswith("tel:"):
            phone = _clean_phone(href)
            if phone:
                return phone

    normalized = unicodedata.normalize("NFKC", text)
    m = JP_PHONE_RE.search(normalized)
    if m and 10 <= _digit_count(m.group()) <= 11:
        return m.group()

    for pattern in INTL_PHONE_RES:
        for m in pattern.finditer(normalized):
            candidate = m.group().strip()
            if 10 <= _digit_count(candidate) <= 15:
                return candidate
    return None


def _country_from_value(value: Optional[str]) -> Optional[str]:
    """Map an ISO code or free-form country name to the canonical name."""
    if not value:
        return None
    raw = value.strip()
    for name, code, aliases in COUNTRIES:
        if raw.upper() == code or raw.lower() == name.lower() or raw.lower() in aliases or raw in aliases:
            return name
    return raw


def _scan_country(context_lower: str) -> Optional[str]:
    best: Tuple[int, Optional[str]] = (len(context_lower) + 1, None)
    for name, _code, aliases in COUNTRIES:
        for alias in aliases:
            pos = _find_term(context_lower, alias)
            if 0 <= pos < best[0]:
                best = (pos, name)
    return best[1]


def _scan_city(context: str) -> Tuple[Optional[str], Optional[str]]:
    """(city, implied country) from an address-like snippet."""
    lower = context.lower()
    best: Tuple[int, Optional[str], Optional[str]] = (len(lower) + 1, None, None)
    for city, country, aliases in CITIES:
        for alias in aliases:
            pos = _find_term(lower, alias)
            if 0 <= pos < best[0]:
                best = (pos, city, country)
    if best[1]:
        return best[1], best[2]

    m = EN_CITY_RE.search(context)
    if m:
        candidate = m.group(1).strip()
        if _scan_country(candidate.lower()) is None and 2 <= len(candidate) <= 30:
            return candidate, None

    m = JA_CITY_RE.search(context)
    if m:
        return m.group(1), None
    return None, None


def _location_contexts(text: str) -> List[str]:
    return [
        text[m.start(): m.end() + LOCATION_CONTEXT_WINDOW]
        for m in LOCATION_CONTEXT_RE.finditer(text)
    ]


def _resolve_location(org: Dict[str, Any], text: str) -> Tuple[Optional[str], Optional[str]]:
    country: Optional[str] = None
    city: Optional[str] = None

    address = org.get("address")
    if isinstance(address, list):
        address = next((a for a in address if a), None)
    if isinstance(address, dict):
        country = _country_from_value(_ld_text(address.get("addressCountry")))
        city = _ld_text(address.get("addressLocality"))
    elif isinstance(address, str) and address.strip():
        found_city, implied = _scan_city(address)
        city = found_city
        country = _scan_country(address.lower()) or implied

    if country and city:
        return country, city

    for context in _location_contexts(text):
        if not country:
            country = _scan_country(context.lower())
        if not city:
            found_city, implied = _scan_city(context)
            if found_city:
                city = found_city
                country = country or implied
        if country and city:
            break

    return country, city


def _slug(value: str) -> str:
    return re.sub(r"[^0-9a-z぀-ヿ一-鿿]+", "_", value.strip().lower()).strip("_")


def _industries_from_terms(haystack_lower: str) -> List[str]:
    return [
        industry
        for industry, keywords in INDUSTRY_KEYWORDS.items()
        if any(contains_term(haystack_lower, kw) for kw in keywords)
    ]


def infer_industry(
    text: str,
    meta_keywords: str = "",
    org: Optional[Dict[str, Any]] = None,
    hint: Optional[str] = None,
) -> List[str]:
    """
    Industry tags for a page; never empty.

    hint > JSON-LD industry/keywords/knowsAbout > keyword scan of body text
    and meta keywords > ["business_services"].
    """
    if hint and hint.strip() and hint.strip().lower() != "all":
        return [hint.strip()]

    org = org or {}
    structured: List[str] = []
    for term in _ld_terms(org.get("industry")):
        slug = _slug(term)
        if slug and slug not in structured:
            structured.append(slug)
    ld_vocab = " ".join(_ld_terms(org.get("keywords")) + _ld_terms(org.get("knowsAbout"))).lower()
    if ld_vocab:
        for industry in _industries_from_terms(ld_vocab):
            if industry not in structured:
                structured.append(industry)
    if structured:
        return structured

    haystack = f"{text} {meta_keywords}".lower()
    found = _industries_from_terms(haystack)

    if any(contains_term(haystack, trigger) for trigger in FINANCE_TRIGGERS):
        if "finance" not in found:
            found.append("finance")
        found = [i for i in found if i != "retail"]

    return found or [DEFAULT_INDUSTRY]


def _accept_specialty(candidate: str) -> Optional[str]:
    cleaned = sanitize_text(candidate).strip(" .:;-–—・、。\"'()[]")
    cleaned = re.sub(r"^(?:and|the|a|an)\s+", "", cleaned, flags=re.IGNORECASE)
    if not 3 <= len(cleaned) <= 50:
        return None
    if HTMLISH_RE.search(cleaned) or BOILERPLATE_RE.search(cleaned):
        return None
    if cleaned.replace(" ", "").isdigit():
        return None
    return cleaned


def extract_specialties(text: str, meta_keywords: str = "", org: Optional[Dict[str, Any]] = None) -> List[str]:
    org = org or {}
    raw: List[str] = []
    raw.extend(re.split(r"[,、，]", meta_keywords or ""))
    raw.extend(_ld_terms(org.get("keywords")))
    raw.extend(_ld_terms(org.get("knowsAbout")))
    for m in EN_SPECIALTY_RE.finditer(text):
        raw.extend(SPECIALTY_SPLIT_RE.split(m.group(1)))
    for m in JA_SPECIALTY_RE.finditer(text):
        raw.extend(SPECIALTY_SPLIT_RE.split(m.group(1)))

    out: List[str] = []
    seen = set()
    for candidate in raw:
        if not candidate:
            continue
        accepted = _accept_specialty(candidate)
        if not accepted or accepted.lower() in seen:
            continue
        seen.add(accepted.lower())
        out.append(accepted)
        if len(out) >= MAX_SPECIALTIES:
            break
    return out


def infer_company_size(text: str, org: Optional[Dict[str, Any]] = None) -> str:
    count = _employee_count_from_ld((org or {}).get("numberOfEmployees"))
    if count is not None:
        return size_from_employee_count(count)

    for pattern in (EN_EMPLOYEES_RE, EN_TEAM_OF_RE, JA_EMPLOYEES_RE):
        m = pattern.search(text)
        if m:
            count = _to_int(m.group(1))
            if count is not None:
                return size_from_employee_count(count)

    lower = text.lower()
    if any(contains_term(lower, hint) for hint in LARGE_HINTS):
        return CompanySize.LARGE.value
    if any(contains_term(lower, hint) for hint in MICRO_HINTS):
        return CompanySize.MICRO.value
    if any(contains_term(lower, hint) for hint in MEDIUM_HINTS):
        return CompanySize.MEDIUM.value
    return CompanySize.SMALL.value


def _established_year(org: Dict[str, Any]) -> Optional[int]:
    raw = _ld_text(org.get("foundingDate"))
    if not raw:
        return None
    m = re.match(r"\s*(\d{4})", raw)
    if not m:
        return None
    year = int(m.group(1))
    return year if 1800 <= year <= datetime.utcnow().year else None


def _fallback_name(url: str, industry: List[str], country: Optional[str], city: Optional[str]) -> str:
    derived = display_name_from_domain(url)
    if derived:
        return derived
    label = (industry[0] if industry else DEFAULT_INDUSTRY).replace("_", " ").title()
    place = city or country
    return f"{label} Company in {place}" if place else f"{label} Company"


def _resolve_name(
    org: Dict[str, Any],
    metas: Dict[str, str],
    soup: BeautifulSoup,
) -> Optional[str]:
    candidates: List[Optional[str]] = [
        _ld_text(org.get("name")),
        sanitize_text(metas.get("og:site_name")),
    ]
    for key in ("og:title", "twitter:title"):
        if metas.get(key):
            candidates.append(strip_title_suffix(sanitize_text(metas[key])))
    if soup.title:
        candidates.append(strip_title_suffix(sanitize_text(soup.title.get_text(" ", strip=True))))
    h1 = soup.find("h1")
    if h1:
        candidates.append(strip_title_suffix(sanitize_text(h1.get_text(" ", strip=True))))

    for candidate in candidates:
        if candidate and not is_generic_name(candidate):
            return candidate
    return None


def extract_company(content: str, url: str, industry_hint: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Build a candidate company record from page content.

    The record carries an internal `_raw_text` key (plain page text) for the
    enrichment pass; the scraper strips it before returning records.
    Returns None when the content cannot be parsed at all.
    """
    if not content:
        return None
    try:
        soup = BeautifulSoup(content, "lxml")
        org = find_organization_node(soup)
        metas = _collect_meta(soup)

        for tag in soup(["script", "style", "noscript", "template", "svg"]):
            tag.decompose()
        text = soup.get_text("\n", strip=True)
        flat_text = WS_RE.sub(" ", text)

        meta_keywords = metas.get("keywords", "")
        country, city = _resolve_location(org, flat_text)
        industry = infer_industry(flat_text, meta_keywords, org, industry_hint)

        name = _resolve_name(org, metas, soup) or _fallback_name(url, industry, country, city)

        record: Dict[str, Any] = {
            "name": name,
            "description": _resolve_description(org, metas, soup, text),
            "website_url": url,
            "contact_email": _resolve_email(org, soup, flat_text),
            "phone": _resolve_phone(org, soup, flat_text),
            "location_country": country,
            "location_city": city,
            "industry": industry,
            "specialties": extract_specialties(flat_text, meta_keywords, org),
            "company_size": infer_company_size(flat_text, org),
            "established_year": _established_year(org),
            "data_source": DataSource.WEB_SCRAPING.value,
            "verified": False,
            "_raw_text": text,
        }
        return record
    except Exception as e:
        logger.warning(
            "Extraction failed: %s",
            e,
            extra={"url": url, "step": "extract"},
        )
        return None
