"""
Optional model pass that fills gaps left by the heuristic extractor.

The merge is one-directional: model output only fills fields that are
missing or still placeholders, so a confident heuristic value is never
replaced.
"""
from __future__ import annotations

import asyncio
import logging
import textwrap
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..core.config import Settings, get_settings
from ..models.company import CompanySize
from .extractor import EMAIL_RE, MAX_DESCRIPTION_LEN, MAX_SPECIALTIES, SENTINEL_DESCRIPTION, sanitize_text
from .llm import get_llm_client, limit_llm_concurrency, llm_configured, parse_json_object

logger = logging.getLogger(__name__)

EXCERPT_CHARS = 6000

SENTINEL_INDUSTRIES = {"business_services", "all"}

SIZE_SYNONYMS = {
    "micro": CompanySize.MICRO.value,
    "tiny": CompanySize.MICRO.value,
    "startup": CompanySize.MICRO.value,
    "small": CompanySize.SMALL.value,
    "medium": CompanySize.MEDIUM.value,
    "midsize": CompanySize.MEDIUM.value,
    "mid-size": CompanySize.MEDIUM.value,
    "mid": CompanySize.MEDIUM.value,
    "large": CompanySize.LARGE.value,
    "enterprise": CompanySize.LARGE.value,
    "big": CompanySize.LARGE.value,
}

FILL_IF_ABSENT = ("contact_email", "phone", "location_city", "location_country")

HINT_FIELDS = ("website_url", "name", "industry", "location_country", "location_city")


class Enricher(ABC):
    """Anything that can turn page text into a partial company record."""

    def is_configured(self) -> bool:
        return True

    @abstractmethod
    async def enrich(self, text: str, hints: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...


class LLMEnricher(Enricher):
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._client = None

    def _get_client(self):
        if self._client is None:
            self._client = get_llm_client(self.settings)
        return self._client

    def is_configured(self) -> bool:
        return llm_configured(self.settings)

    def _system_prompt(self) -> str:
        return textwrap.dedent(
            """
            You extract structured company profiles from website text.

            Return ONLY a JSON object with this exact shape:
            {
              "name": string | null,
              "description": string | null,
              "industry": [string],
              "specialties": [string],
              "company_size": "micro" | "small" | "medium" | "large" | null,
              "contact_email": string | null,
              "phone": string | null,
              "location_city": string | null,
              "location_country": string | null
            }

            RULES:
            - Use only facts present in the text. Use null or [] when unknown.
            - industry: short lowercase tags such as technology, manufacturing,
              consulting, healthcare, finance, retail, education, food_service, logistics.
            - specialties: at most 5 short phrases (under 50 characters each).
            - description: 1-3 sentences, at most 400 characters.
            """
        ).strip()

    async def enrich(self, text: str, hints: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.is_configured():
            return None

        excerpt = (text or "")[:EXCERPT_CHARS]
        if not excerpt.strip():
            return None

        user_prompt = textwrap.dedent(
            f"""
            Website: {hints.get('website_url') or 'N/A'}
            Current name guess: {hints.get('name') or 'N/A'}

            Website text:
            {excerpt}

            Extract the company profile as requested above.
            """
        )
        system_prompt = self._system_prompt()
        model = self.settings.LLM_MODEL

        try:
            client = self._get_client()

            def _call_sync() -> str | None:
                with limit_llm_concurrency():
                    resp = client.chat.completions.create(
                        model=model,
                        messages=[
                            {"role": "system", "content": system_prompt},
                            {"role": "user", "content": user_prompt},
                        ],
                        temperature=0.1,
                        max_tokens=800,
                    )
                return (resp.choices[0].message.content or "").strip() or None

            raw = await asyncio.wait_for(
                asyncio.to_thread(_call_sync),
                timeout=self.settings.LLM_TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.warning(
                "Enrichment call failed; keeping heuristic record. Error: %s",
                e,
                extra={"url": hints.get("website_url"), "step": "enrich"},
            )
            return None

        data = parse_json_object(raw)
        return data or None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _industry_is_weak(industry: Any) -> bool:
    tags = [i for i in (industry or []) if i]
    return not tags or all(str(i).lower() in SENTINEL_INDUSTRIES for i in tags)


def needs_enrichment(record: Dict[str, Any]) -> bool:
    """
    A record is weak when any of these hold: no contact field at all, only
    placeholder industry tags, no specialties, placeholder description, or
    the default size.
    """
    if _is_blank(record.get("contact_email")) and _is_blank(record.get("phone")):
        return True
    if _industry_is_weak(record.get("industry")):
        return True
    if not record.get("specialties"):
        return True
    description = record.get("description")
    if _is_blank(description) or description == SENTINEL_DESCRIPTION:
        return True
    return record.get("company_size") in (None, CompanySize.SMALL.value)


def normalize_size(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return SIZE_SYNONYMS.get(value.strip().lower())


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    out: List[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        cleaned = sanitize_text(item)
        if cleaned and cleaned not in out:
            out.append(cleaned)
    return out


def merge_enrichment(record: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    """Fill gaps in `record` from model output without regressing any field."""
    merged = dict(record)

    name = data.get("name")
    if _is_blank(merged.get("name")) and isinstance(name, str) and name.strip():
        merged["name"] = sanitize_text(name)

    description = data.get("description")
    current = merged.get("description")
    if (_is_blank(current) or current == SENTINEL_DESCRIPTION) and isinstance(description, str):
        cleaned = sanitize_text(description)[:MAX_DESCRIPTION_LEN]
        if cleaned:
            merged["description"] = cleaned

    industry = [i.lower().replace(" ", "_") for i in _string_list(data.get("industry"))]
    if _industry_is_weak(merged.get("industry")) and industry:
        merged["industry"] = industry

    specialties = [s for s in _string_list(data.get("specialties")) if 3 <= len(s) <= 50]
    if not merged.get("specialties") and specialties:
        merged["specialties"] = specialties[:MAX_SPECIALTIES]

    for field in FILL_IF_ABSENT:
        value = data.get(field)
        if not _is_blank(merged.get(field)) or not isinstance(value, str) or not value.strip():
            continue
        value = sanitize_text(value)
        if field == "contact_email" and not EMAIL_RE.fullmatch(value):
            continue
        merged[field] = value

    size = normalize_size(data.get("company_size"))
    if size and merged.get("company_size") in (None, CompanySize.SMALL.value):
        merged["company_size"] = size

    return merged


async def enrich_record(
    record: Dict[str, Any],
    enricher: Enricher | None,
    *,
    requested: bool,
) -> Dict[str, Any]:
    """
    Run the enricher only when requested, configured and the record is weak.
    Any failure leaves the record as it was.
    """
    if not requested or enricher is None or not enricher.is_configured():
        return record
    if not needs_enrichment(record):
        return record

    hints = {k: record.get(k) for k in HINT_FIELDS}
    try:
        data = await enricher.enrich(record.get("_raw_text") or "", hints)
    except Exception as e:
        logger.warning(
            "Enricher raised; keeping heuristic record. Error: %s",
            e,
            extra={"url": record.get("website_url"), "step": "enrich"},
        )
        return record

    if not data:
        return record
    return merge_enrichment(record, data)
