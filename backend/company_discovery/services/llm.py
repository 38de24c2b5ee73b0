from __future__ import annotations

import json
from functools import lru_cache
from contextlib import contextmanager
from threading import BoundedSemaphore
from typing import Any, Dict

from openai import OpenAI

from ..core.config import Settings, get_settings

_llm_semaphore: BoundedSemaphore | None = None


def _get_semaphore() -> BoundedSemaphore:
    """
    Lazy-initialised global semaphore for limiting concurrent LLM calls.
    """
    global _llm_semaphore
    if _llm_semaphore is None:
        settings = get_settings()
        _llm_semaphore = BoundedSemaphore(settings.LLM_MAX_CONCURRENCY)
    return _llm_semaphore


@contextmanager
def limit_llm_concurrency():
    """
    Bound concurrent calls to the LLM provider. Use inside the worker thread
    that performs the HTTP request.
    """
    sem = _get_semaphore()
    sem.acquire()
    try:
        yield
    finally:
        sem.release()


def llm_configured(settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    return bool(settings.OPENROUTER_API_KEY or settings.OPENAI_API_KEY)


def build_llm_client(settings: Settings) -> OpenAI:
    """
    OpenAI-compatible client for the given settings.

    - If OPENROUTER_API_KEY is set, route requests via OpenRouter.
    - Otherwise use the OpenAI API with OPENAI_API_KEY.
    """
    if settings.OPENROUTER_API_KEY:
        return OpenAI(
            base_url="https://openrouter.ai/api/v1",
            api_key=settings.OPENROUTER_API_KEY.strip(),
            timeout=settings.LLM_TIMEOUT_SECONDS,
            default_headers={
                "HTTP-Referer": settings.FRONTEND_ORIGIN or "http://localhost:3000",
                "X-Title": "Company Discovery",
            },
        )

    if settings.OPENAI_API_KEY:
        return OpenAI(
            api_key=settings.OPENAI_API_KEY.strip(),
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )

    raise RuntimeError(
        "No LLM API key configured. Set either OPENAI_API_KEY or OPENROUTER_API_KEY."
    )


@lru_cache(maxsize=1)
def _default_llm_client() -> OpenAI:
    return build_llm_client(get_settings())


def get_llm_client(settings: Settings | None = None) -> OpenAI:
    """
    Shared client for the process settings; callers holding their own
    Settings get a client built from those.
    """
    if settings is None or settings is get_settings():
        return _default_llm_client()
    return build_llm_client(settings)


def parse_json_object(raw: str | None) -> Dict[str, Any]:
    """
    Parse a model reply as a JSON object: direct parse first, then the
    outermost {...} block. Returns {} when nothing usable is found.
    """
    if not raw:
        return {}

    data: Any = None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        start = raw.find("{")
        end = raw.rfind("}")
        if start != -1 and end != -1 and end > start:
            try:
                data = json.loads(raw[start : end + 1])
            except json.JSONDecodeError:
                return {}

    return data if isinstance(data, dict) else {}
