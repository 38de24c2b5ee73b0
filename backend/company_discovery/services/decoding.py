from __future__ import annotations

import codecs
import logging
import re
from typing import Optional

from charset_normalizer import from_bytes

logger = logging.getLogger(__name__)

_HEADER_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([\w.:\-]+)", re.IGNORECASE)
_META_CHARSET_RE = re.compile(
    rb"<meta[^>]+charset\s*=\s*[\"']?\s*([\w.:\-]+)",
    re.IGNORECASE,
)

# Declared Japanese charsets -> Python codec. cp932 is the superset of
# Shift_JIS that Japanese sites actually emit (NEC/IBM extensions, ①, ㈱ ...).
JAPANESE_CODECS = {
    "shift_jis": "cp932",
    "shift-jis": "cp932",
    "sjis": "cp932",
    "x-sjis": "cp932",
    "ms_kanji": "cp932",
    "windows-31j": "cp932",
    "cp932": "cp932",
    "euc-jp": "euc_jp",
    "euc_jp": "euc_jp",
    "x-euc-jp": "euc_jp",
    "eucjp": "euc_jp",
    "iso-2022-jp": "iso2022_jp",
    "csiso2022jp": "iso2022_jp",
}

_UTF8_NAMES = {"utf-8", "utf8", "utf_8"}


def charset_from_content_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    m = _HEADER_CHARSET_RE.search(content_type)
    return m.group(1).strip().lower() if m else None


def charset_from_meta(body: bytes) -> Optional[str]:
    """<meta charset=...> or http-equiv content charset in the first 4 KB."""
    m = _META_CHARSET_RE.search(body[:4096])
    if not m:
        return None
    return m.group(1).decode("ascii", "ignore").strip().lower() or None


def _lookup(name: str) -> Optional[str]:
    try:
        return codecs.lookup(name).name
    except LookupError:
        return None


def decode_html(body: bytes, content_type: Optional[str] = None) -> str:
    """
    Decode a fetched page.

    Order of signals:
    1. Content-Type header charset, then in-page meta charset.
    2. Shift_JIS / EUC-JP / ISO-2022-JP are decoded with the Japanese codecs.
    3. Any other declared, known, non-UTF-8 charset is used as declared.
    4. Silent or UTF-8 declarations: strict UTF-8, and only when the bytes are
       not valid UTF-8 does byte-level detection get a say.
    """
    if not body:
        return ""

    declared = [cs for cs in (charset_from_content_type(content_type), charset_from_meta(body)) if cs]

    for cs in declared:
        jp_codec = JAPANESE_CODECS.get(cs)
        if jp_codec:
            return body.decode(jp_codec, errors="replace")

    for cs in declared:
        if cs in _UTF8_NAMES:
            continue
        codec = _lookup(cs)
        if codec and codec != "utf-8":
            return body.decode(codec, errors="replace")

    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        pass

    best = from_bytes(body).best()
    if best is not None and best.encoding:
        logger.debug("Detected page encoding %s", best.encoding, extra={"step": "decode"})
        return str(best)

    return body.decode("utf-8", errors="replace")
