from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse, urlunparse

_HOST_RE = re.compile(r"^[a-z0-9\-._~%]+(?::\d{1,5})?$", re.IGNORECASE)


def normalize_url(raw: Optional[str]) -> Optional[str]:
    """
    Canonical website URL used as the dedup key.

    - scheme forced to https (scheme-less input is accepted)
    - query string and fragment dropped
    - host lowercased, trailing slash removed
    - non-ASCII hosts IDNA-encoded ("münchen.de" -> "xn--mnchen-3ya.de")

    Returns None for input that cannot be a website address.
    """
    if not raw or not isinstance(raw, str):
        return None

    candidate = raw.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return None

    if not re.match(r"^[a-z][a-z0-9+.\-]*://", candidate, re.IGNORECASE):
        if candidate.startswith("//"):
            candidate = "https:" + candidate
        else:
            candidate = "https://" + candidate

    try:
        parsed = urlparse(candidate)
    except ValueError:
        return None

    if parsed.scheme.lower() not in ("http", "https"):
        return None

    netloc = (parsed.netloc or "").lower()
    if "@" in netloc:
        netloc = netloc.rsplit("@", 1)[1]
    host, sep, port = netloc.partition(":")
    if host and not host.isascii():
        # internationalized hosts are keyed by their punycode form
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError:
            return None
        netloc = host + sep + port
    if not netloc or not _HOST_RE.match(netloc):
        return None

    host = netloc.split(":", 1)[0]
    if "." not in host and host != "localhost":
        return None
    if host.startswith(".") or host.endswith(".") or ".." in host:
        return None

    path = (parsed.path or "").rstrip("/")
    return urlunparse(("https", netloc, path, "", "", ""))


def site_origin(url: str) -> str:
    """https://host[:port] part of a canonical URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def domain_label(url: str) -> str:
    """
    Registrable label of a URL, e.g. "https://www.acme-tools.co.jp/x" -> "acme-tools".
    """
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    host = host.lower()
    if "xn--" in host:
        try:
            host = host.encode("ascii").decode("idna")
        except UnicodeError:
            pass
    if host.startswith("www."):
        host = host[4:]
    parts = [p for p in host.split(".") if p]
    if not parts:
        return ""
    if len(parts) >= 3 and len(parts[-1]) == 2 and parts[-2] in {"co", "com", "or", "ne", "ac", "go", "net", "org"}:
        return parts[-3]
    if len(parts) >= 2:
        return parts[-2]
    return parts[0]


def display_name_from_domain(url: str) -> str:
    """Title-cased domain label ("acme-tools" -> "Acme Tools"); empty if unusable."""
    label = domain_label(url)
    if len(label) < 2 or label.replace("-", "").isdigit():
        return ""
    words = [w for w in re.split(r"[-_]+", label) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)
