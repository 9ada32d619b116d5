"""Link identity: which URLs count as the same link for caching."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit, urlunsplit


# any query param starting with one of these is tracking noise
TRACKING_PARAM_PREFIXES: Tuple[str, ...] = ("utm_", "mc_", "ref_")

TRACKING_PARAMS = frozenset({"gclid", "fbclid", "msclkid", "dclid", "yclid", "igshid", "ref"})

_DEFAULT_PORTS = {"http": 80, "https": 443}


def is_tracking_param(name: str, *, extra: Optional[Iterable[str]] = None) -> bool:
    n = name.lower()
    if n in TRACKING_PARAMS or n.startswith(TRACKING_PARAM_PREFIXES):
        return True
    return extra is not None and n in {e.lower() for e in extra}


def _netloc(p: SplitResult) -> str:
    host = (p.hostname or "").lower()
    if ":" in host:
        host = f"[{host}]"
    port = p.port
    if port is not None and port != _DEFAULT_PORTS.get(p.scheme.lower()):
        host = f"{host}:{port}"
    if p.username:
        auth = p.username + (f":{p.password}" if p.password else "")
        host = f"{auth}@{host}"
    return host


def canonicalize_url(url: str, *, strip_params: Optional[Iterable[str]] = None) -> str:
    """Canonical form of a link, so equivalent links share one cache entry.

    Scheme and host are lowercased, default ports and the fragment dropped,
    tracking params removed and the rest sorted. Text that does not parse as a
    URL is returned stripped.
    """
    if not url:
        return ""
    raw = url.strip()
    try:
        p = urlsplit(raw)
        netloc = _netloc(p)
    except ValueError:
        # unbalanced IPv6 brackets, bad port
        return raw
    scheme = (p.scheme or "https").lower()
    params = [(k, v) for k, v in parse_qsl(p.query, keep_blank_values=True) if not is_tracking_param(k, extra=strip_params)]
    params.sort(key=lambda kv: (kv[0].lower(), kv[1]))
    return urlunsplit((scheme, netloc, p.path or "/", urlencode(params, doseq=True), ""))


def cache_key(url: str, prefix: str) -> str:
    """`<prefix>:opengraph:<canonical url>`."""
    return f"{prefix}:opengraph:{canonicalize_url(url)}"
