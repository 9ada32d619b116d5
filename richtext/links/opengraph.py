"""Default fetch collaborator: download a page and read its link metadata.

Policy:
- Only public http(s) URLs are fetched (SSRF guard runs before any I/O).
- The body is capped at `max_bytes`.
- Failures are returned as `FetchResult` values, never raised.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests
import trafilatura

from richtext.config import FetchConfig
from richtext.links.metadata_types import METADATA_FIELDS, FetchResult, Metadata


logger = logging.getLogger(__name__)


# trafilatura attribute -> our field name
_TRAFILATURA_FIELDS = {
    "title": "title",
    "description": "description",
    "image": "image",
    "url": "url",
    "sitename": "site_name",
    "author": "author",
    "date": "date",
}


def _is_private_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    # loopback, private, link-local, unspecified, CGNAT, ...
    return not ip.is_global


def check_fetch_url(url: str) -> Optional[str]:
    """Return an error code if the URL must not be fetched, else None."""
    try:
        p = urlparse(url)
        host = (p.hostname or "").strip().lower()
    except ValueError:
        return "invalid_url"
    if p.scheme not in ("http", "https"):
        return "bad_scheme"
    if not p.netloc or not host:
        return "missing_host"
    if host in ("localhost", "localhost.localdomain"):
        return "blocked_host"
    if _is_private_ip(host):
        return "blocked_private_ip"
    return None


def parse_metadata(html: str, url: str) -> Metadata:
    """Read title/description/image/... (OpenGraph tags included) from HTML."""
    doc = trafilatura.extract_metadata(html, default_url=url)
    if doc is None:
        return Metadata(values={})
    if hasattr(doc, "as_dict"):
        raw: Dict[str, Any] = doc.as_dict()
    elif isinstance(doc, dict):
        raw = doc
    else:
        raw = {k: getattr(doc, k, None) for k in _TRAFILATURA_FIELDS}
    values: Dict[str, str] = {}
    for src, dst in _TRAFILATURA_FIELDS.items():
        v = raw.get(src)
        if v is None:
            continue
        s = str(v).strip()
        if s:
            values[dst] = s
    values.setdefault("url", url)
    return Metadata(values={k: values[k] for k in METADATA_FIELDS if k in values})


class OpenGraphFetcher:
    """HTTP implementation of the fetch collaborator contract."""

    def __init__(self, config: Optional[FetchConfig] = None):
        self.config = (config or FetchConfig()).validate()

    def __call__(self, url: str, timeout: float) -> FetchResult:
        return self.fetch(url, timeout=timeout)

    def fetch(self, url: str, *, timeout: float) -> FetchResult:
        if not url:
            return FetchResult.failure("error", "empty_url")
        err = check_fetch_url(url)
        if err:
            return FetchResult.failure("blocked", err)
        cfg = self.config
        try:
            with requests.Session() as session:
                session.max_redirects = cfg.max_redirects
                resp = session.get(
                    url,
                    headers={"User-Agent": cfg.user_agent, "Accept": "text/html,application/xhtml+xml"},
                    timeout=(min(cfg.connect_timeout, timeout), timeout),
                    allow_redirects=True,
                    stream=True,
                )
                with resp:
                    if resp.status_code >= 400:
                        return FetchResult.failure(f"http_{resp.status_code}")
                    content = b""
                    for chunk in resp.iter_content(chunk_size=64 * 1024):
                        if not chunk:
                            continue
                        content += chunk
                        if len(content) > cfg.max_bytes:
                            return FetchResult.failure("too_large")
                    encoding = resp.encoding or "utf-8"
            try:
                html = content.decode(encoding, errors="replace")
            except LookupError:
                html = content.decode("utf-8", errors="replace")
            if not html.strip():
                return FetchResult.failure("empty", "empty_html")
            return FetchResult.success(parse_metadata(html, url))
        except requests.Timeout:
            return FetchResult.failure("timeout")
        except requests.RequestException as e:
            logger.debug("fetch %s failed: %s", url, e)
            return FetchResult.failure("error", str(e) or type(e).__name__)
        except Exception as e:
            logger.warning("unexpected error fetching %s: %s", url, e)
            return FetchResult.failure("error", str(e) or type(e).__name__)


def fetch_metadata(url: str, timeout: float = 15.0) -> FetchResult:
    return OpenGraphFetcher().fetch(url, timeout=timeout)
