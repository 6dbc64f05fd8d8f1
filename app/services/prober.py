"""
app/services/prober.py
Shared HTTP helpers for the audit: page fetch, well-known resource probes
(robots.txt, sitemap.xml) and response-header retrieval.
"""
from typing import Optional
from urllib.parse import urlparse

import httpx

from ..config import get_settings

settings = get_settings()

# InvalidURL is not an HTTPError subclass
REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class PageFetchError(Exception):
    """The audited page itself could not be fetched."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch page {url}: {reason}")


def default_headers() -> dict:
    return {"User-Agent": settings.user_agent}


def build_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """AsyncClient with the audit user-agent, redirects followed."""
    return httpx.AsyncClient(
        headers=default_headers(),
        timeout=timeout or settings.request_timeout_seconds,
        follow_redirects=True,
    )


DEFAULT_PORTS = {"http": 80, "https": 443}


def base_url(url: str) -> str:
    """
    scheme://host[:port] of url. Userinfo is dropped, the host lowercased and
    the scheme's default port omitted.
    """
    p = urlparse(url)
    host = p.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = p.port
    if port is not None and port != DEFAULT_PORTS.get(p.scheme):
        host = f"{host}:{port}"
    return f"{p.scheme}://{host}"


async def fetch_page(client: httpx.AsyncClient, url: str) -> httpx.Response:
    """GET the page. Raises PageFetchError on transport error or non-2xx."""
    try:
        resp = await client.get(url)
    except REQUEST_ERRORS as e:
        raise PageFetchError(url, str(e) or e.__class__.__name__) from e
    if not resp.is_success:
        raise PageFetchError(url, f"HTTP {resp.status_code}", resp.status_code)
    return resp


async def probe_resource(client: httpx.AsyncClient, url: str) -> bool:
    """True if url answers 2xx; network errors count as absent."""
    try:
        resp = await client.get(url)
        return resp.is_success
    except REQUEST_ERRORS:
        return False


async def fetch_headers(client: httpx.AsyncClient, url: str) -> Optional[httpx.Headers]:
    """Response headers via HEAD, falling back to GET. None if both fail."""
    try:
        resp = await client.head(url)
        return resp.headers
    except REQUEST_ERRORS:
        pass
    try:
        resp = await client.get(url)
        return resp.headers
    except REQUEST_ERRORS:
        return None
