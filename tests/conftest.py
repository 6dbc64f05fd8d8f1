"""
conftest.py — shared pytest fixtures
Adds the project root to sys.path so `app.*` imports resolve correctly
regardless of where pytest is invoked from, and forces the in-memory lead
store and disabled email before the app is imported.
"""

import os
import sys
from pathlib import Path

os.environ["MONGO_URI"] = ""
os.environ["SENDGRID_API_KEY"] = ""
os.environ["GOOGLE_PAGESPEED_API_KEY"] = ""

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.middleware.rate_limit import reset_rate_limits
from app.models import AuditResult, SecurityResult
from app.services.email_service import SendGridEmailClient
from app.services.html_extractor import extract_page_features
from app.services.performance_analyzer import degraded_result
from app.services.security_analyzer import evaluate_headers
from app.services.seo_analyzer import score_seo
from app.utils.db_leads import clear_memory_store

PAGESPEED_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

TITLE_45 = ("Doe Bakery " * 5)[:45]
DESCRIPTION_140 = ("Fresh bread " * 20)[:140]


# ─── Mock HTTP ─────────────────────────────────────────────────────────────────

def raises(exc_cls, message="mock network failure"):
    """Route value that makes the request fail with exc_cls."""
    def _raise(request: httpx.Request):
        raise exc_cls(message, request=request)
    return _raise


def _key(url: str) -> str:
    return url.split("?")[0].rstrip("/")


def make_handler(routes: dict, calls: list = None):
    """
    routes maps "URL" or "METHOD URL" (query ignored) to one of:
      str → 200 text/html body, dict → 200 JSON, (status, body[, headers]),
      or a callable(request) returning a Response / raising.
    Unknown URLs answer 404.
    """
    table = {}
    for k, v in routes.items():
        method, _, url = k.partition(" ") if " " in k else ("", "", k)
        table[(method, _key(url))] = v

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        url = _key(str(request.url))
        value = table.get((request.method, url), table.get(("", url)))
        if value is None:
            return httpx.Response(404, text="not found")
        if callable(value):
            return value(request)
        if isinstance(value, dict):
            return httpx.Response(200, json=value)
        if isinstance(value, str):
            return httpx.Response(200, text=value, headers={"content-type": "text/html"})
        status, body, *rest = value
        headers = rest[0] if rest else {}
        if isinstance(body, dict):
            return httpx.Response(status, json=body, headers=headers)
        return httpx.Response(status, text=body, headers=headers)

    return handler


def mock_client(routes: dict, calls: list = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.MockTransport(make_handler(routes, calls)),
        follow_redirects=True,
    )


# ─── HTML pages ────────────────────────────────────────────────────────────────

def perfect_page(origin: str = "https://example.com") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <title>{TITLE_45}</title>
  <meta name="description" content="{DESCRIPTION_140}">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <link rel="canonical" href="{origin}/">
  <meta property="og:title" content="Doe Bakery">
  <meta property="og:description" content="Fresh bread daily">
  <meta property="og:image" content="{origin}/og.png">
  <meta name="twitter:card" content="summary_large_image">
  <meta name="twitter:title" content="Doe Bakery">
</head>
<body>
  <h1>Doe Bakery</h1>
  <h2>Our bread</h2>
  <h3>Sourdough</h3>
  <img src="/bread.jpg" alt="Sourdough loaf">
  <img src="/cake.jpg" alt="Chocolate cake">
  <a href="/menu">Menu</a>
  <a href="#contact">Contact</a>
  <a href="{origin}/about">About</a>
  <a href="https://instagram.com/doebakery">Instagram</a>
  <a href="mailto:hello@example.com">Email us</a>
</body>
</html>"""


def empty_page(missing_alt_images: int = 5) -> str:
    imgs = "\n".join(f'<img src="/img{i}.jpg">' for i in range(missing_alt_images))
    return f"""<html><head></head><body>
  <h2>No main heading here</h2>
  {imgs}
</body></html>"""


def site_routes(origin: str = "https://example.com", page: str = None,
                robots: bool = True, sitemap: bool = True, headers: dict = None) -> dict:
    """Routes for a site whose page, robots.txt and sitemap.xml are served."""
    routes = {origin: (200, page if page is not None else perfect_page(origin),
                       headers or {"content-type": "text/html"})}
    if robots:
        routes[f"{origin}/robots.txt"] = (200, "User-agent: *\nAllow: /")
    if sitemap:
        routes[f"{origin}/sitemap.xml"] = (200, "<urlset></urlset>")
    return routes


SECURE_HEADERS = {
    "content-type": "text/html",
    "content-security-policy": "default-src 'self'",
    "x-content-type-options": "nosniff",
    "x-frame-options": "DENY",
    "strict-transport-security": "max-age=31536000",
    "x-xss-protection": "1; mode=block",
    "referrer-policy": "strict-origin-when-cross-origin",
}


def pagespeed_payload(score=0.92, **audits) -> dict:
    base_audits = {
        "largest-contentful-paint": {"numericValue": 1800.0},
        "cumulative-layout-shift": {"numericValue": 0.02},
        "first-contentful-paint": {"numericValue": 1200.0},
        "server-response-time": {"numericValue": 300.0},
        "speed-index": {"numericValue": 2100.4},
        "total-byte-weight": {"numericValue": 850000},
        "network-requests": {"numericValue": 42},
    }
    base_audits.update(audits)
    return {
        "lighthouseResult": {
            "categories": {"performance": {"score": score}},
            "audits": base_audits,
        }
    }


# ─── Audit + email builders ────────────────────────────────────────────────────

def make_audit(page: str = None, url: str = "https://example.com", overall: int = 60) -> AuditResult:
    """AuditResult built from the real scorers: PageSpeed degraded, no security headers."""
    seo = score_seo(extract_page_features(page or perfect_page(), url), True, True)
    perf = degraded_result()
    flags, issues, deduction = evaluate_headers({}, is_https=True)
    sec = SecurityResult(score=100 - deduction, https=True, headers=flags, issues=issues)
    return AuditResult(
        seo_score=seo.score,
        performance_score=perf.score,
        security_score=sec.score,
        overall_score=overall,
        seo=seo,
        performance=perf,
        security=sec,
        audit_date=datetime(2026, 3, 14, tzinfo=timezone.utc),
        website_url=url,
    )


def sendgrid_client(status=202, calls=None, **kwargs) -> SendGridEmailClient:
    """Real client whose HTTP calls hit a MockTransport answering `status`."""
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status, text="" if status < 300 else "bad request")
    return SendGridEmailClient(
        api_key="SG.test",
        from_email="audit@example.org",
        from_name="Site Audit",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


# ─── App fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _clean_state():
    clear_memory_store()
    reset_rate_limits()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def client():
    """Synchronous test client backed by the in-memory lead store."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def lead_form():
    return {
        "name": "Jane Doe",
        "businessName": "Doe Bakery",
        "email": "Jane@Example.com",
        "whatsappNo": "+15551234567",
        "websiteUrl": "example.com",
    }
