"""
app/services/performance_analyzer.py
Performance scoring from Google PageSpeed Insights (mobile, performance
category). The score is the upstream Lighthouse score; issues come from fixed
Core Web Vitals thresholds. Never raises: any upstream failure degrades to the
default score plus one informational issue.
"""
import math
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config import get_settings
from ..models import CoreWebVitals, Issue, IssueType, Opportunity, PerformanceResult
from ..utils.validation import normalize_url
from .prober import build_client

settings = get_settings()

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
DEFAULT_SCORE = 50
MAX_OPPORTUNITIES = 5
LARGE_PAGE_BYTES = 3_000_000

OPPORTUNITY_AUDITS = (
    "render-blocking-resources",
    "unused-css-rules",
    "unused-javascript",
    "modern-image-formats",
    "offscreen-images",
    "unminified-css",
    "unminified-javascript",
    "efficient-animated-content",
    "uses-responsive-images",
)


# ── PageSpeed response DTOs (every field optional) ─────────────────────────────

class _Dto(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LighthouseAudit(_Dto):
    score: Optional[float] = None
    numeric_value: Optional[float] = Field(None, alias="numericValue")
    display_value: Optional[str] = Field(None, alias="displayValue")
    title: Optional[str] = None
    description: Optional[str] = None


class LighthouseCategory(_Dto):
    score: Optional[float] = None


class LighthouseResult(_Dto):
    categories: Dict[str, LighthouseCategory] = {}
    audits: Dict[str, LighthouseAudit] = {}


class FieldMetric(_Dto):
    percentile: Optional[float] = None


class LoadingExperience(_Dto):
    metrics: Dict[str, FieldMetric] = {}


class PageSpeedReport(_Dto):
    lighthouse_result: Optional[LighthouseResult] = Field(None, alias="lighthouseResult")
    loading_experience: Optional[LoadingExperience] = Field(None, alias="loadingExperience")

    def field_percentile(self, metric: str) -> Optional[float]:
        if self.loading_experience is None:
            return None
        m = self.loading_experience.metrics.get(metric)
        return m.percentile if m else None

    def audit(self, audit_id: str) -> Optional[LighthouseAudit]:
        if self.lighthouse_result is None:
            return None
        return self.lighthouse_result.audits.get(audit_id)

    def lab_value(self, audit_id: str) -> Optional[float]:
        a = self.audit(audit_id)
        return a.numeric_value if a else None

    def category_score(self) -> Optional[float]:
        if self.lighthouse_result is None:
            return None
        cat = self.lighthouse_result.categories.get("performance")
        return cat.score if cat else None


# ── Extraction ─────────────────────────────────────────────────────────────────

def _round(x: float) -> int:
    """Round half up."""
    return int(math.floor(x + 0.5))


def _field_or_lab(report: PageSpeedReport, field_metric: str, lab_audit: Optional[str],
                  field_divisor: float = 1) -> Optional[float]:
    field_value = report.field_percentile(field_metric)
    if field_value is not None:
        return field_value / field_divisor
    if lab_audit is not None:
        lab_value = report.lab_value(lab_audit)
        if lab_value is not None:
            return lab_value
    return None


def extract_core_web_vitals(report: PageSpeedReport) -> CoreWebVitals:
    return CoreWebVitals(
        lcp=_field_or_lab(report, "LARGEST_CONTENTFUL_PAINT_MS", "largest-contentful-paint"),
        fid=_field_or_lab(report, "FIRST_INPUT_DELAY_MS", None),
        # field CLS percentile is reported ×100
        cls=_field_or_lab(report, "CUMULATIVE_LAYOUT_SHIFT_SCORE", "cumulative-layout-shift", 100),
        fcp=_field_or_lab(report, "FIRST_CONTENTFUL_PAINT_MS", "first-contentful-paint"),
        ttfb=_field_or_lab(report, "EXPERIMENTAL_TIME_TO_FIRST_BYTE", "server-response-time"),
    )


def extract_opportunities(report: PageSpeedReport) -> List[Opportunity]:
    found: List[Opportunity] = []
    for audit_id in OPPORTUNITY_AUDITS:
        a = report.audit(audit_id)
        if a is None or a.score is None or a.score >= 1:
            continue
        found.append(Opportunity(
            title=a.title or audit_id,
            description=a.description or "",
            savings=a.display_value or "Potential savings available",
        ))
        if len(found) == MAX_OPPORTUNITIES:
            break
    return found


def _threshold_issue(value: Optional[float], warn: float, error: float,
                     message: str, recommendation: str) -> Optional[Issue]:
    if value is None or value <= warn:
        return None
    kind = IssueType.ERROR if value > error else IssueType.WARNING
    return Issue(type=kind, message=message, recommendation=recommendation)


def _general_issue(score: int) -> Optional[Issue]:
    if score < 50:
        return Issue(
            type=IssueType.ERROR,
            message="Overall performance needs significant improvement",
            recommendation="Focus on optimizing images, reducing JavaScript, and improving server response time",
        )
    if score < 75:
        return Issue(
            type=IssueType.WARNING,
            message="Performance could be improved",
            recommendation="Review the opportunities listed to improve page speed",
        )
    return None


def score_performance(report: PageSpeedReport) -> PerformanceResult:
    """Pure mapping of a decoded PageSpeed report to a PerformanceResult."""
    issues: List[Issue] = []

    raw_score = report.category_score()
    score = _round(raw_score * 100) if raw_score is not None else DEFAULT_SCORE
    score = max(0, min(100, score))

    vitals = extract_core_web_vitals(report)

    speed_index = report.lab_value("speed-index")
    byte_weight = report.lab_value("total-byte-weight")
    requests = report.lab_value("network-requests")
    load_time = _round(speed_index) if speed_index is not None else 0
    page_size = _round(byte_weight) if byte_weight is not None else 0
    request_count = _round(requests) if requests is not None else 0

    lcp, cls, fcp, ttfb = vitals.lcp, vitals.cls, vitals.fcp, vitals.ttfb
    candidates = [
        _threshold_issue(
            lcp, 2500, 4000,
            f"Largest Contentful Paint is {lcp / 1000:.1f}s (should be < 2.5s)" if lcp is not None else "",
            "Optimize largest content element loading time",
        ),
        _threshold_issue(
            cls, 0.1, 0.25,
            f"Cumulative Layout Shift is {cls:.3f} (should be < 0.1)" if cls is not None else "",
            "Add size attributes to images and embeds, avoid inserting content above existing content",
        ),
        _threshold_issue(
            fcp, 1800, 3000,
            f"First Contentful Paint is {fcp / 1000:.1f}s (should be < 1.8s)" if fcp is not None else "",
            "Reduce server response time and eliminate render-blocking resources",
        ),
        _threshold_issue(
            ttfb, 800, 1800,
            f"Time to First Byte is {_round(ttfb)}ms (should be < 800ms)" if ttfb is not None else "",
            "Optimize server response time or use a CDN",
        ),
    ]
    issues.extend(i for i in candidates if i is not None)

    if page_size > LARGE_PAGE_BYTES:
        issues.append(Issue(
            type=IssueType.WARNING,
            message=f"Page size is {page_size / 1_000_000:.1f}MB (should be < 3MB)",
            recommendation="Compress images, minify CSS/JS, and remove unused code",
        ))

    general = _general_issue(score)
    if general:
        issues.append(general)

    return PerformanceResult(
        score=score,
        load_time=load_time,
        page_size=page_size,
        request_count=request_count,
        core_web_vitals=vitals,
        opportunities=extract_opportunities(report),
        issues=issues,
    )


def degraded_result() -> PerformanceResult:
    """Result used when PageSpeed data is unavailable."""
    issues = [Issue(
        type=IssueType.INFO,
        message="Could not fetch detailed performance metrics",
        recommendation="Performance analysis limited. Try again later.",
    )]
    general = _general_issue(DEFAULT_SCORE)
    if general:
        issues.append(general)
    return PerformanceResult(score=DEFAULT_SCORE, issues=issues)


# ── Upstream call ──────────────────────────────────────────────────────────────

class PageSpeedUnavailable(Exception):
    pass


async def fetch_pagespeed(url: str, client: httpx.AsyncClient) -> PageSpeedReport:
    """Call the PageSpeed API. Raises PageSpeedUnavailable on any failure."""
    params = {"url": url, "strategy": "mobile", "category": "performance"}
    if settings.google_pagespeed_api_key:
        params["key"] = settings.google_pagespeed_api_key
    try:
        resp = await client.get(
            PAGESPEED_ENDPOINT,
            params=params,
            timeout=settings.pagespeed_timeout_seconds,
        )
    except httpx.HTTPError as e:
        raise PageSpeedUnavailable(f"request failed: {e}") from e
    if not resp.is_success:
        raise PageSpeedUnavailable(f"HTTP {resp.status_code}: {resp.text[:200]}")
    try:
        return PageSpeedReport.model_validate(resp.json())
    except (ValueError, ValidationError) as e:
        raise PageSpeedUnavailable(f"unreadable response: {e}") from e


async def analyze_performance(url: str, client: Optional[httpx.AsyncClient] = None) -> PerformanceResult:
    if client is None:
        async with build_client() as own:
            return await analyze_performance(url, own)

    url = normalize_url(url)
    try:
        report = await fetch_pagespeed(url, client)
    except PageSpeedUnavailable as e:
        print(f"⚠️  PageSpeed unavailable for {url}: {e}")
        return degraded_result()
    return score_performance(report)
