"""
app/services/audit_engine.py
Runs the SEO, performance and security analyzers concurrently and merges them
into one AuditResult. Only the SEO page fetch may fail the whole audit.
"""
import asyncio
from datetime import datetime, timezone
from typing import Optional

import httpx

from ..models import AuditResult
from ..utils.validation import normalize_url
from .performance_analyzer import analyze_performance
from .prober import build_client
from .score_calculator import calculate_overall_score
from .security_analyzer import analyze_security
from .seo_analyzer import analyze_seo


async def perform_full_audit(url: str, client: Optional[httpx.AsyncClient] = None) -> AuditResult:
    """
    Audit url. Raises PageFetchError if the page cannot be fetched;
    performance and security degrade internally instead of raising.
    """
    if client is None:
        async with build_client() as own:
            return await perform_full_audit(url, own)

    url = normalize_url(url)
    seo_task = asyncio.create_task(analyze_seo(url, client))
    others = [
        asyncio.create_task(analyze_performance(url, client)),
        asyncio.create_task(analyze_security(url, client)),
    ]
    try:
        seo = await seo_task
    except BaseException:
        # siblings must not outlive the shared client
        for task in others:
            task.cancel()
        await asyncio.gather(*others, return_exceptions=True)
        raise
    performance, security = await asyncio.gather(*others)

    return AuditResult(
        seo_score=seo.score,
        performance_score=performance.score,
        security_score=security.score,
        overall_score=calculate_overall_score(seo.score, performance.score, security.score),
        seo=seo,
        performance=performance,
        security=security,
        audit_date=datetime.now(timezone.utc),
        website_url=url,
    )
