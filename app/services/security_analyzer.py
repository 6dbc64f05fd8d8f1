"""
app/services/security_analyzer.py
HTTPS, security-header and mixed-content inspection. Never raises: network
failures during a sub-check become issues and deductions.
"""
import re
from typing import List, Mapping, Optional, Tuple
from urllib.parse import urlparse

import httpx

from ..models import Issue, IssueType, SecurityHeaders, SecurityResult, SslInfo
from ..utils.validation import normalize_url
from .prober import REQUEST_ERRORS, build_client, fetch_headers

# Raw-markup match; misses script-built URLs and counts commented-out markup.
MIXED_CONTENT_RE = re.compile(r"""(?:src|href)=["']http://""", re.IGNORECASE)

VALID_FRAME_OPTIONS = ("deny", "sameorigin")
VALID_XSS_PROTECTION = ("1", "1; mode=block")


def count_mixed_content(html: str) -> int:
    return len(MIXED_CONTENT_RE.findall(html))


def evaluate_headers(headers: Mapping[str, str], is_https: bool) -> Tuple[SecurityHeaders, List[Issue], int]:
    """
    Check response headers for correctness, not just presence.
    Returns (header flags, issues, points to deduct). Header lookup is
    case-insensitive when given httpx.Headers; plain dicts must use lowercase keys.
    """
    issues: List[Issue] = []
    deduction = 0

    csp = headers.get("content-security-policy")
    if not csp:
        issues.append(Issue(
            type=IssueType.WARNING,
            message="Missing Content-Security-Policy header",
            recommendation="Add a Content-Security-Policy header to prevent XSS attacks",
        ))
        deduction += 10

    xcto = headers.get("x-content-type-options")
    xcto_ok = bool(xcto) and xcto.strip().lower() == "nosniff"
    if not xcto_ok:
        issues.append(Issue(
            type=IssueType.WARNING,
            message="Missing or invalid X-Content-Type-Options header",
            recommendation='Add "X-Content-Type-Options: nosniff" header',
        ))
        deduction += 5

    xfo = headers.get("x-frame-options")
    xfo_ok = bool(xfo) and xfo.strip().lower() in VALID_FRAME_OPTIONS
    if not xfo_ok:
        issues.append(Issue(
            type=IssueType.WARNING,
            message="Missing or invalid X-Frame-Options header",
            recommendation='Add "X-Frame-Options: DENY" or "SAMEORIGIN" to prevent clickjacking',
        ))
        deduction += 5

    hsts = headers.get("strict-transport-security")
    if not hsts and is_https:
        issues.append(Issue(
            type=IssueType.WARNING,
            message="Missing Strict-Transport-Security header",
            recommendation="Add HSTS header to enforce HTTPS connections",
        ))
        deduction += 10

    # Deprecated: recorded, never deducted
    xxss = headers.get("x-xss-protection")

    rp = headers.get("referrer-policy")
    if not rp:
        issues.append(Issue(
            type=IssueType.INFO,
            message="Missing Referrer-Policy header",
            recommendation="Add a Referrer-Policy header to control referrer information",
        ))
        deduction += 3

    flags = SecurityHeaders(
        content_security_policy=bool(csp),
        x_content_type_options=xcto_ok,
        x_frame_options=xfo_ok,
        strict_transport_security=bool(hsts),
        x_xss_protection=(xxss or "").strip() in VALID_XSS_PROTECTION,
        referrer_policy=bool(rp),
    )
    return flags, issues, deduction


def _is_certificate_error(e: Exception) -> bool:
    msg = str(e).lower()
    return "certificate" in msg or "ssl" in msg


async def analyze_security(url: str, client: Optional[httpx.AsyncClient] = None) -> SecurityResult:
    if client is None:
        async with build_client() as own:
            return await analyze_security(url, own)

    url = normalize_url(url)
    is_https = urlparse(url).scheme == "https"
    issues: List[Issue] = []
    score = 100

    if not is_https:
        issues.append(Issue(
            type=IssueType.ERROR,
            message="Website is not using HTTPS",
            recommendation="Install an SSL certificate and redirect HTTP to HTTPS",
        ))
        score -= 30

    headers = await fetch_headers(client, url)
    if headers is None:
        issues.append(Issue(
            type=IssueType.ERROR,
            message="Could not connect to website",
            recommendation="Ensure the website is accessible",
        ))
        score -= 20
        header_flags = SecurityHeaders()
    else:
        header_flags, header_issues, deduction = evaluate_headers(headers, is_https)
        issues.extend(header_issues)
        score -= deduction

    # Mixed content + reachability-based SSL validity share one GET
    mixed_content = False
    ssl_valid = False
    if is_https:
        try:
            resp = await client.get(url)
            ssl_valid = resp.status_code < 500
            matches = count_mixed_content(resp.text)
            if matches:
                mixed_content = True
                issues.append(Issue(
                    type=IssueType.WARNING,
                    message=f"Potential mixed content detected ({matches} HTTP resources)",
                    recommendation="Update all resource URLs to use HTTPS",
                ))
                score -= 10
        except REQUEST_ERRORS as e:
            if _is_certificate_error(e):
                issues.append(Issue(
                    type=IssueType.ERROR,
                    message="SSL certificate issue detected",
                    recommendation="Check your SSL certificate validity and configuration",
                ))
                score -= 20

    score = max(0, score)

    if score < 50:
        issues.append(Issue(
            type=IssueType.ERROR,
            message="Website security needs significant improvement",
            recommendation="Prioritize adding HTTPS and security headers",
        ))

    return SecurityResult(
        score=score,
        ssl=SslInfo(valid=ssl_valid),
        https=is_https,
        headers=header_flags,
        mixed_content=mixed_content,
        issues=issues,
    )
