"""
app/services/seo_analyzer.py
On-page SEO scoring: fixed, additive deductions from 100 over the extracted
page features plus the robots.txt / sitemap.xml probes.
"""
import asyncio
from typing import List, Optional

import httpx

from ..models import (
    CanonicalInfo, HeadingStats, ImageStats, Issue, IssueType, LinkStats,
    MetaDescriptionInfo, OpenGraphInfo, SeoResult, TitleInfo, TwitterCardInfo,
)
from ..utils.validation import normalize_url
from .html_extractor import PageFeatures, extract_page_features
from .prober import base_url, build_client, fetch_page, probe_resource

TITLE_RANGE = (30, 60)
DESCRIPTION_RANGE = (120, 160)
MAX_ALT_DEDUCTION = 10


def _issue(kind: IssueType, message: str, recommendation: str) -> Issue:
    return Issue(type=kind, message=message, recommendation=recommendation)


def score_seo(features: PageFeatures, robots_txt: bool, sitemap: bool) -> SeoResult:
    """Pure scoring step; identical inputs always give identical output."""
    issues: List[Issue] = []
    score = 100

    # Title
    title_len = len(features.title)
    title_ok = TITLE_RANGE[0] <= title_len <= TITLE_RANGE[1]
    if not features.title:
        issues.append(_issue(IssueType.ERROR, "Missing title tag",
                             "Add a descriptive title tag between 30-60 characters"))
        score -= 15
    elif not title_ok:
        issues.append(_issue(
            IssueType.WARNING,
            f"Title length ({title_len} chars) is {'too short' if title_len < TITLE_RANGE[0] else 'too long'}",
            "Keep title between 30-60 characters for optimal display in search results",
        ))
        score -= 5

    # Meta description
    desc = features.meta_description
    desc_len = len(desc) if desc else 0
    desc_ok = DESCRIPTION_RANGE[0] <= desc_len <= DESCRIPTION_RANGE[1]
    if not desc:
        issues.append(_issue(IssueType.ERROR, "Missing meta description",
                             "Add a meta description between 120-160 characters"))
        score -= 10
    elif not desc_ok:
        issues.append(_issue(
            IssueType.WARNING,
            f"Meta description length ({desc_len} chars) is {'too short' if desc_len < DESCRIPTION_RANGE[0] else 'too long'}",
            "Keep meta description between 120-160 characters",
        ))
        score -= 3

    # Headings
    counts = features.heading_counts
    h1 = counts.get("h1", 0)
    if h1 == 0:
        issues.append(_issue(IssueType.ERROR, "Missing H1 heading",
                             "Add exactly one H1 heading that describes the page content"))
        score -= 10
    elif h1 > 1:
        issues.append(_issue(IssueType.WARNING, f"Multiple H1 headings found ({h1})",
                             "Use only one H1 heading per page"))
        score -= 5

    # Image alt text
    without_alt = features.images_total - features.images_with_alt
    if without_alt > 0:
        issues.append(_issue(IssueType.WARNING, f"{without_alt} image(s) missing alt text",
                             "Add descriptive alt text to all images for accessibility and SEO"))
        score -= min(without_alt * 2, MAX_ALT_DEDUCTION)

    # Canonical
    if not features.canonical_url:
        issues.append(_issue(IssueType.INFO, "No canonical URL specified",
                             "Add a canonical URL to prevent duplicate content issues"))
        score -= 3

    # Open Graph: one flat deduction however many are missing
    if not (features.og_title and features.og_description and features.og_image):
        issues.append(_issue(IssueType.INFO, "Incomplete Open Graph tags",
                             "Add og:title, og:description, and og:image for better social sharing"))
        score -= 3

    # Twitter Card
    if not features.twitter_card:
        issues.append(_issue(IssueType.INFO, "Missing Twitter Card tags",
                             "Add Twitter Card tags for better Twitter sharing"))
        score -= 2

    # Viewport
    if not features.viewport:
        issues.append(_issue(IssueType.ERROR, "Missing viewport meta tag",
                             "Add viewport meta tag for mobile responsiveness"))
        score -= 10

    if not robots_txt:
        issues.append(_issue(IssueType.INFO, "No robots.txt file found",
                             "Add a robots.txt file to guide search engine crawlers"))
        score -= 2

    if not sitemap:
        issues.append(_issue(IssueType.INFO, "No sitemap.xml file found",
                             "Add a sitemap.xml to help search engines discover your pages"))
        score -= 2

    score = max(0, score)

    return SeoResult(
        score=score,
        title=TitleInfo(
            exists=bool(features.title),
            content=features.title or None,
            length=title_len,
            is_optimal=title_ok,
        ),
        meta_description=MetaDescriptionInfo(
            exists=bool(desc),
            content=desc,
            length=desc_len,
            is_optimal=desc_ok,
        ),
        headings=HeadingStats(
            h1_count=h1,
            h2_count=counts.get("h2", 0),
            h3_count=counts.get("h3", 0),
            h4_count=counts.get("h4", 0),
            h5_count=counts.get("h5", 0),
            h6_count=counts.get("h6", 0),
            has_proper_hierarchy=h1 == 1 and counts.get("h2", 0) > 0,
        ),
        images=ImageStats(
            total=features.images_total,
            with_alt=features.images_with_alt,
            without_alt=without_alt,
        ),
        links=LinkStats(
            internal=features.internal_links,
            external=features.external_links,
            broken=0,
        ),
        canonical=CanonicalInfo(exists=bool(features.canonical_url), url=features.canonical_url),
        open_graph=OpenGraphInfo(
            has_title=features.og_title,
            has_description=features.og_description,
            has_image=features.og_image,
        ),
        twitter_card=TwitterCardInfo(
            has_card=features.twitter_card,
            has_title=features.twitter_title,
            has_description=features.twitter_description,
        ),
        robots_txt=robots_txt,
        sitemap=sitemap,
        viewport=features.viewport,
        issues=issues,
    )


async def analyze_seo(url: str, client: Optional[httpx.AsyncClient] = None) -> SeoResult:
    """
    Fetch and score the page. Raises PageFetchError when the page itself is
    unreachable; robots.txt / sitemap.xml failures only cost points.
    """
    if client is None:
        async with build_client() as own:
            return await analyze_seo(url, own)

    url = normalize_url(url)
    resp = await fetch_page(client, url)
    features = extract_page_features(resp.text, url)

    root = base_url(url)
    robots_txt, sitemap = await asyncio.gather(
        probe_resource(client, f"{root}/robots.txt"),
        probe_resource(client, f"{root}/sitemap.xml"),
    )
    return score_seo(features, robots_txt, sitemap)
