"""
HTML feature extractor — turns a fetched page into the structural facts the
SEO scorer needs. Pure: no network access.
"""
from typing import Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel

from .prober import base_url


class PageFeatures(BaseModel):
    title: str = ""
    meta_description: Optional[str] = None
    heading_counts: dict = {}        # "h1".."h6" → count
    images_total: int = 0
    images_with_alt: int = 0
    internal_links: int = 0
    external_links: int = 0
    canonical_url: Optional[str] = None
    og_title: bool = False
    og_description: bool = False
    og_image: bool = False
    twitter_card: bool = False
    twitter_title: bool = False
    twitter_description: bool = False
    viewport: bool = False


def _meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if not tag:
        return None
    return tag.get("content") or None


def classify_link(href: str, origin: str) -> Optional[str]:
    """'internal', 'external', or None for mailto:, javascript:, bare relative, etc."""
    if href.startswith("/") or href.startswith(origin) or href.startswith("#"):
        return "internal"
    if href.startswith("http"):
        return "external"
    return None


def extract_page_features(html: str, page_url: str) -> PageFeatures:
    soup = BeautifulSoup(html, "lxml")

    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else ""

    desc = _meta_content(soup, name="description")
    desc = desc.strip() if desc else None

    heading_counts = {f"h{i}": len(soup.find_all(f"h{i}")) for i in range(1, 7)}

    imgs = soup.find_all("img")
    with_alt = sum(1 for img in imgs if img.get("alt"))

    origin = base_url(page_url)
    internal = external = 0
    for a in soup.find_all("a", href=True):
        kind = classify_link(a.get("href", ""), origin)
        if kind == "internal":
            internal += 1
        elif kind == "external":
            external += 1

    canonical = soup.find("link", rel="canonical")

    return PageFeatures(
        title=title,
        meta_description=desc or None,
        heading_counts=heading_counts,
        images_total=len(imgs),
        images_with_alt=with_alt,
        internal_links=internal,
        external_links=external,
        canonical_url=(canonical.get("href") or None) if canonical else None,
        og_title=bool(_meta_content(soup, property="og:title")),
        og_description=bool(_meta_content(soup, property="og:description")),
        og_image=bool(_meta_content(soup, property="og:image")),
        twitter_card=bool(_meta_content(soup, name="twitter:card")),
        twitter_title=bool(_meta_content(soup, name="twitter:title")),
        twitter_description=bool(_meta_content(soup, name="twitter:description")),
        viewport=bool(_meta_content(soup, name="viewport")),
    )
