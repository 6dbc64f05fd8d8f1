from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from enum import Enum


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire and in stored documents."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IssueType(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Issue(CamelModel):
    model_config = ConfigDict(frozen=True)

    type: IssueType
    message: str
    recommendation: str


# ─── SEO ───────────────────────────────────────────────────────────────────────

class TitleInfo(CamelModel):
    exists: bool = False
    content: Optional[str] = None
    length: int = 0
    is_optimal: bool = False


class MetaDescriptionInfo(CamelModel):
    exists: bool = False
    content: Optional[str] = None
    length: int = 0
    is_optimal: bool = False


class HeadingStats(CamelModel):
    h1_count: int = 0
    h2_count: int = 0
    h3_count: int = 0
    h4_count: int = 0
    h5_count: int = 0
    h6_count: int = 0
    has_proper_hierarchy: bool = False


class ImageStats(CamelModel):
    total: int = 0
    with_alt: int = 0
    without_alt: int = 0


class LinkStats(CamelModel):
    internal: int = 0
    external: int = 0
    broken: int = 0   # reachability is not checked


class CanonicalInfo(CamelModel):
    exists: bool = False
    url: Optional[str] = None


class OpenGraphInfo(CamelModel):
    has_title: bool = False
    has_description: bool = False
    has_image: bool = False


class TwitterCardInfo(CamelModel):
    has_card: bool = False
    has_title: bool = False
    has_description: bool = False


class SeoResult(CamelModel):
    score: int = Field(..., ge=0, le=100)
    title: TitleInfo
    meta_description: MetaDescriptionInfo
    headings: HeadingStats
    images: ImageStats
    links: LinkStats
    canonical: CanonicalInfo
    open_graph: OpenGraphInfo
    twitter_card: TwitterCardInfo
    robots_txt: bool = False
    sitemap: bool = False
    viewport: bool = False
    issues: List[Issue] = []


# ─── Performance ───────────────────────────────────────────────────────────────

class CoreWebVitals(CamelModel):
    lcp: Optional[float] = None
    fid: Optional[float] = None
    cls: Optional[float] = None
    fcp: Optional[float] = None
    ttfb: Optional[float] = None


class Opportunity(CamelModel):
    title: str
    description: str = ""
    savings: str


class PerformanceResult(CamelModel):
    score: int = Field(..., ge=0, le=100)
    load_time: int = 0        # ms (speed index)
    page_size: int = 0        # bytes
    request_count: int = 0
    core_web_vitals: CoreWebVitals = CoreWebVitals()
    opportunities: List[Opportunity] = []
    issues: List[Issue] = []


# ─── Security ──────────────────────────────────────────────────────────────────

class SslInfo(CamelModel):
    valid: bool = False
    issuer: Optional[str] = None        # never populated
    expiry_date: Optional[str] = None   # never populated


class SecurityHeaders(CamelModel):
    content_security_policy: bool = False
    x_content_type_options: bool = False
    x_frame_options: bool = False
    strict_transport_security: bool = False
    x_xss_protection: bool = False
    referrer_policy: bool = False


class SecurityResult(CamelModel):
    score: int = Field(..., ge=0, le=100)
    ssl: SslInfo = SslInfo()
    https: bool = False
    headers: SecurityHeaders = SecurityHeaders()
    mixed_content: bool = False
    issues: List[Issue] = []


# ─── Audit ─────────────────────────────────────────────────────────────────────

class AuditResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    seo_score: int = Field(..., ge=0, le=100)
    performance_score: int = Field(..., ge=0, le=100)
    security_score: int = Field(..., ge=0, le=100)
    overall_score: int = Field(..., ge=0, le=100)
    seo: SeoResult
    performance: PerformanceResult
    security: SecurityResult
    audit_date: datetime
    website_url: str

    def all_issues(self) -> List[Issue]:
        return [*self.seo.issues, *self.performance.issues, *self.security.issues]


# ─── Leads ─────────────────────────────────────────────────────────────────────

class LeadForm(CamelModel):
    """Inbound form payload. Fields are checked by validate_lead_form()."""
    name: Optional[str] = None
    business_name: Optional[str] = None
    email: Optional[str] = None
    whatsapp_no: Optional[str] = None
    website_url: Optional[str] = None

    model_config = {
        "coerce_numbers_to_str": True,
        "json_schema_extra": {
            "example": {
                "name": "Jane Doe",
                "businessName": "Doe Bakery",
                "email": "jane@example.com",
                "whatsappNo": "+15551234567",
                "websiteUrl": "example.com",
            }
        }
    }


class Lead(CamelModel):
    id: str
    name: str
    business_name: str
    email: str
    whatsapp_no: str
    website_url: str
    audit_results: Optional[AuditResult] = None
    email_sent: bool = False
    created_at: datetime
    updated_at: datetime


class SendReportRequest(CamelModel):
    lead_id: Optional[str] = None
