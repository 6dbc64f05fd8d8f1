"""
app/services/email_service.py
Audit report emails via the SendGrid v3 API. The client is built once at
startup (SendGridEmailClient.from_settings) and passed in; a missing API key
is an EmailConfigError at construction, not at first send.
"""
import html
from typing import Optional

import httpx

from app.config import Settings
from app.models import AuditResult, IssueType
from app.services.score_calculator import generate_summary, score_color, score_label

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
TOP_ISSUES = 5


class EmailConfigError(RuntimeError):
    pass


class EmailDeliveryError(RuntimeError):
    pass


class SendGridEmailClient:
    def __init__(self, api_key: str, from_email: str, from_name: str,
                 contact_email: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if not api_key:
            raise EmailConfigError("SENDGRID_API_KEY is not set")
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.contact_email = contact_email
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "SendGridEmailClient":
        return cls(
            api_key=settings.sendgrid_api_key or "",
            from_email=settings.sendgrid_from_email,
            from_name=settings.sendgrid_from_name,
            contact_email=settings.contact_email,
        )

    async def send(self, to_email: str, subject: str, html_body: str) -> None:
        """Send one HTML email. Raises EmailDeliveryError on failure."""
        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [{"type": "text/html", "value": html_body}],
        }
        try:
            async with httpx.AsyncClient(timeout=15, transport=self._transport) as client:
                resp = await client.post(
                    SENDGRID_URL,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"SendGrid request failed: {e}") from e

        if resp.status_code not in (200, 202):
            raise EmailDeliveryError(f"SendGrid error {resp.status_code}: {resp.text[:200]}")
        print(f"✅ Email sent to {to_email}: {subject}")


# ── Report template ────────────────────────────────────────────────────────────

def _build_html(headline: str, body_html: str) -> str:
    """Wrap content in the report email layout."""
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width,initial-scale=1"></head>
<body style="margin:0;padding:0;background:#f6f9fc;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',sans-serif;color:#1f2937;">
  <table width="100%" cellpadding="0" cellspacing="0" style="background:#f6f9fc;padding:40px 0;">
    <tr><td align="center">
      <table width="600" cellpadding="0" cellspacing="0" style="max-width:600px;width:100%;background:#ffffff;border-radius:12px;">
        <tr><td style="padding:32px 40px 8px;text-align:center;">
          <h1 style="margin:0;font-size:24px;font-weight:800;color:#111827;">{headline}</h1>
        </td></tr>
        <tr><td style="padding:24px 40px 32px;">
          {body_html}
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def _score_cell(label: str, score: int) -> str:
    return (
        f'<td width="33%" style="text-align:center;padding:16px;">'
        f'<div style="font-size:12px;color:#6b7280;font-weight:600;text-transform:uppercase;">{label}</div>'
        f'<div style="font-size:24px;font-weight:800;color:{score_color(score)};">{score}/100</div>'
        f'</td>'
    )


def _check(ok: bool) -> str:
    return "✅" if ok else "❌"


def render_audit_report(name: str, business_name: str, website_url: str,
                        audit_results: AuditResult,
                        contact_email: Optional[str] = None) -> str:
    r = audit_results
    esc_url = html.escape(website_url)
    overall_color = score_color(r.overall_score)

    top_issues = [i for i in r.all_issues() if i.type in (IssueType.ERROR, IssueType.WARNING)][:TOP_ISSUES]
    issues_html = "".join(
        f'<div style="padding:12px 16px;margin-bottom:8px;background:#f9fafb;border-radius:8px;">'
        f'<div style="font-size:14px;font-weight:600;">{"🔴" if i.type == IssueType.ERROR else "🟡"} {html.escape(i.message)}</div>'
        f'<div style="font-size:13px;color:#6b7280;margin-top:4px;">➡️ {html.escape(i.recommendation)}</div>'
        f'</div>'
        for i in top_issues
    )

    seo, perf, sec = r.seo, r.performance, r.security
    title_line = (
        f'✅ "{html.escape((seo.title.content or "")[:50])}..."' if seo.title.exists else "❌ Missing"
    )
    perf_items = []
    if perf.core_web_vitals.lcp:
        perf_items.append(f"<li>LCP: {perf.core_web_vitals.lcp / 1000:.1f}s</li>")
    if perf.core_web_vitals.cls is not None:
        perf_items.append(f"<li>CLS: {perf.core_web_vitals.cls:.3f}</li>")
    if perf.page_size > 0:
        perf_items.append(f"<li>Page Size: {perf.page_size / 1024 / 1024:.2f} MB</li>")
    headers_on = sum(1 for v in sec.headers.model_dump().values() if v)

    summary = generate_summary(r.overall_score, r.seo_score, r.performance_score, r.security_score)

    cta_html = ""
    if contact_email:
        cta_html = (
            '<div style="text-align:center;margin-top:28px;">'
            '<h2 style="font-size:18px;">Need Help Improving Your Website?</h2>'
            f'<a href="mailto:{html.escape(contact_email)}" style="display:inline-block;padding:12px 28px;'
            'background:#2563eb;color:#fff;text-decoration:none;border-radius:10px;font-size:14px;font-weight:700;">'
            'Contact Us for a Free Consultation</a>'
            '</div>'
        )

    body = f"""
    <p style="font-size:15px;line-height:1.6;">Hi {html.escape(name)},</p>
    <p style="font-size:15px;line-height:1.6;">
      Thank you for using our website audit tool! Here's the complete analysis for
      <strong>{esc_url}</strong> ({html.escape(business_name)}).
    </p>

    <div style="text-align:center;margin:28px 0;">
      <div style="font-size:56px;font-weight:900;color:{overall_color};line-height:1;">{r.overall_score}</div>
      <div style="font-size:13px;color:#6b7280;">out of 100</div>
      <div style="margin-top:8px;font-size:14px;font-weight:700;color:{overall_color};">{score_label(r.overall_score)}</div>
      <p style="font-size:13px;color:#6b7280;">{html.escape(summary)}</p>
    </div>

    <table width="100%" cellpadding="0" cellspacing="0" style="margin-bottom:24px;">
      <tr>
        {_score_cell("SEO", r.seo_score)}
        {_score_cell("Performance", r.performance_score)}
        {_score_cell("Security", r.security_score)}
      </tr>
    </table>

    {"" if not top_issues else f'<h2 style="font-size:18px;">Top Issues to Fix</h2>{issues_html}'}

    <h2 style="font-size:18px;">Key Findings</h2>
    <p style="font-weight:600;margin-bottom:4px;">SEO:</p>
    <ul style="font-size:14px;line-height:1.7;">
      <li>Title Tag: {title_line}</li>
      <li>Meta Description: {_check(seo.meta_description.exists)}</li>
      <li>H1 Tags: {seo.headings.h1_count} found{" ✅" if seo.headings.h1_count == 1 else " ⚠️"}</li>
      <li>Images: {seo.images.with_alt}/{seo.images.total} have alt text</li>
    </ul>
    <p style="font-weight:600;margin-bottom:4px;">Performance:</p>
    <ul style="font-size:14px;line-height:1.7;">{"".join(perf_items)}</ul>
    <p style="font-weight:600;margin-bottom:4px;">Security:</p>
    <ul style="font-size:14px;line-height:1.7;">
      <li>HTTPS: {_check(sec.https)}</li>
      <li>SSL Valid: {_check(sec.ssl.valid)}</li>
      <li>Security Headers: {headers_on}/6 configured</li>
    </ul>

    {cta_html}

    <p style="font-size:12px;color:#9ca3af;text-align:center;margin-top:28px;">
      This report was generated on {r.audit_date.strftime("%B %d, %Y")} for {esc_url}.
    </p>
    """
    return _build_html("Website Audit Report", body)


async def send_audit_report(client: SendGridEmailClient, *, to: str, name: str,
                            business_name: str, website_url: str,
                            audit_results: AuditResult) -> None:
    """Render and send the report. Raises EmailDeliveryError on failure."""
    subject = f"Website Audit Report for {website_url}"
    body = render_audit_report(name, business_name, website_url, audit_results,
                               contact_email=client.contact_email)
    await client.send(to, subject, body)
