"""
app/routers/audit_router.py
Lead capture + audit: validate the form, create the lead, run the audit,
persist it and email the report. Email delivery is best-effort.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from app.models import Lead, LeadForm
from app.services.audit_engine import perform_full_audit
from app.services.email_service import SendGridEmailClient, send_audit_report
from app.utils.db_leads import create_lead, save_lead
from app.utils.deps import error_response, get_email_client, to_wire
from app.utils.validation import LeadValidationError, validate_lead_form

router = APIRouter(prefix="/api", tags=["Audit"])


async def deliver_report(lead: Lead, email_client: Optional[SendGridEmailClient]) -> bool:
    """Email the lead's report and mark it sent. Returns False instead of raising."""
    if email_client is None:
        print(f"⚠️  SendGrid not configured — skipping report email to {lead.email}")
        return False
    try:
        await send_audit_report(
            email_client,
            to=lead.email,
            name=lead.name,
            business_name=lead.business_name,
            website_url=lead.website_url,
            audit_results=lead.audit_results,
        )
        lead.email_sent = True
        await save_lead(lead)
    except Exception as e:
        print(f"❌ Email send error for lead {lead.id}: {e}")
        lead.email_sent = False
        return False
    return True


@router.post("/audit")
async def run_audit(
    form: LeadForm,
    email_client: Optional[SendGridEmailClient] = Depends(get_email_client),
):
    try:
        clean = validate_lead_form(form)
    except LeadValidationError as e:
        return error_response(400, str(e))

    try:
        lead = await create_lead(clean)

        try:
            audit_results = await perform_full_audit(lead.website_url)
        except Exception as e:
            print(f"❌ Audit error for {lead.website_url}: {e}")
            return error_response(
                500,
                "Failed to audit website. Please check the URL and try again.",
                leadId=lead.id,
            )

        lead.audit_results = audit_results
        await save_lead(lead)
        print(f"✅ Audit complete for {lead.website_url}: {audit_results.overall_score}/100")

        email_sent = await deliver_report(lead, email_client)

        return {
            "success": True,
            "leadId": lead.id,
            "auditResults": to_wire(audit_results),
            "emailSent": email_sent,
        }
    except Exception as e:
        print(f"❌ Audit API error: {e}")
        return error_response(500, "An unexpected error occurred")
