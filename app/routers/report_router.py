"""
app/routers/report_router.py
Re-send the audit report email for an existing lead.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from app.models import SendReportRequest
from app.services.email_service import SendGridEmailClient, send_audit_report
from app.utils.db_leads import get_lead, save_lead
from app.utils.deps import error_response, get_email_client
from app.utils.validation import is_valid_lead_id

router = APIRouter(prefix="/api", tags=["Reports"])


@router.post("/send-report")
async def resend_report(
    body: SendReportRequest,
    email_client: Optional[SendGridEmailClient] = Depends(get_email_client),
):
    if not body.lead_id:
        return error_response(400, "Lead ID is required")
    if not is_valid_lead_id(body.lead_id):
        return error_response(400, "Invalid lead ID")

    try:
        lead = await get_lead(body.lead_id)
        if not lead:
            return error_response(404, "Lead not found")
        if lead.audit_results is None:
            return error_response(400, "No audit results found for this lead")

        if email_client is None:
            print(f"❌ SendGrid not configured — cannot send report for lead {lead.id}")
            return error_response(500, "Failed to send email")

        try:
            await send_audit_report(
                email_client,
                to=lead.email,
                name=lead.name,
                business_name=lead.business_name,
                website_url=lead.website_url,
                audit_results=lead.audit_results,
            )
        except Exception as e:
            print(f"❌ Email send error for lead {lead.id}: {e}")
            return error_response(500, "Failed to send email")

        lead.email_sent = True
        await save_lead(lead)
        return {"success": True, "message": "Report sent successfully"}
    except Exception as e:
        print(f"❌ Send report error: {e}")
        return error_response(500, "An unexpected error occurred")
