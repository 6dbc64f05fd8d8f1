"""
Leads router — list leads and fetch a single lead with its audit results.
"""
import math

from fastapi import APIRouter, Query

from app.utils.db_leads import get_lead, list_leads
from app.utils.deps import error_response, to_wire
from app.utils.validation import is_valid_lead_id

router = APIRouter(prefix="/api/leads", tags=["Leads"])


@router.get("")
async def get_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List leads, newest first."""
    try:
        leads, total = await list_leads(page=page, limit=limit)
    except Exception as e:
        print(f"❌ Get leads error: {e}")
        return error_response(500, "Failed to fetch leads")
    return {
        "success": True,
        "data": to_wire(leads),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


@router.get("/{lead_id}")
async def get_single_lead(lead_id: str):
    if not is_valid_lead_id(lead_id):
        return error_response(400, "Invalid lead ID")
    try:
        lead = await get_lead(lead_id)
    except Exception as e:
        print(f"❌ Get lead error: {e}")
        return error_response(500, "Failed to fetch lead")
    if not lead:
        return error_response(404, "Lead not found")
    return {"success": True, "data": to_wire(lead)}
