"""
app/utils/db_leads.py — MongoDB persistence for leads and their audit results.
Automatically falls back to an in-memory dict when MongoDB is unavailable.
Stored documents carry audit_schema_version so the audit shape can evolve.
"""
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from app.database import get_db
from app.models import Lead, LeadForm

AUDIT_SCHEMA_VERSION = 1

_mem: dict = {}  # in-memory fallback


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_doc(lead: Lead) -> dict:
    doc = lead.model_dump(mode="json", exclude={"id"})
    doc["lead_id"] = lead.id
    doc["audit_schema_version"] = AUDIT_SCHEMA_VERSION
    return doc


def _from_doc(doc: dict) -> Lead:
    doc = dict(doc)
    doc.pop("_id", None)
    doc.pop("audit_schema_version", None)
    lead_id = doc.pop("lead_id")
    return Lead(id=lead_id, **doc)


async def create_lead(form: LeadForm) -> Lead:
    now = _now()
    lead = Lead(
        id=str(uuid.uuid4()),
        name=form.name,
        business_name=form.business_name,
        email=form.email,
        whatsapp_no=form.whatsapp_no,
        website_url=form.website_url,
        audit_results=None,
        email_sent=False,
        created_at=now,
        updated_at=now,
    )
    doc = _to_doc(lead)
    db = get_db()
    if db is not None:
        await db.leads.insert_one(doc)
    else:
        _mem[lead.id] = doc
    return lead


async def get_lead(lead_id: str) -> Optional[Lead]:
    db = get_db()
    if db is not None:
        doc = await db.leads.find_one({"lead_id": lead_id})
    else:
        doc = _mem.get(lead_id)
    return _from_doc(doc) if doc else None


async def save_lead(lead: Lead) -> None:
    lead.updated_at = _now()
    doc = _to_doc(lead)
    db = get_db()
    if db is not None:
        await db.leads.replace_one({"lead_id": lead.id}, doc, upsert=True)
    else:
        _mem[lead.id] = doc


async def list_leads(page: int = 1, limit: int = 20) -> Tuple[List[Lead], int]:
    """Newest first. Returns (leads on this page, total lead count)."""
    skip = (max(page, 1) - 1) * limit
    db = get_db()
    if db is not None:
        total = await db.leads.count_documents({})
        cursor = db.leads.find({}).sort("created_at", -1).skip(skip).limit(limit)
        return [_from_doc(doc) async for doc in cursor], total
    leads = sorted((_from_doc(d) for d in _mem.values()), key=lambda l: l.created_at, reverse=True)
    return leads[skip: skip + limit], len(leads)


def clear_memory_store() -> None:
    _mem.clear()
