"""
app/utils/validation.py — inbound lead form checks and URL normalisation.
"""
import re
import uuid
from typing import Optional
from urllib.parse import urlparse

from app.models import LeadForm

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
MAX_NAME_LENGTH = 100
MAX_BUSINESS_NAME_LENGTH = 200


class LeadValidationError(ValueError):
    """Raised when the lead form fails validation. str(e) is user-facing."""


def normalize_url(url: str) -> str:
    """Trim and prefix https:// when no scheme is given."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def is_valid_url(url: str) -> bool:
    if not url.isprintable():
        return False
    try:
        p = urlparse(url)
        if p.scheme not in ("http", "https") or not p.hostname:
            return False
        if any(ch.isspace() for ch in p.netloc):
            return False
        p.port  # raises ValueError on a malformed port
        return True
    except ValueError:
        return False


def is_valid_lead_id(lead_id: Optional[str]) -> bool:
    if not lead_id:
        return False
    try:
        uuid.UUID(lead_id)
        return True
    except ValueError:
        return False


def validate_lead_form(form: LeadForm) -> LeadForm:
    """
    Return a cleaned copy of the form (trimmed fields, lowercased email,
    normalised URL) or raise LeadValidationError.
    """
    fields = {
        "name": (form.name or "").strip(),
        "business_name": (form.business_name or "").strip(),
        "email": (form.email or "").strip(),
        "whatsapp_no": (form.whatsapp_no or "").strip(),
        "website_url": (form.website_url or "").strip(),
    }
    if not all(fields.values()):
        raise LeadValidationError("All fields are required")

    if len(fields["name"]) > MAX_NAME_LENGTH:
        raise LeadValidationError(f"Name cannot exceed {MAX_NAME_LENGTH} characters")
    if len(fields["business_name"]) > MAX_BUSINESS_NAME_LENGTH:
        raise LeadValidationError(f"Business name cannot exceed {MAX_BUSINESS_NAME_LENGTH} characters")

    if not EMAIL_RE.match(fields["email"]):
        raise LeadValidationError("Invalid email format")
    fields["email"] = fields["email"].lower()

    fields["website_url"] = normalize_url(fields["website_url"])
    if not is_valid_url(fields["website_url"]):
        raise LeadValidationError("Invalid website URL")

    return LeadForm(**fields)
