"""
app/utils/deps.py — FastAPI dependencies and response helpers shared by routers.
"""
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.services.email_service import SendGridEmailClient


def get_email_client(request: Request) -> Optional[SendGridEmailClient]:
    """Email client built in the app lifespan; None when SendGrid is not configured."""
    return getattr(request.app.state, "email_client", None)


def to_wire(value: Any) -> Any:
    """camelCase JSON-ready form of a model (or list of models)."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [to_wire(v) for v in value]
    return value


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})
