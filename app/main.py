"""
Site Audit FastAPI Application — main entry point.
Lead capture, website audit (SEO / performance / security) and emailed reports.
"""
import os, sys, asyncio
from contextlib import asynccontextmanager

if sys.platform == 'win32':
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .database import connect_db, close_db, get_db
from .routers.audit_router import router as audit_router
from .routers.leads_router import router as leads_router
from .routers.report_router import router as report_router
from .services.email_service import EmailConfigError, SendGridEmailClient
from .utils.deps import error_response

from .config import get_settings
from .middleware.rate_limit import RateLimitMiddleware

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await connect_db()
    except Exception as e:
        print(f"⚠️  MongoDB not available — using in-memory store: {e}")
        await close_db()

    try:
        app.state.email_client = SendGridEmailClient.from_settings(settings)
    except EmailConfigError as e:
        print(f"⚠️  Email disabled: {e}")
        app.state.email_client = None

    yield

    await close_db()


app = FastAPI(
    title="Site Audit API",
    description=(
        "**Site Audit** — free website audits for lead capture\n\n"
        "Features:\n"
        "- SEO markup inspection\n"
        "- Performance metrics via Google PageSpeed Insights\n"
        "- HTTPS and security header checks\n"
        "- Emailed audit reports\n"
    ),
    version="1.0.0",
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)

app.add_middleware(RateLimitMiddleware)

# Add EXTRA_ALLOWED_ORIGINS env var (comma-separated) for preview/staging URLs.
_base_origins = [settings.app_url]
_dev_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
_extra = os.getenv("EXTRA_ALLOWED_ORIGINS", "")
_extra_origins = [o.strip() for o in _extra.split(",") if o.strip()]

ALLOWED_ORIGINS = _base_origins + _extra_origins + (
    _dev_origins if settings.environment != "production" else []
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error body is {"error": "..."}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Invalid request")


# Routers
app.include_router(audit_router)
app.include_router(leads_router)
app.include_router(report_router)


@app.get("/", tags=["Health"])
async def root():
    return {"service": "Site Audit API", "version": "1.0.0", "status": "running", "docs": "/docs"}


@app.api_route("/health", methods=["GET", "HEAD"], tags=["Health"])
async def health(request: Request):
    return {
        "status": "ok",
        "database": "connected" if get_db() is not None else "in-memory fallback",
        "environment": settings.environment,
        "email": "configured" if getattr(request.app.state, "email_client", None) else "disabled",
        "pagespeed_api_key": bool(settings.google_pagespeed_api_key),
    }
