from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    # MongoDB (unset → in-memory lead store)
    mongo_uri: Optional[str] = None
    mongo_db_name: str = "site_audit"
    # App
    environment: str = "development"
    app_url: str = "http://localhost:3000"   # Frontend URL for report links
    # Google PageSpeed Insights
    google_pagespeed_api_key: Optional[str] = None
    pagespeed_timeout_seconds: int = 60
    # Outbound requests
    request_timeout_seconds: int = 15
    user_agent: str = "Mozilla/5.0 (compatible; SiteAuditBot/1.0)"
    # Rate limiting
    rate_limit_per_minute: int = 10
    # SendGrid email
    sendgrid_api_key: Optional[str] = None
    sendgrid_from_email: str = "audit@siteaudit.app"
    sendgrid_from_name: str = "Site Audit"
    contact_email: str = "contact@siteaudit.app"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
