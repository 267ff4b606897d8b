from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "HelioSuite API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_DOMAIN: Optional[str] = Field(None, env="FRONTEND_DOMAIN")

    HELIOSUITE_DOMAINS: List[str] = [
        "https://app.heliosuite.com",
        "https://heliosuite.com",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (document store + identity provider)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = Field(None, env="SUPABASE_URL")
    SUPABASE_ANON_KEY: Optional[str] = Field(None, env="SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = Field(None, env="SUPABASE_SERVICE_ROLE_KEY")

    # -------------------------------------------------
    # Business defaults
    # -------------------------------------------------
    DEFAULT_PAGE_SIZE: int = Field(20, env="DEFAULT_PAGE_SIZE", description="Page size for paginated queries (default: 20)")
    DEFAULT_MINIMUM_STOCK: int = Field(10, env="DEFAULT_MINIMUM_STOCK", description="Low-stock threshold for new products (default: 10)")
    ACTIVITY_LOG_DEFAULT_LIMIT: int = Field(50, env="ACTIVITY_LOG_DEFAULT_LIMIT", description="Entries returned per actor history (default: 50)")

    # Disabled identities are banned for this long (supabase ban_duration)
    DISABLED_BAN_DURATION: str = "876000h"

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

if settings.FRONTEND_DOMAIN:
    domain = settings.FRONTEND_DOMAIN
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

cors_origins.extend([d.rstrip("/") for d in settings.HELIOSUITE_DOMAINS])

settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
