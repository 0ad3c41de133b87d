# vendorcart/settings.py
from __future__ import annotations
from typing import List, Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import os

def _parse_cors(v: Optional[str | List[str]]) -> List[str]:
    """
    Accept JSON array (e.g. '["http://localhost:3000"]') or
    comma-separated string ('http://localhost:3000,http://127.0.0.1:3000').
    """
    if v is None:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    if isinstance(v, list):
        return v
    s = v.strip()
    if not s:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    try:
        parsed = json.loads(s)
        if isinstance(parsed, list) and all(isinstance(x, str) for x in parsed):
            return parsed
    except json.JSONDecodeError:
        pass
    return [p.strip() for p in s.split(",") if p.strip()]

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # --- API ---
    api_host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("API_HOST",))
    api_port: int = Field(default=8000,        validation_alias=AliasChoices("API_PORT",))
    cors_origins_raw: Optional[str | List[str]] = Field(
        default=None, validation_alias=AliasChoices("CORS_ORIGINS",)
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL",))

    # --- Postgres ---
    database_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("DATABASE_URL",)
    )
    db_pool_min: int = Field(default=2,  validation_alias=AliasChoices("DB_POOL_MIN",))
    db_pool_max: int = Field(default=10, validation_alias=AliasChoices("DB_POOL_MAX",))

    # --- Firebase (proof-of-payment storage) ---
    firebase_project_id: str = Field(
        default="vendorcart",
        validation_alias=AliasChoices("FIREBASE_PROJECT_ID",)
    )
    google_application_credentials: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_APPLICATION_CREDENTIALS",)
    )
    firebase_storage_bucket: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FIREBASE_STORAGE_BUCKET",)
    )
    proof_upload_prefix: str = Field(
        default="partner-order-screenshots",
        validation_alias=AliasChoices("PROOF_UPLOAD_PREFIX",)
    )
    max_proof_bytes: int = Field(
        default=5 * 1024 * 1024, validation_alias=AliasChoices("MAX_PROOF_BYTES",)
    )

    # --- Pricing / display ---
    currency: str = Field(default="PKR", validation_alias=AliasChoices("CURRENCY",))
    discount_ending_soon_hours: int = Field(
        default=24, validation_alias=AliasChoices("DISCOUNT_ENDING_SOON_HOURS",)
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors(self.cors_origins_raw)

# singleton
settings = Settings()

# firebase_admin reads the credentials path from the process env
if settings.google_application_credentials:
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = settings.google_application_credentials
