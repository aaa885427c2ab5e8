"""Application settings and configuration helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AliasChoices, AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseSettings):
    """Strongly-typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="Formulas Librarian", description="Human-readable service name.")
    environment: str = Field(default="local", description="Deployment environment identifier.")
    log_level: str = Field(default="INFO", description="Application log level.")

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "google_generative_ai_api_key"),
        description="Gemini API key. Requests are refused with 503 when missing.",
    )
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model identifier.")

    gcs_bucket_name: str = Field(default="united-formulas-files", description="Grounding document bucket.")
    gcs_credentials_base64: str | None = Field(
        default=None,
        description="Base64-encoded service account JSON (production deployments).",
    )
    google_application_credentials: Path | None = Field(
        default=None,
        description="Service account key file (local development).",
    )

    guide_blob_name: str = Field(default="product_guide.txt", description="Catalog guide object name.")
    delivery_blob_name: str = Field(
        default="delivery_zipcodes.json",
        description="Delivery-zone dataset object name.",
    )
    use_case_blob_name: str = Field(default="use_cases.json", description="Use-case map object name.")

    fallback_guide_path: Path = Field(
        default=DATA_DIR / "product_guide_fallback.txt",
        description="Local catalog guide used when the remote one is empty.",
    )
    premium_products_path: Path = Field(
        default=DATA_DIR / "premium_products.json",
        description="Curated premium product dataset.",
    )

    metadata_cache_ttl_seconds: float = Field(default=300.0, gt=0, description="Metadata snapshot lifetime.")

    rate_limit_enabled: bool = Field(default=True, description="Toggle per-client request quotas.")
    rate_limit_max_requests: int = Field(default=20, ge=1, description="Requests allowed per window.")
    rate_limit_window_seconds: float = Field(default=60.0, gt=0, description="Quota window length.")
    rate_limit_max_clients: int = Field(default=10_000, ge=1, description="Tracked client entries.")
    trust_x_forwarded_for: bool = Field(
        default=False,
        description="Use X-Forwarded-For for client identity (only behind a trusted proxy).",
    )

    max_message_length: int = Field(default=2000, ge=1, description="Maximum characters per message.")
    max_history_items: int = Field(default=20, ge=0, description="History entries kept after sanitizing.")
    max_history_chars: int = Field(default=12_000, ge=0, description="History character budget.")
    router_history_turns: int = Field(default=4, ge=0, description="Turns shown to the intent classifier.")
    document_text_limit: int = Field(default=30_000, ge=1, description="Cap on grounding document text.")

    frontend_origin: AnyHttpUrl | None = Field(
        default=None,
        description="Allowed frontend origin (CORS). If omitted, defaults to localhost dev server.",
    )
    additional_origins: List[AnyHttpUrl] = Field(
        default_factory=list,
        description="Additional allowed CORS origins for embedded chat widgets.",
    )

    @property
    def cors_origins(self) -> list[str]:
        """Return the full list of allowed CORS origins."""

        origins: list[str] = []

        if self.frontend_origin:
            origins.append(str(self.frontend_origin).rstrip("/"))
        else:
            origins.extend([
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ])

        for origin in self.additional_origins:
            origins.append(str(origin).rstrip("/"))

        # Deduplicate while preserving order
        seen: set[str] = set()
        unique: list[str] = []
        for origin in origins:
            if origin not in seen:
                seen.add(origin)
                unique.append(origin)

        return unique

    @property
    def gemini_enabled(self) -> bool:
        return bool(self.gemini_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
