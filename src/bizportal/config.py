"""Configuration models for the portal core."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingConfig(BaseModel):
    """Configures sentence packing for ingested website text.

    `min_chars` and `overlap_chars` default to 50% and 15% of `max_chars`.
    """

    max_chars: int = Field(default=700, ge=50)
    min_chars: int | None = Field(default=None, ge=0)
    overlap_chars: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _derive_bounds(self) -> "ChunkingConfig":
        if self.min_chars is None:
            self.min_chars = self.max_chars // 2
        if self.overlap_chars is None:
            self.overlap_chars = (self.max_chars * 15) // 100
        if self.min_chars > self.max_chars:
            raise ValueError("min_chars must not exceed max_chars")
        if self.overlap_chars >= self.max_chars:
            raise ValueError("overlap_chars must be less than max_chars")
        return self


class RetrievalConfig(BaseModel):
    """Configures lexical ranking and reply snippets."""

    default_top_k: int = Field(default=3, ge=1)
    snippet_max_len: int = Field(default=200, ge=20)


class QuietHoursConfig(BaseModel):
    """Window during which inbound messages get a fixed advisory reply.

    `start` and `end` are "HH:MM" strings in `timezone`. A window whose start
    is later than its end wraps past midnight.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    start: str = "20:00"
    end: str = "08:00"
    timezone: str = "Asia/Dubai"


class PaymentConfig(BaseModel):
    """Invoice defaults for the payment branch."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "http://localhost:3000"
    currency: str = Field(default="AED", min_length=3, max_length=3)
    default_amount: int = Field(default=100, gt=0)


class PortalSettings(BaseSettings):
    """Process-wide settings loaded once from `PORTAL_*` environment variables.

    The derived config objects are built here and handed to the components
    that need them; nothing below the app factory reads the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Quiet hours
    quiet_hours_enabled: bool = False
    quiet_hours_start: str = "20:00"
    quiet_hours_end: str = "08:00"
    quiet_hours_tz: str = "Asia/Dubai"

    # Business locale
    timezone: str = "Asia/Dubai"

    # Payments
    base_url: str = "http://localhost:3000"
    currency: str = "AED"
    invoice_amount: int = 100

    # Storage / ingestion
    database_path: str | None = None
    website_fixture: str = "fixtures/website.html"
    chunk_max_chars: int = 700

    # Logging
    log_json: bool = False

    def quiet_hours(self) -> QuietHoursConfig:
        return QuietHoursConfig(
            enabled=self.quiet_hours_enabled,
            start=self.quiet_hours_start,
            end=self.quiet_hours_end,
            timezone=self.quiet_hours_tz,
        )

    def payments(self) -> PaymentConfig:
        return PaymentConfig(
            base_url=self.base_url.rstrip("/"),
            currency=self.currency,
            default_amount=self.invoice_amount,
        )

    def chunking(self) -> ChunkingConfig:
        return ChunkingConfig(max_chars=self.chunk_max_chars)
