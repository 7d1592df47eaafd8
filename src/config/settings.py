"""
Configuration Management for Expense Reports

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Transport credentials are optional on purpose: a missing credential turns
into a "not configured" delivery outcome, never into a startup crash.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmailSettings(BaseSettings):
    """SMTP email transport configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    user: Optional[str] = Field(
        default=None,
        description="SMTP login, also used as the From address"
    )
    password: Optional[str] = Field(
        default=None,
        description="SMTP password or app password"
    )
    smtp_host: str = Field(
        default="smtp.gmail.com",
        description="SMTP server host"
    )
    smtp_port: int = Field(
        default=587,
        ge=1,
        le=65535,
        description="SMTP server port"
    )
    use_tls: bool = Field(
        default=True,
        description="Upgrade the connection with STARTTLS"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Socket timeout for SMTP calls"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password)


class TwilioSettings(BaseSettings):
    """Twilio SMS transport configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TWILIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    account_sid: Optional[str] = Field(
        default=None,
        description="Twilio account SID"
    )
    auth_token: Optional[str] = Field(
        default=None,
        description="Twilio auth token"
    )
    phone_number: Optional[str] = Field(
        default=None,
        description="Twilio sender phone number"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.phone_number)


class RecipientSettings(BaseSettings):
    """
    Process-wide fallback recipients.

    Used when a user has not filled in their own report contacts.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    recipient_email: Optional[str] = Field(
        default=None,
        description="Primary fallback report email"
    )
    secondary_email: Optional[str] = Field(
        default=None,
        description="Secondary fallback report email"
    )
    recipient_phone: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RECIPIENT_PHONE", "YOUR_PHONE_NUMBER"),
        description="Fallback phone number for SMS reports"
    )


class SchedulerSettings(BaseSettings):
    """Recurring report trigger configuration."""

    model_config = SettingsConfigDict(
        env_prefix="REPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    schedule: str = Field(
        default="0 23 * * *",
        description="Crontab expression for the daily report (default 11 PM)"
    )
    timezone: Optional[str] = Field(
        default=None,
        description="IANA time zone for the schedule, server local time if unset"
    )
    scheduler_enabled: bool = Field(
        default=True,
        description="Start the recurring trigger with the application"
    )

    @field_validator('schedule')
    @classmethod
    def validate_schedule(cls, v: str) -> str:
        """Crontab expressions have exactly five fields."""
        if len(v.split()) != 5:
            raise ValueError(
                f"Invalid schedule '{v}': expected 5 crontab fields"
            )
        return v


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    users_sheet_name: str = Field(
        default="Users",
        description="Name of the sheet for user settings"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    currency_symbol: str = Field(
        default="₹",
        max_length=5,
        description="Currency symbol used in reports"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def email(self) -> EmailSettings:
        return EmailSettings()

    @property
    def twilio(self) -> TwilioSettings:
        return TwilioSettings()

    @property
    def recipients(self) -> RecipientSettings:
        return RecipientSettings()

    @property
    def scheduler(self) -> SchedulerSettings:
        return SchedulerSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks and the settings status page.
    """
    results = {}

    settings = get_settings()

    for name in ("email", "twilio"):
        try:
            section = getattr(settings, name)
            results[name] = section.is_configured
            if not section.is_configured:
                results[f"{name}_error"] = "credentials missing"
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    for name in ("recipients", "scheduler", "google_sheets", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
