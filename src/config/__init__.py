"""Configuration package."""

from src.config.settings import (
    AppSettings,
    EmailSettings,
    GoogleSheetsSettings,
    RecipientSettings,
    SchedulerSettings,
    Settings,
    TwilioSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "EmailSettings",
    "GoogleSheetsSettings",
    "RecipientSettings",
    "SchedulerSettings",
    "Settings",
    "TwilioSettings",
    "get_settings",
    "validate_all_settings",
]
