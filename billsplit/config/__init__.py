"""Configuration package."""

from billsplit.config.settings import (
    AppSettings,
    LedgerSettings,
    Settings,
    VoiceSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "LedgerSettings",
    "Settings",
    "VoiceSettings",
    "get_settings",
    "validate_all_settings",
]
