"""
Configuration Management for BillSplit Voice

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here. Parsing thresholds are NOT configurable:
the complexity threshold, the fallback word minimum and the clarification cap
are constants of the parsing and dialogue modules.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """File-backed ledger configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    file_path: str = Field(
        default="bill_split_ledger.json",
        description="Path of the JSON ledger snapshot"
    )
    audit_log_path: str = Field(
        default="bill_split_audit.jsonl",
        description="Path of the append-only audit log (JSON lines)"
    )
    owner_name: str = Field(
        default="Me",
        min_length=1,
        max_length=40,
        description="Display name of the ledger owner"
    )

    @field_validator('file_path', 'audit_log_path')
    @classmethod
    def validate_parent_directory(cls, v: str) -> str:
        """Warn if the parent directory is missing (it is created on first write)."""
        parent = Path(v).expanduser().parent
        if not parent.exists():
            import warnings
            warnings.warn(
                f"Directory {parent} does not exist yet. "
                "It will be created when the ledger is first saved."
            )
        return v


class VoiceSettings(BaseSettings):
    """Spoken output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="VOICE_",
        extra="ignore"
    )

    speak_responses: bool = Field(
        default=True,
        description="Send every reply to the speech output collaborator"
    )
    locale: str = Field(
        default="en-US",
        description="Locale used for transcription and speech"
    )
    speech_rate: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Speech synthesis rate (0 = slowest, 1 = fastest)"
    )


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

    # Input limits
    max_utterance_length: int = Field(
        default=10_000,
        ge=100,
        le=100_000,
        description="Transcripts longer than this are truncated before parsing"
    )

    # Contacts available without a device directory
    known_contacts: str = Field(
        default="",
        description="Comma-separated list of contact display names"
    )

    @property
    def known_contacts_list(self) -> list[str]:
        """Get known contacts as a list."""
        return [name.strip() for name in self.known_contacts.split(",") if name.strip()]


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

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def voice(self) -> VoiceSettings:
        return VoiceSettings()

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

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for every section that failed to load.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "voice", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
