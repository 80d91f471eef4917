"""
Application configuration settings
FILE: lumi/core/config.py
"""
from functools import lru_cache
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings

from lumi.core.errors import ConfigurationError


DEFAULT_GEMINI_MODEL = "gemini-2.0-flash-exp"
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

# camelCase option names accepted by create_server(config=...)
CONFIG_OPTION_ALIASES = {
    "supabaseUrl": "supabase_url",
    "supabaseServiceRoleKey": "supabase_service_role_key",
    "supabaseAnonKey": "supabase_anon_key",
    "geminiApiKey": "gemini_api_key",
    "geminiModel": "gemini_model",
}


class CoachSettings(BaseSettings):
    """Settings for the learning coach backend (Supabase + Gemini)"""

    # Supabase Configuration
    supabase_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL"),
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE_KEY"),
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"),
    )
    supabase_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("SUPABASE_TIMEOUT"),
    )

    # Gemini Configuration
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "VITE_GEMINI_API_KEY"),
    )
    gemini_model: str = Field(
        default=DEFAULT_GEMINI_MODEL,
        validation_alias=AliasChoices("GEMINI_MODEL", "VITE_GEMINI_MODEL"),
    )
    gemini_base_url: str = Field(
        default=GEMINI_OPENAI_BASE_URL,
        validation_alias=AliasChoices("GEMINI_BASE_URL"),
    )
    llm_timeout: float = Field(
        default=60.0,
        validation_alias=AliasChoices("LLM_TIMEOUT"),
    )
    llm_max_retries: int = Field(
        default=2,
        ge=0,
        validation_alias=AliasChoices("LLM_MAX_RETRIES"),
    )

    class Config:
        env_file = ".env"
        env_ignore_empty = True
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"

    @model_validator(mode="after")
    def check_credentials(self):
        """Fail fast on an unusable Supabase URL or missing credentials"""
        parsed = urlparse(self.supabase_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"supabaseUrl must be a valid URL (got: {self.supabase_url!r})"
            )

        if not (self.supabase_service_role_key or self.supabase_anon_key):
            raise ValueError("Provide either supabaseServiceRoleKey or supabaseAnonKey")

        if not self.gemini_api_key:
            raise ValueError("geminiApiKey is required (set GEMINI_API_KEY)")

        return self

    @property
    def supabase_key(self) -> str:
        """Service role key when available, anon key otherwise"""
        return self.supabase_service_role_key or self.supabase_anon_key


class EmailSettings(BaseSettings):
    """Settings for the transactional email endpoints"""

    gmail_user: str = ""
    gmail_app_password: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_use_ssl: bool = True
    email_transport: str = "smtp"  # "smtp" or "dummy"

    app_name: str = "Lumi"
    app_url: str = Field(
        default="http://localhost:5173",
        validation_alias=AliasChoices("APP_URL", "VITE_APP_URL"),
    )
    email_server_port: int = 4001

    class Config:
        env_file = ".env"
        env_ignore_empty = True
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"


def load_coach_settings(overrides: Optional[Dict[str, Any]] = None) -> CoachSettings:
    """
    Resolve coach settings from explicit overrides and the environment

    Args:
        overrides: Optional config mapping; accepts camelCase option names
            (supabaseUrl, geminiApiKey, ...) or snake_case field names.
            Explicit values win over environment variables.

    Returns:
        Validated CoachSettings

    Raises:
        ConfigurationError: If the Supabase URL is invalid or credentials are missing
    """
    kwargs = {}
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        field_name = CONFIG_OPTION_ALIASES.get(key, key)
        if field_name not in CoachSettings.model_fields:
            raise ConfigurationError(f"Unknown configuration option: {key}")
        kwargs[field_name] = value

    try:
        return CoachSettings(**kwargs)
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ConfigurationError(f"Invalid configuration: {messages}") from e


@lru_cache
def get_email_settings() -> EmailSettings:
    return EmailSettings()
