"""
Relay configuration management with Pydantic settings.
Supports environment variables, a local .env file and secure credential handling.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _is_valid_chat_id(value: str) -> bool:
    """A chat is addressed either by a channel handle or by a numeric id."""
    if value.startswith('@'):
        return len(value) > 1
    try:
        int(value)
    except ValueError:
        return False
    return True


class Settings(BaseSettings):
    """Application settings with validation and type safety."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Telegram Bot Configuration
    telegram_bot_token: str = Field(..., description="Bot token from @BotFather")
    telegram_source_chat_id: str = Field(..., description="Chat to relay from (numeric id or @handle)")
    telegram_destination_chat_id: str = Field(..., description="Chat to relay to (numeric id or @handle)")
    http_proxy: Optional[str] = Field(default=None, description="Proxy URL for Bot API requests")

    # Optional: Telethon user session used to observe deletions in the source chat
    telegram_api_id: Optional[int] = Field(default=None, description="Telegram API ID from my.telegram.org")
    telegram_api_hash: Optional[str] = Field(default=None, description="Telegram API Hash from my.telegram.org")
    user_session_file_path: Path = Field(
        default=Path("./sessions/relay_watcher.session"),
        description="Path to Telethon user session file"
    )

    # Relay Configuration
    message_delay_ms: int = Field(default=30000, ge=0)
    source_tag: str = Field(default="[From CN]")
    max_message_length: int = Field(default=4096, ge=1, le=4096)
    max_tracked_keys: int = Field(default=1000, ge=1)

    # Translation Configuration
    translation_enabled: bool = Field(default=False)
    translation_provider: str = Field(default="google")
    translation_fallback_provider: str = Field(default="google")
    translation_source_lang: str = Field(default="zh")
    translation_target_lang: str = Field(default="en")
    translation_show_original: bool = Field(default=False)
    translation_max_length: int = Field(default=4000, ge=1)
    google_translate_api_key: str = Field(default="")

    # Logging Configuration
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    debug_mode: bool = Field(default=False)

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lower-case level names such as LOG_LEVEL=info."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator('telegram_source_chat_id', 'telegram_destination_chat_id', mode='before')
    @classmethod
    def validate_chat_id(cls, v):
        """Chat ids must be numeric or a channel username starting with @."""
        v = str(v).strip()
        if not _is_valid_chat_id(v):
            raise ValueError("must be a numeric ID or channel username (starting with @)")
        return v

    @field_validator('translation_provider', 'translation_fallback_provider', mode='before')
    @classmethod
    def normalize_provider(cls, v):
        if v is None:
            return ""
        return str(v).strip().lower()

    @model_validator(mode='after')
    def check_translation(self):
        if self.translation_enabled and not self.translation_provider:
            raise ValueError("TRANSLATION_PROVIDER must be set when translation is enabled")
        return self

    @property
    def message_delay_seconds(self) -> float:
        return self.message_delay_ms / 1000.0

    @property
    def user_watcher_enabled(self) -> bool:
        """The deletion watcher needs MTProto credentials."""
        return bool(self.telegram_api_id and self.telegram_api_hash)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings instance, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
