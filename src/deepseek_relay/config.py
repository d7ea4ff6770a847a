"""Application configuration using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # DeepSeek upstream
    deepseek_api_key: str = Field(
        "", alias="DEEPSEEK_API_KEY",
        description="Bearer token for the DeepSeek API. Empty = chat requests are refused with HTTP 500.",
    )
    deepseek_base_url: str = Field(
        "https://api.deepseek.com/v1", alias="DEEPSEEK_BASE_URL",
        description="Base URL of the OpenAI-compatible DeepSeek API. /chat/completions is appended.",
    )
    deepseek_model: str = Field(
        "deepseek-chat", alias="DEEPSEEK_MODEL",
        description="Model used when the caller does not name one (deepseek-chat or deepseek-reasoner).",
    )
    deepseek_max_tokens: int = Field(
        2000, alias="DEEPSEEK_MAX_TOKENS",
        description="max_tokens sent with every completion request.",
    )
    deepseek_temperature: float = Field(
        0.7, alias="DEEPSEEK_TEMPERATURE", ge=0, le=2,
        description="Sampling temperature sent with every completion request.",
    )
    deepseek_timeout: float = Field(
        60.0, alias="DEEPSEEK_TIMEOUT",
        description="HTTP timeout in seconds for upstream calls. Applies per read while streaming.",
    )

    # Static front end
    static_dir: str = Field(
        "public", alias="STATIC_DIR",
        description="Directory served for every GET path that is not an API route.",
    )

    # Server
    host: str = Field(
        "0.0.0.0", alias="HOST",
        description="Host address to bind the aiohttp server to.",
    )
    port: int = Field(
        3000, alias="PORT",
        description="Port number for the aiohttp server.",
    )

    # Logging
    log_level: str = Field(
        "INFO", alias="LOG_LEVEL",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL.",
    )
    log_file: str = Field(
        "", alias="LOG_FILE",
        description="Path to log file for file-based logging with rotation. Empty = console only.",
    )
    log_file_max_bytes: int = Field(
        10_485_760, alias="LOG_FILE_MAX_BYTES",
        description="Max size in bytes per log file before rotation. Default: 10 MB.",
    )
    log_file_backup_count: int = Field(
        5, alias="LOG_FILE_BACKUP_COUNT",
        description="Number of rotated backup log files to keep.",
    )

    @property
    def api_key_loaded(self) -> bool:
        return bool(self.deepseek_api_key)


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
