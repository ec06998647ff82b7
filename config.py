"""
Configuration management for USDT Trader Pro.
Uses pydantic-settings for type-safe, centralized configuration.
"""

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'  # Allow extra fields in .env for flexibility
    )

    # Database
    database_url: str = "sqlite:///usdt_ledger.db"
    db_echo: bool = False

    # OpenAI / Cloud LLM Configuration
    openai_api_key: Optional[str] = None
    openai_model: Optional[str] = None
    openai_base_url: Optional[str] = None

    # Local LLM Configuration (Ollama)
    local_model: str = "qwen2.5:14b"
    local_llm_url: str = "http://localhost:11434/v1"

    llm_mode: Literal["cloud", "local"] = "cloud"
    llm_temperature: float = 0.7

    # Ledger
    default_portfolio: str = "main"
    sell_tolerance: float = 0.01  # units of asset
    fiat_currency: str = "COP"
    asset_symbol: str = "USDT"

    log_level: str = "INFO"

    @property
    def is_openai_configured(self) -> bool:
        """Check if OpenAI cloud mode is properly configured."""
        return all([
            self.openai_api_key,
            self.openai_model
        ])

    @property
    def is_llm_configured(self) -> bool:
        """Local mode needs no credentials; cloud mode needs key and model."""
        if self.llm_mode == "local":
            return True
        return self.is_openai_configured


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
