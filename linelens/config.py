"""Configuration management for LineLens.

Loads environment variables (and a .env file in the working directory) and
provides centralized config access.
"""
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, set_key

from .errors import ConfigurationError

# Version - keep in sync with pyproject.toml
__version__ = "1.0.0"

DEFAULT_MODEL = "gemini-2.0-flash-001"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 1000
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_HISTORY_PATH = ".linelens_history.json"

API_KEY_ENV = "LINELENS_API_KEY"

_API_KEY_FORMAT = re.compile(r'^[A-Za-z0-9_-]{20,}$')


@dataclass
class ModelConfig:
    """Everything the explanation client needs to reach the model."""
    api_key: str
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    base_url: str = DEFAULT_BASE_URL


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[str | Path] = None):
        """Initialize config by loading the .env file.

        Args:
            env_path: .env file to load and write (defaults to ./.env)
        """
        self.env_path = Path(env_path) if env_path else Path.cwd() / ".env"
        load_dotenv(self.env_path)

    def get_api_key(self) -> Optional[str]:
        """Get API key from environment.

        Returns:
            Trimmed API key, or None if unset or blank
        """
        key = os.getenv(API_KEY_ENV, "").strip()
        return key or None

    def is_configured(self) -> bool:
        return self.get_api_key() is not None

    @staticmethod
    def validate_api_key_format(api_key: str) -> bool:
        """Check that a key looks like an API key: 20+ chars of [A-Za-z0-9_-]."""
        if not api_key:
            return False
        return bool(_API_KEY_FORMAT.match(api_key.strip()))

    def set_api_key(self, api_key: str) -> None:
        """Validate and persist an API key to the .env file.

        Args:
            api_key: Key to store (surrounding whitespace is dropped)

        Raises:
            ConfigurationError: INVALID_FORMAT if the key fails the format check
        """
        if not self.validate_api_key_format(api_key):
            raise ConfigurationError(
                "Invalid API key format. Please check your API key.",
                ConfigurationError.INVALID_FORMAT,
            )

        api_key = api_key.strip()
        self.env_path.touch(exist_ok=True)
        set_key(str(self.env_path), API_KEY_ENV, api_key)
        os.environ[API_KEY_ENV] = api_key

    @property
    def model(self) -> str:
        """Get model from environment with fallback.

        Priority:
        1. LINELENS_MODEL environment variable
        2. Fallback to default model

        Returns:
            Model identifier string
        """
        return os.getenv("LINELENS_MODEL", DEFAULT_MODEL)

    @property
    def temperature(self) -> float:
        return self._read_number("LINELENS_TEMPERATURE", float, DEFAULT_TEMPERATURE)

    @property
    def max_tokens(self) -> int:
        return self._read_number("LINELENS_MAX_TOKENS", int, DEFAULT_MAX_TOKENS)

    @property
    def base_url(self) -> str:
        """Get model API base URL (any OpenAI-compatible endpoint)."""
        return os.getenv("LINELENS_BASE_URL", DEFAULT_BASE_URL)

    @property
    def history_path(self) -> str:
        """Get explanation history file path.

        Returns:
            Path to the history JSON file
        """
        return os.getenv("LINELENS_HISTORY_PATH", DEFAULT_HISTORY_PATH)

    @property
    def log_path(self) -> Optional[str]:
        """Optional file the output log is mirrored to."""
        return os.getenv("LINELENS_LOG_PATH") or None

    def get_model_config(self) -> ModelConfig:
        """Bundle the model settings.

        Raises:
            ConfigurationError: MISSING_API_KEY if no key is configured
        """
        api_key = self.get_api_key()
        if not api_key:
            raise ConfigurationError(
                f"API key not configured. Set {API_KEY_ENV} or run 'linelens set-key'.",
                ConfigurationError.MISSING_API_KEY,
            )

        return ModelConfig(
            api_key=api_key,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
        )

    @staticmethod
    def _read_number(name: str, cast, default):
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default

        try:
            return cast(raw.strip())
        except ValueError:
            raise ConfigurationError(
                f"{name} must be a number, got {raw!r}",
                ConfigurationError.INVALID_VALUE,
            )


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the singleton so the next get_config() reloads the environment."""
    global _config
    _config = None
