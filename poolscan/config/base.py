"""
Base configuration management for poolscan.

Settings are dataclass fields read from the environment (and ``.env``) when a
config object is built, so a malformed value surfaces as ``ConfigError`` from
``ConfigManager()`` rather than at import time.
"""

import os
import logging
from pathlib import Path
from typing import Any, Callable, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

ENVIRONMENTS = ("local", "dev", "test", "staging", "production")


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


def env_field(key: str, default: Any, parse: Optional[Callable[[str, Any], Any]] = None) -> Any:
    """
    Dataclass field whose default is read from ``key`` at instantiation.

    Args:
        key: Environment variable name
        default: Value used when the variable is unset
        parse: One of the ``BaseConfig.get_env*`` readers, plain string if omitted
    """
    return field(default_factory=lambda: (parse or BaseConfig.get_env)(key, default))


@dataclass
class BaseConfig:
    """Base configuration class with environment variable management."""

    # Project paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    DATA_DIR: Path = PROJECT_ROOT / "data"

    # Environment
    ENVIRONMENT: str = env_field("ENVIRONMENT", "local")
    LOG_LEVEL: str = env_field("LOG_LEVEL", "INFO")

    def __post_init__(self):
        """Initialize configuration after dataclass creation."""
        self._setup_logging()
        self._validate_config()

    def _setup_logging(self):
        """Setup logging configuration."""
        logging.basicConfig(
            level=getattr(logging, self.LOG_LEVEL.upper(), logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    def _validate_config(self):
        """Validate configuration values."""
        if self.ENVIRONMENT not in ENVIRONMENTS:
            raise ConfigError(f"Invalid environment: {self.ENVIRONMENT}")

    @staticmethod
    def get_env(key: str, default: Optional[str] = None, required: bool = False) -> str:
        """
        Get environment variable with validation.

        Args:
            key: Environment variable name
            default: Default value if not found
            required: Whether the variable is required

        Returns:
            Environment variable value

        Raises:
            ConfigError: If required variable is missing
        """
        value = os.getenv(key, default)
        if required and value is None:
            raise ConfigError(f"Required environment variable '{key}' is not set")
        return value

    @staticmethod
    def get_env_int(key: str, default: Optional[int] = None, required: bool = False) -> int:
        """Get environment variable as integer."""
        value = BaseConfig.get_env(key, str(default) if default is not None else None, required)
        try:
            return int(value)
        except (ValueError, TypeError):
            raise ConfigError(f"Environment variable '{key}' must be an integer, got: {value}")

    @staticmethod
    def get_env_float(key: str, default: Optional[float] = None, required: bool = False) -> float:
        """Get environment variable as float."""
        value = BaseConfig.get_env(key, str(default) if default is not None else None, required)
        try:
            return float(value)
        except (ValueError, TypeError):
            raise ConfigError(f"Environment variable '{key}' must be a float, got: {value}")
