"""Configuration management for CancelFlow."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from cancelflow.utils.exceptions import ConfigurationError


@dataclass
class AppConfig:
    """Application configuration."""

    database_url: str = "sqlite:///./cancelflow.db"
    api_url: str = "http://localhost:8000"
    output_dir: Path = Path("./output")
    log_level: str = "INFO"
    csrf_ttl: int = 30 * 60  # seconds
    get_rate_limit: int = 50
    get_rate_window: int = 5 * 60  # seconds
    post_rate_limit: int = 10
    post_rate_window: int = 15 * 60  # seconds
    rate_sweep_interval: int = 60  # seconds
    csrf_sweep_interval: int = 5 * 60  # seconds


class ConfigLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load() -> AppConfig:
        """Load configuration from environment.

        Raises:
            ConfigurationError: If required configuration is missing or invalid.
        """
        load_dotenv()  # Load .env file if present

        return AppConfig(
            database_url=os.environ.get(
                "CANCELFLOW_DATABASE_URL", "sqlite:///./cancelflow.db"
            ),
            api_url=os.environ.get("CANCELFLOW_API_URL", "http://localhost:8000"),
            output_dir=Path(os.environ.get("CANCELFLOW_OUTPUT", "./output")),
            log_level=os.environ.get("CANCELFLOW_LOG_LEVEL", "INFO").upper(),
            csrf_ttl=ConfigLoader._get_int_env("CANCELFLOW_CSRF_TTL", 30 * 60),
            get_rate_limit=ConfigLoader._get_int_env("CANCELFLOW_GET_RATE_LIMIT", 50),
            get_rate_window=ConfigLoader._get_int_env(
                "CANCELFLOW_GET_RATE_WINDOW", 5 * 60
            ),
            post_rate_limit=ConfigLoader._get_int_env(
                "CANCELFLOW_POST_RATE_LIMIT", 10
            ),
            post_rate_window=ConfigLoader._get_int_env(
                "CANCELFLOW_POST_RATE_WINDOW", 15 * 60
            ),
            rate_sweep_interval=ConfigLoader._get_int_env(
                "CANCELFLOW_RATE_SWEEP_INTERVAL", 60
            ),
            csrf_sweep_interval=ConfigLoader._get_int_env(
                "CANCELFLOW_CSRF_SWEEP_INTERVAL", 5 * 60
            ),
        )

    @staticmethod
    def _get_int_env(name: str, default: int) -> int:
        """Get a positive integer environment variable.

        Args:
            name: The environment variable name.
            default: The default value if not set.

        Returns:
            The integer value.

        Raises:
            ConfigurationError: If the value is not a valid positive integer.
        """
        value = os.environ.get(name)
        if value is None:
            return default
        try:
            parsed = int(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {name}: '{value}' is not a valid integer"
            ) from e
        if parsed <= 0:
            raise ConfigurationError(
                f"Invalid value for {name}: '{value}' must be greater than zero"
            )
        return parsed
