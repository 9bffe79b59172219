"""Application configuration using Pydantic Settings.

Supports configuration from multiple sources with the following priority (highest first):
1. Environment variables
2. .env file
3. credentials.properties (key=value lines, e.g. ``api_key=...``)
4. config.yml settings section
5. Default values

Secrets belong in .env or credentials.properties; config.yml stays portable.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource

from movrelay.core.exceptions import ConfigurationError


# Load .env file at module import
load_dotenv()


def _flatten_settings(data: dict, prefix: str = "") -> dict:
    """
    Flatten nested dict to match env var naming.

    Example: tmdb.api_key -> tmdb_api_key
    """
    result = {}
    for key, value in data.items():
        flat_key = f"{prefix}_{key}" if prefix else str(key)
        if isinstance(value, dict):
            result.update(_flatten_settings(value, flat_key))
        else:
            result[flat_key] = value
    return result


class YamlSettingsSource(PydanticBaseSettingsSource):
    """
    Custom settings source that reads from config.yml settings section.

    Allows configuration to be defined in YAML while still supporting
    environment variable overrides.
    """

    def __init__(self, settings_cls: type[BaseSettings], yaml_file: Path):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._yaml_data: dict[str, Any] = {}
        self._load_yaml()

    def _load_yaml(self) -> None:
        """Load and parse the YAML file."""
        if not self.yaml_file.exists():
            return

        try:
            with open(self.yaml_file, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            # Logging is not configured yet at this point
            print(f"[config] Failed to load YAML config: {e}")
            return

        self._yaml_data = _flatten_settings(data.get("settings", {}) or {})
        print(f"[config] Loaded {len(self._yaml_data)} settings from: {self.yaml_file}")

    def get_field_value(
        self, field: Any, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from YAML data."""
        value = self._yaml_data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML."""
        return self._yaml_data


class CredentialsFileSource(PydanticBaseSettingsSource):
    """
    Settings source for a Java-style ``credentials.properties`` file.

    Keys are flattened the same way as YAML keys (``tmdb.api_key`` ->
    ``tmdb_api_key``). A bare ``api_key`` is taken as the TMDb key.
    """

    KEY_ALIASES = {"api_key": "tmdb_api_key"}

    def __init__(self, settings_cls: type[BaseSettings], properties_file: Path):
        super().__init__(settings_cls)
        self.properties_file = properties_file
        self._data: dict[str, Any] = {}
        if properties_file.is_file():
            self._data = self.parse(properties_file.read_text(encoding="utf-8"))

    @classmethod
    def parse(cls, text: str) -> dict[str, str]:
        """Parse ``key=value`` / ``key: value`` lines, skipping comments and blanks."""
        result: dict[str, str] = {}
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or line[0] in "#!":
                continue

            separators = [i for i in (line.find("="), line.find(":")) if i > 0]
            if not separators:
                continue
            idx = min(separators)

            key = line[:idx].strip().replace(".", "_").replace("-", "_").lower()
            value = line[idx + 1:].strip()
            if not value:
                continue
            result[cls.KEY_ALIASES.get(key, key)] = value
        return result

    def get_field_value(
        self, field: Any, field_name: str
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in self._data.items()
            if name in self.settings_cls.model_fields
        }


class TMDbSettings(BaseModel):
    """TMDb API configuration."""

    api_key: Optional[str] = Field(default=None)
    base_url: str = Field(default="https://api.themoviedb.org")
    language: str = Field(default="en-US")


class MockSettings(BaseModel):
    """Mock JSONPlaceholder server configuration."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=0, description="0 picks a free port")
    startup_timeout: float = Field(default=10.0)


class Settings(BaseSettings):
    """Main application settings."""

    # TMDb
    tmdb_api_key: Optional[str] = Field(default=None)
    tmdb_base_url: str = Field(default="https://api.themoviedb.org")
    tmdb_language: str = Field(default="en-US")

    # Mock server
    mock_host: str = Field(default="127.0.0.1")
    mock_port: int = Field(default=0, ge=0, le=65535)
    mock_startup_timeout: float = Field(default=10.0, gt=0)

    # HTTP
    http_timeout: float = Field(default=30.0, gt=0)

    # Application settings
    log_level: str = Field(default="INFO")
    log_path: Optional[Path] = Field(default=None)
    credentials_path: Path = Field(default=Path("credentials.properties"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize settings sources to include credentials.properties and config.yml.

        Priority (highest first):
        1. init_settings - direct arguments to Settings()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. credentials - credentials.properties
        5. yaml_settings - config.yml settings section
        6. file_secret_settings - secret files
        """
        # File locations come from env vars since they are needed before other sources load
        config_path = Path(os.getenv("CONFIG_PATH", "."))
        credentials_file = Path(os.getenv("CREDENTIALS_PATH", "credentials.properties"))

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            CredentialsFileSource(settings_cls, credentials_file),
            YamlSettingsSource(settings_cls, config_path / "config.yml"),
            file_secret_settings,
        )

    @field_validator("log_path", "credentials_path", mode="before")
    @classmethod
    def validate_path(cls, v: str | Path | None) -> Path | None:
        return Path(v) if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.upper()

    def require_api_key(self) -> str:
        """Return the TMDb API key or fail with a descriptive message."""
        if not self.tmdb_api_key:
            raise ConfigurationError(
                "TMDb API key required: set TMDB_API_KEY or api_key in "
                f"{self.credentials_path}"
            )
        return self.tmdb_api_key

    @property
    def tmdb(self) -> TMDbSettings:
        """Get TMDb settings."""
        return TMDbSettings(
            api_key=self.tmdb_api_key,
            base_url=self.tmdb_base_url,
            language=self.tmdb_language,
        )

    @property
    def mock(self) -> MockSettings:
        """Get mock server settings."""
        return MockSettings(
            host=self.mock_host,
            port=self.mock_port,
            startup_timeout=self.mock_startup_timeout,
        )


def _mask_secret(value: str | None, visible_chars: int = 4) -> str:
    """Mask a secret value, showing only first N characters."""
    if not value:
        return "(not set)"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def log_settings(settings: "Settings") -> None:
    """Log all settings to the logger (secrets are masked)."""
    from loguru import logger

    logger.info("=" * 60)
    logger.info("MOVIE RELAY - CONFIGURATION")
    logger.info("=" * 60)

    logger.info("[TMDb]")
    logger.info(f"  Base URL: {settings.tmdb_base_url}")
    logger.info(f"  API Key:  {_mask_secret(settings.tmdb_api_key)}")
    logger.info(f"  Language: {settings.tmdb_language}")

    logger.info("[Mock]")
    logger.info(f"  Host: {settings.mock_host}")
    logger.info(f"  Port: {settings.mock_port or '(dynamic)'}")

    logger.info("[Application]")
    logger.info(f"  HTTP Timeout: {settings.http_timeout}s")
    logger.info(f"  Log Level:    {settings.log_level}")
    logger.info(f"  Log Path:     {settings.log_path or '(console only)'}")
    logger.info(f"  Credentials:  {settings.credentials_path}")

    logger.info("=" * 60)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
