"""Configuration management with YAML and environment variable support."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Optional, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_REDIRECT_URL_TEMPLATE = (
    "https://voia.sng.link/Cle3b/dk59?_dl=campaign&pcn=Moshe7&pcrn=Miriam3"
    "&_smtype=3&campaign_id={video_id}"
)

CONFIG_FILE_ENV = "VOIALINK_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "voialink.yaml"


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by a YAML mapping of field names to values.

    The file is ``yaml_path`` when given, else the path in
    ``VOIALINK_CONFIG_FILE``, else ``voialink.yaml`` in the working directory.
    A missing file contributes nothing.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_path: Optional[Union[str, Path]] = None,
    ):
        super().__init__(settings_cls)
        self.yaml_path = Path(
            yaml_path or os.environ.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE
        )
        self._data = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.yaml_path.is_file():
            return {}
        with open(self.yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.yaml_path} must contain a mapping, got {type(data).__name__}")
        return data

    def get_field_value(self, field, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                values[key] = value
        return values


class Settings(BaseSettings):
    """SDK settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Explicit keyword arguments
    2. Environment variables (prefix: VOIALINK_)
    3. .env file
    4. YAML file (VOIALINK_CONFIG_FILE, default voialink.yaml)
    5. Field defaults
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="VOIALINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = "https://api.voia.com"
    redirect_url_template: str = DEFAULT_REDIRECT_URL_TEMPLATE

    # Status polling
    poll_interval: float = Field(default=30.0, ge=0)
    poll_failure_warn_every: int = Field(default=10, ge=1)
    poll_failure_limit: Optional[int] = Field(default=None, ge=1)
    status_retry_attempts: int = Field(default=3, ge=1)
    status_retry_backoff: float = Field(default=1.0, ge=0)

    # HTTP timeouts (seconds)
    request_timeout: float = 120.0
    connect_timeout: float = 30.0

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be joined with a leading slash."""
        return v.rstrip("/")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        """Customize settings sources to include YAML configuration.

        Priority order (highest to lowest):
        1. Init settings (explicit overrides, e.g. from tests)
        2. Environment variables
        3. .env file
        4. YAML file
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide default settings, loaded on first use."""
    return Settings()
