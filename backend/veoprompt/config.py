"""Configuration management with YAML and environment variable support."""

import os
from functools import lru_cache
from pathlib import Path
from typing import ClassVar, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_CONFIG_PATH = "config.yaml"


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads configuration from YAML file."""

    def get_field_value(self, field, field_name: str):
        # Not used with prepare method
        pass

    def prepare_field_value(self, field_name: str, field, value, value_is_complex: bool):
        return value

    def __call__(self):
        # VEOPROMPT_CONFIG_FILE overrides the config.yaml in the current directory
        yaml_path = Path(os.environ.get("VEOPROMPT_CONFIG_FILE", DEFAULT_CONFIG_PATH))
        if not yaml_path.exists():
            return {}

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return data


class ProviderEnvSettingsSource(PydanticBaseSettingsSource):
    """Settings source for the provider-conventional variable names.

    Lets a plain ``GEMINI_API_KEY`` or ``GCS_BUCKET`` configure the app
    without the VEOPROMPT_ prefix. Prefixed variables still win.
    """

    ENV_ALIASES: ClassVar[dict[str, tuple[str, str]]] = {
        "GEMINI_API_KEY": ("gemini", "api_key"),
        "GOOGLE_API_KEY": ("gemini", "api_key"),
        "GOOGLE_CLOUD_PROJECT": ("google_cloud", "project_id"),
        "GOOGLE_CLOUD_LOCATION": ("google_cloud", "location"),
        "GCS_BUCKET": ("storage", "gcs_bucket"),
        "OPENROUTER_API_KEY": ("openrouter", "api_key"),
        "OPENROUTER_MODEL": ("openrouter", "model"),
        "OPENROUTER_SITE_URL": ("openrouter", "site_url"),
    }

    def get_field_value(self, field, field_name: str):
        pass

    def __call__(self):
        data: dict[str, dict[str, str]] = {}
        # Earlier aliases win when two names map to the same field
        for env_name, (section, key) in self.ENV_ALIASES.items():
            value = os.environ.get(env_name)
            if value and key not in data.get(section, {}):
                data.setdefault(section, {})[key] = value
        return data


class GeminiConfig(BaseModel):
    """Gemini vision analysis parameters.

    api_key is only required for the Files API backend; the Vertex AI
    backend authenticates with Application Default Credentials.
    """

    api_key: Optional[str] = None
    models: list[str] = Field(default_factory=lambda: ["gemini-2.5-flash", "gemini-2.5-pro"])
    max_retries_per_model: int = 2
    retry_base_delay: float = 1.0
    poll_interval: float = 1.0
    poll_timeout: float = 60.0
    display_name: str = "uploaded_video"

    @field_validator("models", mode="before")
    @classmethod
    def split_models(cls, v):
        """Accept a comma-separated string from the environment."""
        if isinstance(v, str):
            return [m.strip() for m in v.split(",") if m.strip()]
        return v


class GoogleCloudConfig(BaseModel):
    """Google Cloud configuration for the Vertex AI backend."""

    project_id: Optional[str] = None
    location: str = "us-central1"


class StorageConfig(BaseModel):
    """Object storage configuration."""

    gcs_bucket: Optional[str] = None
    upload_prefix: str = "uploads"


class OpenRouterConfig(BaseModel):
    """OpenRouter chat-completions parameters."""

    api_key: Optional[str] = None
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "anthropic/claude-3.5-sonnet"
    temperature: float = 0.2
    max_retries: int = 2
    retry_delay: float = 1.0
    timeout: float = 120.0
    site_url: str = "http://localhost:3000"
    app_title: str = "Veo 3 Prompt Generator"


class PipelineConfig(BaseModel):
    """Pipeline execution parameters."""

    analysis_backend: Literal["gemini_files", "vertex_gcs"] = "gemini_files"
    cleanup_uploads: bool = False


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )


class Settings(BaseSettings):
    """Main application settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Constructor arguments
    2. Environment variables (prefix: VEOPROMPT_, delimiter: __)
    3. .env file
    4. Provider-conventional variables (GEMINI_API_KEY, GCS_BUCKET, ...)
    5. YAML file (config.yaml)
    6. Field defaults
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="VEOPROMPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    google_cloud: GoogleCloudConfig = Field(default_factory=GoogleCloudConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    openrouter: OpenRouterConfig = Field(default_factory=OpenRouterConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

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
        1. Init settings (explicit overrides, used by tests and the CLI)
        2. Environment variables
        3. .env file
        4. Provider-conventional environment variables
        5. YAML file
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            ProviderEnvSettingsSource(settings_cls),
            YamlConfigSettingsSource(settings_cls),
        )


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process.

    Plain provider variables in .env (e.g. OPENROUTER_API_KEY) are loaded
    into the environment first so the alias source can see them.
    """
    load_dotenv(Path.cwd() / ".env")
    return Settings()
