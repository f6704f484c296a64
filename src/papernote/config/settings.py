"""Configuration management for papernote.

Loads settings from a YAML configuration file with environment variable
overrides for sensitive values (API keys). Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/papernote.yaml")

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class DeviceConfig(BaseModel):
    adb_path: str = Field(default="adb", description="adb executable (name on PATH or absolute path)")
    camera_dir: str = Field(default="/sdcard/DCIM/Camera")
    photo_extension: str = Field(default="jpg")
    list_limit: int = Field(default=5, gt=0)
    wireless_port: int = Field(default=5555, ge=1, le=65535)
    wireless_config_path: str = Field(default=".wireless_adb")
    wireless_switch_delay: float = Field(default=2.0, ge=0)


class WatchConfig(BaseModel):
    poll_interval: float = Field(default=2.0, gt=0)
    download_dir: str = Field(default="incoming_photos")


class RecognitionConfig(BaseModel):
    provider: Literal["openai", "anthropic"] = Field(default="openai")
    model: str = Field(default="gpt-4o")
    base_url: str | None = Field(default=None)
    max_tokens: int = Field(default=2048, gt=0)
    max_retries: int = Field(default=3, ge=0)
    max_image_dimension: int = Field(default=2048, ge=0, description="0 sends the photo unresized")
    prompt_override: str | None = Field(default=None)


class DeliveryConfig(BaseModel):
    mode: Literal["tmux", "claude-cli"] = Field(default="tmux")
    tmux_socket: str = Field(default="paper-claude")
    tmux_session: str = Field(default="main")
    claude_command: str = Field(default="claude")
    skip_permissions: bool = Field(default=True)
    continue_conversation: bool = Field(default=True)
    resume_existing: bool = Field(default=False)
    working_dir: str | None = Field(default=None)


class NotesConfig(BaseModel):
    path: str = Field(default="notes.md")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for papernote.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "PAPERNOTE_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # API Keys
    anthropic_api_key: SecretStr = Field(default=SecretStr(""))
    openai_api_key: SecretStr = Field(default=SecretStr(""))
    openrouter_api_key: SecretStr = Field(default=SecretStr(""))
    gemini_api_key: SecretStr = Field(default=SecretStr(""))

    # Configuration sections
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    notes: NotesConfig = Field(default_factory=NotesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def recognition_credentials(self) -> tuple[str, str | None]:
        """Resolve the API key and base URL for the configured provider.

        For the OpenAI-compatible provider an OpenRouter key wins over a
        Gemini key, which wins over a plain OpenAI key. The matching base URL
        is filled in unless one is configured explicitly.
        """
        base_url = self.recognition.base_url
        if self.recognition.provider == "anthropic":
            return self.anthropic_api_key.get_secret_value(), base_url

        or_key = self.openrouter_api_key.get_secret_value()
        if or_key:
            return or_key, base_url or OPENROUTER_BASE_URL
        gemini_key = self.gemini_api_key.get_secret_value()
        if gemini_key:
            return gemini_key, base_url or GEMINI_BASE_URL
        return self.openai_api_key.get_secret_value(), base_url


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    # Load .env file manually for non-prefixed vars
    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    key_vars = {
        "OPENAI_API_KEY": "openai_api_key",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "OPENROUTER_API_KEY": "openrouter_api_key",
        "GEMINI_API_KEY": "gemini_api_key",
    }
    for env_name, field_name in key_vars.items():
        value = os.environ.get(env_name, "")
        if value:
            yaml_data[field_name] = value

    if "recognition" not in yaml_data or yaml_data["recognition"] is None:
        yaml_data["recognition"] = {}

    vision_model = os.environ.get("VISION_MODEL", "")
    if vision_model and not yaml_data["recognition"].get("model"):
        yaml_data["recognition"]["model"] = vision_model

    # Only an Anthropic key available: pick the matching provider
    only_anthropic = (
        os.environ.get("ANTHROPIC_API_KEY")
        and not any(
            os.environ.get(name)
            for name in ("OPENAI_API_KEY", "OPENROUTER_API_KEY", "GEMINI_API_KEY")
        )
    )
    if only_anthropic and not yaml_data["recognition"].get("provider"):
        yaml_data["recognition"]["provider"] = "anthropic"
        if not yaml_data["recognition"].get("model"):
            yaml_data["recognition"]["model"] = "claude-sonnet-4-20250514"
