"""
Configuration management for the modification tracker.
Reads settings from config.json, the environment and .env with validation and defaults.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import structlog
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from monitor.models import DeliveryPolicy
from utilities.errors import ConfigError

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_FILE = "config.json"

# Values written to a freshly created config.json; they count as unset.
PLACEHOLDERS = {
    "modification": "MODIFICATION_NAMESPACE",
    "webhook_url": "DISCORD_WEBHOOK_URL",
}

# Older config files use camelCase keys.
CONFIG_FILE_ALIASES = {
    "webhookUrl": "webhook_url",
}

MISSING_MESSAGES = {
    "modification": "please enter a modification",
    "webhook_url": "please enter a webhook url",
}


class TrackerConfig(BaseSettings):
    """
    Configuration class for tracker settings.
    Uses pydantic BaseSettings for environment variable management.
    """

    # Tracked subject and messaging sink
    modification: str = Field(..., description="Namespace of the modification to track")
    webhook_url: str = Field(..., description="Discord webhook URL notifications are posted to")

    # Remote API
    api_url: str = Field(
        default="https://flintmc.net/api/client-store/get-modification/{namespace}",
        description="Template of the modification endpoint",
    )
    modification_page_url: str = Field(
        default="https://flintmc.net/modification/{id}.{namespace}",
        description="Template of the public modification page linked from messages",
    )
    request_timeout: int = Field(default=30, description="HTTP timeout in seconds")

    # Baseline storage
    baseline_file: str = Field(default="latest.json")

    # Notification appearance
    webhook_username: str = Field(default="FlintMC Modification Tracker")
    webhook_avatar_url: str = Field(default="https://avatars.githubusercontent.com/u/76062092")
    embed_color: int = Field(default=6689010)
    delivery_policy: DeliveryPolicy = Field(default=DeliveryPolicy.FAIL_FAST)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_file: Optional[str] = Field(default=None)

    # Development/Testing
    debug: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("modification")
    @classmethod
    def validate_modification(cls, v):
        """Reject empty or placeholder namespaces."""
        v = v.strip()
        if not v or v == PLACEHOLDERS["modification"]:
            raise ValueError(MISSING_MESSAGES["modification"])
        return v

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v):
        """Reject empty, placeholder or non-HTTP webhook URLs."""
        v = v.strip()
        if not v or v == PLACEHOLDERS["webhook_url"]:
            raise ValueError(MISSING_MESSAGES["webhook_url"])
        if urlparse(v).scheme not in ("http", "https"):
            raise ValueError("webhook url must be an http(s) URL")
        return v

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v):
        """Ensure the endpoint template only uses the {namespace} placeholder."""
        try:
            v.format(namespace="")
        except (KeyError, IndexError, ValueError):
            raise ValueError("api_url may only contain the {namespace} placeholder")
        return v

    @field_validator("modification_page_url")
    @classmethod
    def validate_modification_page_url(cls, v):
        """Ensure the page template only uses the {id} and {namespace} placeholders."""
        try:
            v.format(id=0, namespace="")
        except (KeyError, IndexError, ValueError):
            raise ValueError("modification_page_url may only contain the {id} and {namespace} placeholders")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 5 or v > 300:
            raise ValueError("request_timeout must be between 5 and 300 seconds")
        return v

    @field_validator("embed_color")
    @classmethod
    def validate_embed_color(cls, v):
        """Ensure the colour fits in 24 bits."""
        if v < 0 or v > 0xFFFFFF:
            raise ValueError("embed_color must be between 0 and 16777215")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_baseline_path(self) -> Path:
        """Get baseline file path as Path object."""
        return Path(self.baseline_file)

    def get_user_agent(self) -> str:
        """Get user agent string for requests."""
        return "FlintMC-Modification-Tracker/1.0"

    def get_headers(self) -> dict:
        """Get default headers for HTTP requests."""
        return {
            "User-Agent": self.get_user_agent(),
            "Accept": "application/json",
        }


def write_default_config(path: Path) -> None:
    """Create a config file holding placeholder values for the required settings."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(PLACEHOLDERS, f, indent=2)
        f.write("\n")


def read_config_file(path: Path) -> Dict[str, Any]:
    """
    Read settings from a JSON config file.

    Placeholder and empty values are dropped so the environment can supply them.

    Args:
        path: Config file location

    Returns:
        Settings keyed by field name
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"failed to read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")

    values = {}
    for key, value in data.items():
        key = CONFIG_FILE_ALIASES.get(key, key)
        if value is None or value == "" or value == PLACEHOLDERS.get(key):
            continue
        values[key] = value
    return values


def load_config(config_file=DEFAULT_CONFIG_FILE, create_default: bool = True) -> TrackerConfig:
    """
    Build the tracker configuration.

    Values from the config file win over the environment, which wins over .env.
    A missing config file is created with placeholders, which still fails
    validation unless the environment provides real values.

    Args:
        config_file: Path of the JSON config file
        create_default: Write a placeholder file when none exists

    Returns:
        Validated TrackerConfig

    Raises:
        ConfigError: Required settings are missing or invalid
    """
    path = Path(config_file)
    if not path.exists():
        if create_default:
            try:
                write_default_config(path)
            except OSError as e:
                raise ConfigError(f"failed to create config: {e}") from e
            logger.info("Created default configuration file", path=str(path))
        values = {}
    else:
        values = read_config_file(path)

    try:
        return TrackerConfig(**values)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "config"
            message = error["msg"]
            if error["type"] == "missing" and field in MISSING_MESSAGES:
                message = MISSING_MESSAGES[field]
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            problems.append(f"{field}: {message}")
        raise ConfigError(f"invalid configuration in {path}: {'; '.join(problems)}") from e
