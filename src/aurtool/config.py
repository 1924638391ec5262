"""Configuration management for aurtool."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .api_clients.base_client import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)

DEFAULT_ROOT_DIR = Path.home() / ".aurtool"
VALID_SORT_FIELDS = ["Name", "NumVotes", "Version", "ID"]


class AurtoolConfig(BaseModel):
    """User configuration, stored as JSON in the aurtool root directory."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="AUR web origin")
    user_agent: Optional[str] = Field(
        default=None, description="User-Agent header (default: aurtool/<version>)"
    )
    timeout: Optional[float] = Field(
        default=60.0, description="Per-request timeout in seconds, null for none"
    )
    colors: bool = Field(default=True, description="Colored terminal output")
    sort: str = Field(default="Name", description="Default sort field for searches")
    root_dir: Path = Field(
        default=DEFAULT_ROOT_DIR, description="Directory for cookie and ignore list"
    )

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        if not value.startswith(("https://", "http://")):
            raise ValueError(f"base_url must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    @field_validator("sort")
    @classmethod
    def _check_sort(cls, value: str) -> str:
        if value not in VALID_SORT_FIELDS:
            raise ValueError(f"sort must be one of {VALID_SORT_FIELDS}, got {value!r}")
        return value

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("timeout must be positive or null")
        return value

    @property
    def session_path(self) -> Path:
        return self.root_dir / "cookie"

    @property
    def ignore_path(self) -> Path:
        return self.root_dir / "upgrade_ignore"


class ConfigManager:
    """Loads and saves the aurtool configuration file.

    Environment variables override file values:
        AURTOOL_BASE_URL: AUR web origin
        AURTOOL_TIMEOUT: Request timeout in seconds ("none" disables it)
    """

    DEFAULT_CONFIG_PATH = DEFAULT_ROOT_DIR / "config.json"

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        self._config: Optional[AurtoolConfig] = None

    def load(self, use_env: bool = True) -> AurtoolConfig:
        """Load configuration from file, falling back to defaults if absent.

        Raises:
            ValueError: If the file or an environment override is invalid
        """
        data = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ValueError(f"Failed to load config from {self.config_path}: {e}")
            if not isinstance(data, dict):
                raise ValueError(f"Config file {self.config_path} must hold a JSON object")

        if use_env:
            if "AURTOOL_BASE_URL" in os.environ:
                data["base_url"] = os.environ["AURTOOL_BASE_URL"]
            if "AURTOOL_TIMEOUT" in os.environ:
                raw = os.environ["AURTOOL_TIMEOUT"]
                data["timeout"] = None if raw.lower() == "none" else raw

        try:
            self._config = AurtoolConfig(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration in {self.config_path}: {e}")

        logger.debug(f"Loaded configuration from {self.config_path}")
        return self._config

    def save(self, config: Optional[AurtoolConfig] = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(config.model_dump(mode="json"), f, indent=2)
