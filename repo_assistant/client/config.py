"""Configuration for the GitHub HTTP client."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from repo_assistant.errors import ConfigurationError

logger = logging.getLogger("repo_assistant.client")

_DEFAULT_CONFIG_FILE = "config.json"


def load_static_config(path: str | None = None) -> dict[str, Any]:
    """Read the optional JSON config file.

    The path comes from the argument, else REPO_ASSISTANT_CONFIG, else
    ./config.json. A missing file yields {}; a malformed one is fatal.
    """
    path = path or os.getenv("REPO_ASSISTANT_CONFIG", _DEFAULT_CONFIG_FILE)
    config_path = Path(path)
    if not config_path.is_file():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{config_path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a JSON object")
    logger.info("Loaded static config from %s", config_path)
    return data


@dataclass(frozen=True)
class Settings:
    """Immutable GitHub client settings.

    Environment variables take precedence over the static config file.
    """

    token: str = field(default="", repr=False)
    username: str = ""
    api_endpoint: str = "https://api.github.com"
    timeout: int = 30
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, static: dict[str, Any] | None = None) -> Settings:
        github = (static or {}).get("github") or {}
        token = os.getenv("GITHUB_TOKEN") or github.get("token", "")
        username = os.getenv("GITHUB_USERNAME") or github.get("username", "")
        api_endpoint = os.getenv("GITHUB_API_ENDPOINT", "https://api.github.com").rstrip("/")
        timeout = int(os.getenv("GITHUB_TIMEOUT", "30"))
        log_level = os.getenv("REPO_ASSISTANT_LOG_LEVEL", "INFO").upper()
        return cls(
            token=token,
            username=username,
            api_endpoint=api_endpoint,
            timeout=timeout,
            log_level=log_level,
        )

    def require_credentials(self) -> Settings:
        """Fail fast when the username or token is missing."""
        missing = [
            name
            for name, value in (("GITHUB_USERNAME", self.username), ("GITHUB_TOKEN", self.token))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing GitHub credentials: {', '.join(missing)}. "
                "Set them in the environment, a .env file, or the 'github' "
                "section of the JSON config file."
            )
        return self

    @property
    def headers(self) -> dict[str, str]:
        h: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "repo-assistant/0.1.0",
        }
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h
