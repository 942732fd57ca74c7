"""GitHub HTTP client."""

from repo_assistant.client.config import Settings, load_static_config
from repo_assistant.client.github_client import GitHubClient

__all__ = ["GitHubClient", "Settings", "load_static_config"]
