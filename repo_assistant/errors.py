"""Exception hierarchy shared by the GitHub client, knowledge base and API.

The HTTP layer maps these to status codes:

    AuthenticationError  → 401
    UpstreamError        → 502
    ValidationError      → 400

ConfigurationError is raised at startup only and is never mapped to a response.
"""

from __future__ import annotations


class RepoAssistantError(Exception):
    """Base class for all errors raised by repo_assistant."""


class ConfigurationError(RepoAssistantError):
    """Required settings (e.g. GitHub credentials) are missing or invalid."""


class ValidationError(RepoAssistantError):
    """A required request input is missing or blank."""


class GatewayError(RepoAssistantError):
    """Base class for failures talking to the GitHub REST API."""


class AuthenticationError(GatewayError):
    """GitHub rejected the configured credentials (HTTP 401)."""


class UpstreamError(GatewayError):
    """GitHub returned a non-success response, or could not be reached.

    status_code is None for transport failures (connect/read errors, timeouts).
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
