"""Startup seeds for the knowledge base.

Each function builds a fresh list; the knowledge base calls them once in its
constructor and never mutates the results afterwards.
"""

from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import urlparse, urlsplit

from repo_assistant.knowledge.config import KnowledgeSettings
from repo_assistant.knowledge.models import (
    ApiEndpointInfo,
    CodeModuleInfo,
    ConfigurationInfo,
    KnowledgeSource,
)

HIDDEN = "***hidden***"
_UNSET = "***"


def mask_connection_string(value: str | None) -> str:
    """Mask the credentials of a URL-style connection string.

    The userinfo part becomes `***` and the query string is dropped, so
    neither the password nor `?password=` parameters survive. Values that do
    not parse as `scheme://host...` are replaced entirely by HIDDEN.
    """
    if not value:
        return _UNSET
    try:
        parts = urlsplit(value)
        parts.port
    except ValueError:
        return HIDDEN
    if not parts.scheme or not parts.hostname:
        return HIDDEN
    host = parts.netloc.rpartition("@")[2]
    userinfo = "***@" if "@" in parts.netloc else ""
    return f"{parts.scheme}://{userinfo}{host}{parts.path}"


def seed_knowledge_sources(settings: KnowledgeSettings) -> list[KnowledgeSource]:
    now = datetime.now(timezone.utc)
    local_port = str(urlparse(settings.local_url).port or "")
    return [
        KnowledgeSource(
            id="github-main",
            type="GitHub",
            name=f"{settings.default_repository} - Main Repository",
            url=f"https://github.com/{settings.owner}/{settings.default_repository}",
            description=f"Main GitHub repository for the {settings.default_repository} project",
            metadata={
                "owner": settings.owner,
                "branch": settings.default_branch,
                "visibility": "public",
            },
            created_at=now,
            updated_at=now,
        ),
        KnowledgeSource(
            id="deployed-app",
            type="Deployment",
            name="Repository Assistant API - Production",
            url=settings.public_url,
            description="Production deployment on Render",
            metadata={"platform": "Render", "environment": "production", "region": "us-east"},
            created_at=now,
            updated_at=now,
        ),
        KnowledgeSource(
            id="api-docs",
            type="Documentation",
            name="API Documentation - OpenAPI",
            url=f"{settings.public_url}/docs",
            description="Interactive API documentation",
            metadata={"type": "swagger", "format": "openapi3"},
            created_at=now,
            updated_at=now,
        ),
        KnowledgeSource(
            id="local-dev",
            type="Deployment",
            name="Local Development Environment",
            url=settings.local_url,
            description="Local development server",
            metadata={"environment": "development", "protocol": "http", "port": local_port},
            created_at=now,
            updated_at=now,
        ),
    ]


def seed_configurations(settings: KnowledgeSettings) -> list[ConfigurationInfo]:
    """Five configuration entries; sensitive values are masked here, never later."""
    return [
        ConfigurationInfo(
            key="GITHUB_USERNAME",
            value=settings.owner,
            environment="All",
            description="GitHub username for API authentication",
        ),
        ConfigurationInfo(
            key="GITHUB_TOKEN",
            value=HIDDEN,
            environment="All",
            description="GitHub personal access token",
            is_sensitive=True,
        ),
        ConfigurationInfo(
            key="DATABASE_URL",
            value=mask_connection_string(settings.database_url),
            environment="Development",
            description="Database connection string",
            is_sensitive=True,
        ),
        ConfigurationInfo(
            key="PORT",
            value=str(settings.port),
            environment="Production",
            description="Server port for Render deployment",
        ),
        ConfigurationInfo(
            key="APP_ENV",
            value=settings.environment,
            environment="Development",
            description="Application environment name",
        ),
    ]


def seed_modules() -> list[CodeModuleInfo]:
    """Descriptors of this service's own modules and the routes they expose."""
    return [
        CodeModuleInfo(
            module_name="GitHub Integration",
            file_path="repo_assistant/client/github_client.py",
            language="Python",
            description="Async client for the GitHub REST API that fetches repositories and deployments",
            dependencies=["httpx"],
            api_endpoints=[
                ApiEndpointInfo(
                    method="GET",
                    route="/api/github/repositories",
                    description="Fetch all GitHub repositories for the configured user",
                    controller="GitHubRoutes",
                    return_type="list[str]",
                ),
                ApiEndpointInfo(
                    method="GET",
                    route="/api/github/repositories/{repoName}/deployments",
                    description="Fetch deployment history for a specific repository",
                    controller="GitHubRoutes",
                    parameters={"repoName": "str"},
                    return_type="list[dict]",
                ),
            ],
        ),
        CodeModuleInfo(
            module_name="Knowledge Base",
            file_path="repo_assistant/knowledge/service.py",
            language="Python",
            description=(
                "In-process knowledge database of repository links, deployment URLs, "
                "configuration entries and code modules"
            ),
            dependencies=["pydantic"],
            api_endpoints=[
                ApiEndpointInfo(
                    method="GET",
                    route="/api/knowledge/query",
                    description="Keyword-routed query over the knowledge base",
                    controller="KnowledgeRoutes",
                    parameters={"q": "str"},
                    return_type="QueryResponse",
                ),
                ApiEndpointInfo(
                    method="GET",
                    route="/api/knowledge/repository/{repoName}",
                    description="Repository links and deployments",
                    controller="KnowledgeRoutes",
                    parameters={"repoName": "str"},
                    return_type="RepositoryLink",
                ),
                ApiEndpointInfo(
                    method="POST",
                    route="/api/knowledge/action/execute",
                    description="Dispatch a single assistant action",
                    controller="KnowledgeRoutes",
                    parameters={"action": "str", "repositoryName": "str", "environment": "str", "query": "str"},
                    return_type="dict",
                ),
            ],
        ),
        CodeModuleInfo(
            module_name="API Application",
            file_path="repo_assistant/api.py",
            language="Python",
            description="FastAPI application startup, CORS and route wiring",
            dependencies=["FastAPI", "uvicorn", "slowapi"],
            api_endpoints=[
                ApiEndpointInfo(
                    method="GET",
                    route="/",
                    description="Root endpoint with API status",
                    controller="System",
                    return_type="dict",
                ),
                ApiEndpointInfo(
                    method="GET",
                    route="/docs",
                    description="Swagger UI for API documentation",
                    controller="OpenAPI",
                    return_type="HTML",
                ),
            ],
        ),
    ]
