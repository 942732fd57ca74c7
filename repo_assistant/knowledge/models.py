"""Pydantic records held by the knowledge base.

Every model serialises with camelCase keys (repositoryName, gitHubUrl, ...)
and accepts either the alias or the Python field name on construction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Knowledge sources
# ---------------------------------------------------------------------------


class KnowledgeSource(_Record):
    """A named, typed external resource (repository, deployment, docs)."""

    id: str
    type: str = Field(..., description="'GitHub', 'GitLab', 'Documentation' or 'Deployment'.")
    name: str
    url: str
    description: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    is_active: bool = True


# ---------------------------------------------------------------------------
# Repository links
# ---------------------------------------------------------------------------


class DeploymentUrl(_Record):
    """One environment's endpoint plus status/build metadata."""

    environment: str = Field(..., description="'Development', 'Staging', 'Production', or free text.")
    url: str
    status: str = Field("Active", description="'Active', 'Inactive' or 'Maintenance'.")
    build_status: str = Field("Success", description="'Success', 'Failed' or 'InProgress'.")
    last_deployed: datetime
    deployment_details_url: str = ""


class RepositoryLink(_Record):
    """URLs, branch and deployments synthesised for one repository name."""

    id: str
    repository_name: str
    owner: str
    github_url: str = Field(..., alias="gitHubUrl")
    gitlab_url: str = Field(..., alias="gitLabUrl")
    documentation_url: str
    deployment_urls: list[DeploymentUrl] = Field(default_factory=list)
    default_branch: str = "main"
    last_updated: datetime


# ---------------------------------------------------------------------------
# Configuration and code modules
# ---------------------------------------------------------------------------


class ConfigurationInfo(_Record):
    key: str
    value: str
    environment: str = Field(..., description="'All', 'Development', 'Production', ...")
    description: str = ""
    is_sensitive: bool = False


class ApiEndpointInfo(_Record):
    method: str
    route: str
    description: str = ""
    controller: str
    parameters: dict[str, str] = Field(default_factory=dict)
    return_type: str = ""


class CodeModuleInfo(_Record):
    module_name: str
    file_path: str
    language: str
    description: str = ""
    dependencies: list[str] = Field(default_factory=list)
    api_endpoints: list[ApiEndpointInfo] = Field(default_factory=list)


class CodeSnippet(_Record):
    id: str
    file_path: str
    start_line: int = -1
    end_line: int = -1
    code: str | None = None
    language: str = "plaintext"
    description: str = ""
    tags: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


class QueryResponse(_Record):
    """Aggregated answer to a free-text knowledge-base query.

    An unmatched query is still a success: data stays None and message "".
    """

    success: bool = True
    message: str = ""
    data: Any = None
    code_snippets: list[CodeSnippet] = Field(default_factory=list)
    related_resources: list[str] = Field(default_factory=list)


class KnowledgeBaseSummary(_Record):
    total_repositories: int
    total_api_endpoints: int
    total_modules: int
    total_configurations: int
    repository_names: list[str] = Field(default_factory=list)
    available_environments: list[str] = Field(default_factory=list)
    source_type_count: dict[str, int] = Field(default_factory=dict)
    last_updated: datetime
