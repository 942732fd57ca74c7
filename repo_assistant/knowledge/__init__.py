"""In-process knowledge base of repository links, configurations and modules."""

from repo_assistant.knowledge.config import KnowledgeSettings
from repo_assistant.knowledge.models import (
    ApiEndpointInfo,
    CodeModuleInfo,
    CodeSnippet,
    ConfigurationInfo,
    DeploymentUrl,
    KnowledgeBaseSummary,
    KnowledgeSource,
    QueryResponse,
    RepositoryLink,
)
from repo_assistant.knowledge.service import NOT_FOUND, KnowledgeBase

__all__ = [
    "NOT_FOUND",
    "ApiEndpointInfo",
    "CodeModuleInfo",
    "CodeSnippet",
    "ConfigurationInfo",
    "DeploymentUrl",
    "KnowledgeBase",
    "KnowledgeBaseSummary",
    "KnowledgeSettings",
    "KnowledgeSource",
    "QueryResponse",
    "RepositoryLink",
]
