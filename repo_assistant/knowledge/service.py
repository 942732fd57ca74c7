"""KnowledgeBase: in-process store of repository, deployment, config and module records.

Constructed once at app startup (see api.lifespan) and kept on app.state.
Knowledge sources, configurations and modules are seeded in the constructor
and read-only afterwards. Repository links are created lazily on first lookup
and never updated or removed, so the link map behaves as a write-once cache
keyed by the lower-cased repository name.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable
from uuid import uuid4

from repo_assistant.client import GitHubClient
from repo_assistant.errors import GatewayError
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
from repo_assistant.knowledge.seed import (
    seed_configurations,
    seed_knowledge_sources,
    seed_modules,
)

logger = logging.getLogger("repo_assistant.knowledge")

# Returned instead of raising when a repository has no such environment.
NOT_FOUND = "Not found"

_BUILD_STATUS_DEPLOYMENT_LIMIT = 5
_MODULE_QUERY_WORDS = ("module", "code", "implementation")

_SOURCE_ROOT = Path(__file__).resolve().parents[2]

_LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".py": "python",
    ".cs": "csharp",
    ".json": "json",
    ".js": "javascript",
    ".ts": "typescript",
    ".html": "html",
    ".xml": "xml",
    ".toml": "toml",
}


def language_for_path(file_path: str) -> str:
    return _LANGUAGE_BY_EXTENSION.get(Path(file_path).suffix.lower(), "plaintext")


class KnowledgeBase:
    """Seeded knowledge collections plus the lazily built repository links."""

    def __init__(self, settings: KnowledgeSettings, client: GitHubClient) -> None:
        self._settings = settings
        self._client = client
        self._knowledge_sources: list[KnowledgeSource] = seed_knowledge_sources(settings)
        self._configurations: list[ConfigurationInfo] = seed_configurations(settings)
        self._modules: list[CodeModuleInfo] = seed_modules()
        self._repository_links: dict[str, RepositoryLink] = {}
        self._links_lock = threading.Lock()

        # Evaluated in this order; "environment" appears in two groups and the
        # later group wins data/message.
        self._query_handlers: list[tuple[tuple[str, ...], Callable[[QueryResponse, str], None]]] = [
            (("repo", "repository", "github"), self._answer_repository),
            (("deploy", "url", "environment"), self._answer_deployments),
            (("api", "endpoint"), self._answer_api_endpoints),
            (("config", "setting", "environment"), self._answer_configurations),
            (_MODULE_QUERY_WORDS, self._answer_modules),
        ]

    # ------------------------------------------------------------------
    # Knowledge sources
    # ------------------------------------------------------------------

    def list_knowledge_sources(self) -> list[KnowledgeSource]:
        return [s for s in self._knowledge_sources if s.is_active]

    def list_knowledge_sources_by_type(self, source_type: str) -> list[KnowledgeSource]:
        return [s for s in self._knowledge_sources if s.type == source_type and s.is_active]

    # ------------------------------------------------------------------
    # Repository links
    # ------------------------------------------------------------------

    def get_repository_link(self, repository_name: str) -> RepositoryLink:
        """Return the link for a repository, creating it on first request.

        Lookup is case-insensitive. The first caller's spelling of the name is
        kept on the record. This never fails: the knowledge base cannot tell
        whether a repository exists, so every name gets a link.
        """
        key = repository_name.lower()
        with self._links_lock:
            link = self._repository_links.get(key)
            if link is None:
                link = self._build_repository_link(repository_name)
                self._repository_links[key] = link
                logger.info("Created repository link for %r", repository_name)
        return link

    def _build_repository_link(self, repository_name: str) -> RepositoryLink:
        s = self._settings
        now = datetime.now(timezone.utc)
        return RepositoryLink(
            id=str(uuid4()),
            repository_name=repository_name,
            owner=s.owner,
            github_url=f"https://github.com/{s.owner}/{repository_name}",
            gitlab_url=f"https://gitlab.com/{s.owner}/{repository_name}",
            documentation_url=f"{s.public_url}/docs/{repository_name}",
            deployment_urls=[
                DeploymentUrl(
                    environment="Development",
                    url=s.local_url,
                    status="Active",
                    build_status="Success",
                    last_deployed=now,
                    deployment_details_url=f"{s.local_url}/docs",
                ),
                DeploymentUrl(
                    environment="Production",
                    url=s.public_url,
                    status="Active",
                    build_status="Success",
                    last_deployed=now - timedelta(hours=2),
                    deployment_details_url=f"{s.public_url}/docs",
                ),
            ],
            default_branch=s.default_branch,
            last_updated=now,
        )

    def get_repository_open_url(self, repository_name: str) -> str:
        return self.get_repository_link(repository_name).github_url

    def get_deployment_url(self, repository_name: str, environment: str) -> str:
        """URL of the named environment, or NOT_FOUND. Matching ignores case."""
        wanted = environment.lower()
        for deployment in self.get_repository_link(repository_name).deployment_urls:
            if deployment.environment.lower() == wanted:
                return deployment.url
        return NOT_FOUND

    def get_all_deployments(self, repository_name: str) -> list[DeploymentUrl]:
        return self.get_repository_link(repository_name).deployment_urls

    @property
    def repository_links(self) -> list[RepositoryLink]:
        with self._links_lock:
            return list(self._repository_links.values())

    # ------------------------------------------------------------------
    # Modules, endpoints, configurations
    # ------------------------------------------------------------------

    def search_modules(self, keyword: str) -> list[CodeModuleInfo]:
        keyword = keyword.lower()
        return [
            m
            for m in self._modules
            if keyword in m.module_name.lower()
            or keyword in m.description.lower()
            or keyword in m.file_path.lower()
        ]

    def get_api_endpoints(self, controller: str | None = None) -> list[ApiEndpointInfo]:
        """Endpoints of every module with at least one matching controller.

        The filter selects whole modules, so the result can include endpoints
        whose own controller does not match.
        """
        endpoints: list[ApiEndpointInfo] = []
        for module in self._modules:
            if controller is None or any(
                controller.lower() in e.controller.lower() for e in module.api_endpoints
            ):
                endpoints.extend(module.api_endpoints)
        return endpoints

    def get_configurations(self, environment: str | None = None) -> list[ConfigurationInfo]:
        return [
            c
            for c in self._configurations
            if environment is None or c.environment == environment or c.environment == "All"
        ]

    # ------------------------------------------------------------------
    # Query dispatch
    # ------------------------------------------------------------------

    def query_knowledge_base(self, query: str) -> QueryResponse:
        """Answer a free-text query by keyword group.

        Every matching group overwrites data and message; related_resources
        accumulates across groups. No match is not an error.
        """
        response = QueryResponse(success=True)
        lowered = query.lower()
        for keywords, handler in self._query_handlers:
            if any(k in lowered for k in keywords):
                handler(response, lowered)
        return response

    def _answer_repository(self, response: QueryResponse, query: str) -> None:
        link = self.get_repository_link(self._settings.default_repository)
        response.data = link
        response.message = f"Found repository: {link.repository_name}"
        response.related_resources.append(link.github_url)

    def _answer_deployments(self, response: QueryResponse, query: str) -> None:
        link = self.get_repository_link(self._settings.default_repository)
        response.data = link.deployment_urls
        response.message = "Found deployment URLs for various environments"
        response.related_resources.extend(d.url for d in link.deployment_urls)

    def _answer_api_endpoints(self, response: QueryResponse, query: str) -> None:
        endpoints = self.get_api_endpoints()
        response.data = endpoints
        response.message = f"Found {len(endpoints)} API endpoints"
        response.related_resources.extend(f"{e.method} {e.route}" for e in endpoints)

    def _answer_configurations(self, response: QueryResponse, query: str) -> None:
        configs = self.get_configurations()
        response.data = configs
        response.message = f"Found {len(configs)} configurations"

    def _answer_modules(self, response: QueryResponse, query: str) -> None:
        keyword = query
        for word in _MODULE_QUERY_WORDS:
            keyword = keyword.replace(word, "")
        modules = self.search_modules(keyword.strip()) or list(self._modules)
        response.data = modules
        response.message = f"Found {len(modules)} modules"

    # ------------------------------------------------------------------
    # Build status (delegates to GitHub)
    # ------------------------------------------------------------------

    async def get_build_status(self, repository_name: str) -> dict[str, Any]:
        """Latest deployments from GitHub, or an error-shaped result.

        Gateway failures are returned as status "Error" instead of raised.
        """
        try:
            deployments = await self._client.list_deployments(repository_name)
        except GatewayError as e:
            logger.warning("Build status for %r unavailable: %s", repository_name, e)
            return {
                "repositoryName": repository_name,
                "status": "Error",
                "message": str(e),
            }
        return {
            "repositoryName": repository_name,
            "latestDeployments": deployments[:_BUILD_STATUS_DEPLOYMENT_LIMIT],
            "status": "Success",
            "lastUpdated": datetime.now(timezone.utc),
        }

    # ------------------------------------------------------------------
    # Snippets and summary
    # ------------------------------------------------------------------

    def get_code_snippet(self, file_path: str, start_line: int = -1, end_line: int = -1) -> CodeSnippet:
        """Describe a file range; code is filled in only for seeded module files."""
        return CodeSnippet(
            id=str(uuid4()),
            file_path=file_path,
            start_line=start_line,
            end_line=end_line,
            code=self._read_module_source(file_path, start_line, end_line),
            language=language_for_path(file_path),
            description=f"Code snippet from {file_path}",
            tags=["code-snippet", file_path],
        )

    def _read_module_source(self, file_path: str, start_line: int, end_line: int) -> str | None:
        if file_path not in {m.file_path for m in self._modules}:
            return None
        source = _SOURCE_ROOT / file_path
        if not source.is_file():
            return None
        lines = source.read_text(encoding="utf-8").splitlines()
        start = max(start_line, 1) - 1
        end = len(lines) if end_line < 0 else end_line
        return "\n".join(lines[start:end])

    def get_summary(self) -> KnowledgeBaseSummary:
        links = self.repository_links
        environments: list[str] = []
        for env in [d.environment for link in links for d in link.deployment_urls] + [
            c.environment for c in self._configurations
        ]:
            if env != "All" and env not in environments:
                environments.append(env)
        return KnowledgeBaseSummary(
            total_repositories=len(links),
            total_api_endpoints=len(self.get_api_endpoints()),
            total_modules=len(self._modules),
            total_configurations=len(self._configurations),
            repository_names=[link.repository_name for link in links],
            available_environments=environments,
            source_type_count=dict(Counter(s.type for s in self.list_knowledge_sources())),
            last_updated=datetime.now(timezone.utc),
        )
