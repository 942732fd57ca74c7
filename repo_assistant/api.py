"""FastAPI service for the Repository Assistant.

Two route groups:

  /api/github/...     Live GitHub lookups (repositories, deployments), joined
                      with knowledge-base repository links.
  /api/knowledge/...  Reads over the in-process knowledge base, the free-text
                      query endpoint, and single-action wrappers for assistants.

Responses are JSON envelopes {success, ..., message?}. Errors carry an
"error" field and map as follows:

  AuthenticationError → 401     UpstreamError → 502
  ValidationError     → 400     anything else → 500
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from repo_assistant import __version__
from repo_assistant.client import GitHubClient, Settings, load_static_config
from repo_assistant.errors import AuthenticationError, GatewayError, UpstreamError, ValidationError
from repo_assistant.knowledge import NOT_FOUND, KnowledgeBase, KnowledgeSettings

logger = logging.getLogger("repo_assistant.api")

_DEFAULT_PORT = 10000

# ---------------------------------------------------------------------------
# Lifespan: build the GitHub client and knowledge base once, close on shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the process-scoped GitHubClient and KnowledgeBase.

    Missing GitHub credentials raise ConfigurationError here, so the server
    refuses to start rather than failing per request.
    """
    load_dotenv()

    settings = Settings.from_env(load_static_config()).require_credentials()
    client = GitHubClient(settings)
    knowledge = KnowledgeBase(KnowledgeSettings.from_env(owner=settings.username), client)

    logger.info(
        "Starting Repository Assistant | GitHub: %s | user: %s",
        settings.api_endpoint,
        settings.username,
    )

    app.state.client = client
    app.state.knowledge = knowledge

    yield

    await client.close()
    logger.info("Shutting down Repository Assistant")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


_rate_limit = os.getenv("RATE_LIMIT_ACTIONS_PER_MIN", "60")
limiter = Limiter(key_func=get_remote_address)

app = FastAPI(
    title="Repository Assistant API",
    description=(
        "GitHub repository and deployment lookups cross-referenced with an "
        "in-process knowledge base of links, configuration and code modules."
    ),
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


async def _authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": str(exc)})


async def _upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={"error": str(exc), "statusCode": exc.status_code, "detail": exc.body},
    )


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
    )


async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc)})


app.add_exception_handler(AuthenticationError, _authentication_error)
app.add_exception_handler(UpstreamError, _upstream_error)
app.add_exception_handler(ValidationError, _validation_error)
app.add_exception_handler(RequestValidationError, _request_validation_error)
app.add_exception_handler(Exception, _internal_error)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class ActionCommand(BaseModel):
    """Request body for POST /api/knowledge/action/execute."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: str | None = Field(
        None,
        description="'open-repo', 'fetch-deployment', 'show-build-status' or 'query'.",
        examples=["fetch-deployment"],
    )
    repository_name: str | None = Field(None, description="Target repository (repo actions).")
    environment: str | None = Field(None, description="Deployment environment (fetch-deployment).")
    query: str | None = Field(None, description="Free-text query (query action).")


# ---------------------------------------------------------------------------
# Dependency
# ---------------------------------------------------------------------------


def _get_client(request: Request) -> GitHubClient:
    return request.app.state.client


def _get_knowledge(request: Request) -> KnowledgeBase:
    return request.app.state.knowledge


def _require(value: str | None, message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message)
    return value


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@app.get("/", tags=["system"])
async def root() -> dict:
    """API status."""
    return {
        "name": "Repository Assistant API",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health", tags=["system"])
async def health(request: Request) -> dict:
    """Liveness; "github" reports whether the GitHub API answered a listing."""
    knowledge = _get_knowledge(request)
    try:
        await _get_client(request).list_repositories()
        github = True
    except GatewayError as e:
        logger.warning("Health check: GitHub unreachable: %s", e)
        github = False
    return {
        "api": "ok",
        "github": github,
        "knowledge_sources": len(knowledge.list_knowledge_sources()),
        "repository_links": len(knowledge.repository_links),
    }


# ---------------------------------------------------------------------------
# GitHub routes
# ---------------------------------------------------------------------------


@app.get("/api/github/repositories", tags=["github"])
async def list_repositories(request: Request) -> list[str]:
    return await _get_client(request).list_repositories()


@app.get("/api/github/repositories/{repo_name}/deployments", tags=["github"])
async def list_deployments(repo_name: str, request: Request) -> list[dict[str, Any]]:
    return await _get_client(request).list_deployments(repo_name)


@app.get("/api/github/repositories/{repo_name}/info", tags=["github"])
async def repository_info(repo_name: str, request: Request) -> dict:
    return {"success": True, "data": _get_knowledge(request).get_repository_link(repo_name)}


@app.get("/api/github/repositories/{repo_name}/with-deployments", tags=["github"])
async def repository_with_deployments(repo_name: str, request: Request) -> dict:
    """GitHub deployment records alongside the knowledge-base link."""
    deployments = await _get_client(request).list_deployments(repo_name)
    return {
        "success": True,
        "repository": repo_name,
        "count": len(deployments),
        "deployments": deployments,
        "data": _get_knowledge(request).get_repository_link(repo_name),
    }


@app.get("/api/github/all-repositories-with-info", tags=["github"])
async def all_repositories_with_info(request: Request) -> dict:
    names = await _get_client(request).list_repositories()
    knowledge = _get_knowledge(request)
    links = [knowledge.get_repository_link(name) for name in names]
    return {"success": True, "count": len(links), "data": links}


@app.get("/api/github/repositories/{repo_name}/deployment-status", tags=["github"])
async def deployment_status(repo_name: str, request: Request) -> dict:
    knowledge = _get_knowledge(request)
    return {
        "success": True,
        "repository": repo_name,
        "buildStatus": await knowledge.get_build_status(repo_name),
        "deployments": knowledge.get_all_deployments(repo_name),
    }


@app.get("/api/github/repositories/{repo_name}/environment/{environment}/url", tags=["github"])
async def environment_url(repo_name: str, environment: str, request: Request):
    url = _get_knowledge(request).get_deployment_url(repo_name, environment)
    if url == NOT_FOUND:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": f"No deployment URL for environment '{environment}' in '{repo_name}'",
            },
        )
    return {"success": True, "repository": repo_name, "environment": environment, "url": url}


@app.get("/api/github/search-repositories", tags=["github"])
async def search_repositories(request: Request, pattern: str | None = None) -> dict:
    """Case-insensitive substring match over the user's GitHub repositories."""
    pattern = _require(pattern, "Query parameter 'pattern' is required")
    names = await _get_client(request).list_repositories()
    knowledge = _get_knowledge(request)
    needle = pattern.lower()
    links = [knowledge.get_repository_link(n) for n in names if needle in n.lower()]
    return {"success": True, "pattern": pattern, "count": len(links), "data": links}


@app.get("/api/github/repositories/{repo_name}/configuration", tags=["github"])
async def repository_configuration(repo_name: str, request: Request) -> dict:
    knowledge = _get_knowledge(request)
    return {
        "success": True,
        "repository": knowledge.get_repository_link(repo_name),
        "configurations": knowledge.get_configurations("Production"),
    }


# ---------------------------------------------------------------------------
# Knowledge routes
# ---------------------------------------------------------------------------


@app.get("/api/knowledge/sources", tags=["knowledge"])
async def knowledge_sources(request: Request) -> dict:
    sources = _get_knowledge(request).list_knowledge_sources()
    return {"success": True, "count": len(sources), "data": sources}


@app.get("/api/knowledge/sources/type/{source_type}", tags=["knowledge"])
async def knowledge_sources_by_type(source_type: str, request: Request) -> dict:
    sources = _get_knowledge(request).list_knowledge_sources_by_type(source_type)
    return {"success": True, "type": source_type, "count": len(sources), "data": sources}


@app.get("/api/knowledge/query", tags=["knowledge"])
async def query_knowledge(request: Request, q: str | None = None):
    q = _require(q, "Query parameter 'q' is required")
    logger.info("Knowledge query: %r", q[:80])
    return _get_knowledge(request).query_knowledge_base(q)


@app.get("/api/knowledge/repository/{repo_name}", tags=["knowledge"])
async def knowledge_repository(repo_name: str, request: Request) -> dict:
    return {"success": True, "data": _get_knowledge(request).get_repository_link(repo_name)}


@app.get("/api/knowledge/repository/{repo_name}/deployments", tags=["knowledge"])
async def knowledge_deployments(repo_name: str, request: Request) -> dict:
    deployments = _get_knowledge(request).get_all_deployments(repo_name)
    return {"success": True, "repository": repo_name, "count": len(deployments), "data": deployments}


@app.get("/api/knowledge/repository/{repo_name}/deployment/{environment}", tags=["knowledge"])
async def knowledge_deployment_url(repo_name: str, environment: str, request: Request) -> dict:
    url = _get_knowledge(request).get_deployment_url(repo_name, environment)
    return {"success": True, "repository": repo_name, "environment": environment, "url": url}


@app.get("/api/knowledge/api-endpoints", tags=["knowledge"])
async def knowledge_api_endpoints(request: Request, controller: str | None = None) -> dict:
    endpoints = _get_knowledge(request).get_api_endpoints(controller)
    return {"success": True, "count": len(endpoints), "controller": controller, "data": endpoints}


@app.get("/api/knowledge/modules", tags=["knowledge"])
async def knowledge_modules(request: Request, search: str | None = None) -> dict:
    modules = _get_knowledge(request).search_modules((search or "").strip())
    return {"success": True, "count": len(modules), "search": search, "data": modules}


@app.get("/api/knowledge/configurations", tags=["knowledge"])
async def knowledge_configurations(request: Request, environment: str | None = None) -> dict:
    configs = _get_knowledge(request).get_configurations(environment)
    return {"success": True, "count": len(configs), "environment": environment, "data": configs}


@app.get("/api/knowledge/repository/{repo_name}/build-status", tags=["knowledge"])
async def knowledge_build_status(repo_name: str, request: Request) -> dict:
    return {"success": True, "data": await _get_knowledge(request).get_build_status(repo_name)}


@app.get("/api/knowledge/summary", tags=["knowledge"])
async def knowledge_summary(request: Request) -> dict:
    return {"success": True, "data": _get_knowledge(request).get_summary()}


@app.get("/api/knowledge/snippet", tags=["knowledge"])
async def knowledge_snippet(
    request: Request, path: str | None = None, start: int = -1, end: int = -1,
) -> dict:
    path = _require(path, "Query parameter 'path' is required")
    return {"success": True, "data": _get_knowledge(request).get_code_snippet(path, start, end)}


# ---------------------------------------------------------------------------
# Assistant actions
# ---------------------------------------------------------------------------


@app.get("/api/knowledge/action/open-repo/{repo_name}", tags=["actions"])
async def action_open_repo(repo_name: str, request: Request) -> dict:
    url = _get_knowledge(request).get_repository_open_url(repo_name)
    return {
        "success": True,
        "action": "open-repo",
        "repository": repo_name,
        "url": url,
        "message": f"Open this URL in your browser: {url}",
    }


@app.get("/api/knowledge/action/fetch-deployment/{repo_name}/{environment}", tags=["actions"])
async def action_fetch_deployment(repo_name: str, environment: str, request: Request) -> dict:
    url = _get_knowledge(request).get_deployment_url(repo_name, environment)
    return {
        "success": True,
        "action": "fetch-deployment",
        "repository": repo_name,
        "environment": environment,
        "url": url,
        "message": f"Deployment URL for {environment}: {url}",
    }


@app.get("/api/knowledge/action/show-build-status/{repo_name}", tags=["actions"])
async def action_show_build_status(repo_name: str, request: Request) -> dict:
    return {
        "success": True,
        "action": "show-build-status",
        "data": await _get_knowledge(request).get_build_status(repo_name),
        "message": f"Latest build status for {repo_name}",
    }


@app.post("/api/knowledge/action/execute", tags=["actions"])
@limiter.limit(f"{_rate_limit}/minute")
async def execute_action(request: Request, body: ActionCommand) -> dict:
    """Dispatch one assistant action.

    open-repo and show-build-status need repositoryName; fetch-deployment also
    needs environment; query needs query.
    """
    action = _require(body.action, "Action is required").strip()
    knowledge = _get_knowledge(request)
    kind = action.lower()

    if kind == "open-repo":
        repo = _require(body.repository_name, "repositoryName is required for open-repo")
        result: Any = knowledge.get_repository_open_url(repo)
        message = f"Repository URL: {result}"
    elif kind == "fetch-deployment":
        repo = _require(body.repository_name, "repositoryName is required for fetch-deployment")
        environment = _require(body.environment, "environment is required for fetch-deployment")
        result = knowledge.get_deployment_url(repo, environment)
        message = f"Deployment URL for {environment}: {result}"
    elif kind == "show-build-status":
        repo = _require(body.repository_name, "repositoryName is required for show-build-status")
        result = await knowledge.get_build_status(repo)
        message = "Build status retrieved"
    elif kind == "query":
        result = knowledge.query_knowledge_base(_require(body.query, "query is required for query"))
        message = "Query executed"
    else:
        raise ValidationError(f"Unknown action: {action}")

    logger.info("Executed action %s", kind)
    return {"success": True, "action": action, "message": message, "data": result}


# ---------------------------------------------------------------------------
# Entry point (for uvicorn programmatic launch)
# ---------------------------------------------------------------------------


def serve(host: str = "0.0.0.0", port: int | None = None, reload: bool = False) -> None:
    """Launch the FastAPI server via uvicorn."""
    import uvicorn

    logging.basicConfig(level=Settings.from_env().log_level)
    uvicorn.run(
        "repo_assistant.api:app",
        host=host,
        port=port or int(os.getenv("PORT", str(_DEFAULT_PORT))),
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    serve()
