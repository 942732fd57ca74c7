"""Settings for the knowledge base seeds and repository-link templates."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class KnowledgeSettings:
    """Immutable settings loaded from environment variables.

    owner is the GitHub account used to template repository URLs; it is
    normally the client's username and is passed in rather than read here.
    """

    owner: str
    default_repository: str = "Virtual_Assistant_Bot"
    default_branch: str = "Dev"
    public_url: str = "https://virtual-assistant-bot.onrender.com"
    local_url: str = "http://localhost:5206"
    port: int = 10000
    environment: str = "Development"
    database_url: str = field(default="", repr=False)

    @classmethod
    def from_env(cls, owner: str) -> KnowledgeSettings:
        return cls(
            owner=owner,
            default_repository=os.getenv("DEFAULT_REPOSITORY", "Virtual_Assistant_Bot"),
            default_branch=os.getenv("DEFAULT_BRANCH", "Dev"),
            public_url=os.getenv("PUBLIC_URL", "https://virtual-assistant-bot.onrender.com").rstrip("/"),
            local_url=os.getenv("LOCAL_URL", "http://localhost:5206").rstrip("/"),
            port=int(os.getenv("PORT", "10000")),
            environment=os.getenv("APP_ENV", "Development"),
            database_url=os.getenv("DATABASE_URL", ""),
        )
