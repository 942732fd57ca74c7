"""Command-line entry point for the Repository Assistant.

Usage:
    repo-assistant serve --port 10000
    repo-assistant query "show me the deployment config for this environment"
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from argparse import ArgumentParser

from dotenv import load_dotenv

from repo_assistant.client import GitHubClient, Settings, load_static_config
from repo_assistant.errors import ConfigurationError
from repo_assistant.knowledge import KnowledgeBase, KnowledgeSettings


async def _run_query(text: str) -> int:
    settings = Settings.from_env(load_static_config()).require_credentials()
    client = GitHubClient(settings)
    try:
        knowledge = KnowledgeBase(KnowledgeSettings.from_env(owner=settings.username), client)
        response = knowledge.query_knowledge_base(text)
        print(json.dumps(response.model_dump(mode="json", by_alias=True), indent=2))
    finally:
        await client.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = ArgumentParser(prog="repo-assistant", description="Repository Assistant API")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_p = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_p.add_argument("--host", default="0.0.0.0")
    serve_p.add_argument("--port", type=int, default=None, help="Defaults to $PORT or 10000")
    serve_p.add_argument("--reload", action="store_true")

    query_p = sub.add_parser("query", help="Run a knowledge-base query and print the JSON answer")
    query_p.add_argument("text")

    args = parser.parse_args(argv)
    load_dotenv()

    if args.command == "serve":
        from repo_assistant.api import serve

        serve(host=args.host, port=args.port, reload=args.reload)
        return 0

    logging.basicConfig(level=Settings.from_env().log_level)
    try:
        return asyncio.run(_run_query(args.text))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
