"""Repository Assistant: GitHub and knowledge-base lookups over HTTP."""

__version__ = "0.1.0"
