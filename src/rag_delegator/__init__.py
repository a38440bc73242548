"""Delegating RAG agent package."""

from .config import ComposerConfig, RetrievalConfig, RouterConfig

__all__ = ["ComposerConfig", "RetrievalConfig", "RouterConfig"]
