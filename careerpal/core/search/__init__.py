"""Semantic and hybrid search module."""

from .semantic_search import (
    SearchOptions,
    SearchResult,
    application_explain_fields,
    build_application_text,
    hybrid_search,
    is_semantic_query,
    lexical_search,
    semantic_search,
    semantic_search_with_embeddings,
)

__all__ = [
    "SearchOptions",
    "SearchResult",
    "build_application_text",
    "application_explain_fields",
    "is_semantic_query",
    "semantic_search",
    "semantic_search_with_embeddings",
    "lexical_search",
    "hybrid_search",
]
