"""
Semantic and hybrid search over saved applications.

Semantic search ranks items by cosine similarity between the query embedding
and each item's embedding, so "remote frontend role" can find a
"React developer (work from home)" posting with no shared keywords.
Hybrid search blends this with plain substring matching and degrades to
substring matching alone when no embedding model is available.
"""

import re
from dataclasses import dataclass
from functools import partial
from typing import Callable, Generic, Iterable, Mapping, Optional, Sequence, TypeVar

import numpy as np

from careerpal.data.models import StoredApplication
from careerpal.data.storage.base import StorageAdapter
from careerpal.ml.embeddings import EmbeddingCache, EmbeddingService
from careerpal.utils.config import SearchSettings, get_settings
from careerpal.utils.constants import EmbeddingSourceType
from careerpal.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

MATCHED_ON_CONTENT = "content"
MATCHED_ON_TEXT = "text"


@dataclass
class SearchOptions:
    """Options for semantic and hybrid search."""

    # None returns every result above min_score
    limit: Optional[int] = None
    min_score: float = 0.0
    # Report which field matched best (extra embedding work)
    explain: bool = False

    def __post_init__(self):
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be non-negative")


@dataclass
class SearchResult(Generic[T]):
    """A ranked search hit."""

    item: T
    score: float
    matched_on: str = MATCHED_ON_CONTENT


# =============================================================================
# Item text helpers
# =============================================================================


def build_application_text(app: StoredApplication) -> str:
    """Text embedded for an application: company, role, description and notes."""
    return app.searchable_text


def application_key(app: StoredApplication) -> str:
    return app.id


def application_fields(app: StoredApplication) -> list[str]:
    """Fields matched by lexical search."""
    return [app.company, app.role, app.job_description]


def application_explain_fields(app: StoredApplication) -> list[tuple[str, str]]:
    """Named fields compared when explaining an application match."""
    description_chars = get_settings().search.explain_description_chars
    return [
        ("role", app.role),
        ("company", app.company),
        ("description", app.job_description[:description_chars]),
    ]


def _content_field(text_of: Callable[[T], str], item: T) -> list[tuple[str, str]]:
    return [(MATCHED_ON_CONTENT, text_of(item))]


def _rank(results: list[SearchResult], limit: Optional[int]) -> list[SearchResult]:
    """Stable sort by descending score, then truncate."""
    ranked = sorted(results, key=lambda r: r.score, reverse=True)
    return ranked if limit is None else ranked[:limit]


# =============================================================================
# Query classification
# =============================================================================


def is_semantic_query(query: str, settings: Optional[SearchSettings] = None) -> bool:
    """
    Check if a query looks like it would benefit from semantic search.

    Natural-language phrasing ("looking for", "similar to", ...) or a query
    of several words suggests intent rather than an exact keyword.
    """
    settings = settings or get_settings().search

    for pattern in settings.semantic_patterns:
        if re.search(pattern, query, re.IGNORECASE):
            return True

    return len(query.split()) >= settings.semantic_word_threshold


# =============================================================================
# Search
# =============================================================================


async def semantic_search(
    query: str,
    items: Sequence[T],
    embedding_service: EmbeddingService,
    options: Optional[SearchOptions] = None,
    *,
    text_of: Callable[[T], str] = build_application_text,
    store: Optional[StorageAdapter] = None,
    key_of: Callable[[T], str] = application_key,
    source_type: EmbeddingSourceType = EmbeddingSourceType.APPLICATION,
    explain_fields_of: Optional[Callable[[T], list[tuple[str, str]]]] = None,
) -> list[SearchResult[T]]:
    """
    Rank items by semantic similarity to a query.

    Args:
        query: Search query.
        items: Items to search.
        embedding_service: Initialized embedding service.
        options: Search options.
        text_of: Extracts the text embedded for an item.
        store: When given, item embeddings are read from and saved to this store.
        key_of: Item ID used as the cache key.
        source_type: Cache source type of the items.
        explain_fields_of: Named fields compared when ``options.explain`` is set.
            Defaults to role/company/description for applications and to the
            item text otherwise.

    Returns:
        Results with ``score >= min_score``, best first.
    """
    options = options or SearchOptions()
    if not items:
        return []

    query_embedding = await embedding_service.embed(query)

    texts = [text_of(item) for item in items]
    if store is not None:
        cache = EmbeddingCache(store, embedding_service)
        item_embeddings = await cache.get_or_create_many(
            source_type, [(key_of(item), text) for item, text in zip(items, texts)]
        )
    else:
        item_embeddings = await embedding_service.embed_batch(texts)

    scores = embedding_service.batch_similarity(query_embedding, item_embeddings)
    results = [
        SearchResult(item=item, score=float(score))
        for item, score in zip(items, scores)
        if score >= options.min_score
    ]
    results = _rank(results, options.limit)

    if options.explain and results:
        if explain_fields_of is None:
            if text_of is build_application_text:
                explain_fields_of = application_explain_fields
            else:
                explain_fields_of = partial(_content_field, text_of)
        await _explain(query_embedding, results, embedding_service, explain_fields_of)

    logger.debug(f"Semantic search matched {len(results)} of {len(items)} items")
    return results


async def _explain(
    query_embedding: np.ndarray,
    results: list[SearchResult[T]],
    embedding_service: EmbeddingService,
    fields_of: Callable[[T], list[tuple[str, str]]],
) -> None:
    """Set ``matched_on`` to the named field closest to the query."""
    fields = [fields_of(r.item) for r in results]

    texts = [text for item_fields in fields for _, text in item_fields if text.strip()]
    vectors = iter(await embedding_service.embed_batch(texts))

    for result, item_fields in zip(results, fields):
        # ties and all-blank fields fall back to the last field
        best_name = item_fields[-1][0] if item_fields else MATCHED_ON_CONTENT
        best_score = 0.0
        for name, text in item_fields:
            if not text.strip():
                continue
            score = embedding_service.cosine_similarity(query_embedding, next(vectors))
            if score > best_score:
                best_name, best_score = name, score
        result.matched_on = best_name


def semantic_search_with_embeddings(
    query_embedding: np.ndarray,
    item_embeddings: Mapping[str, np.ndarray],
    items: Iterable[T],
    embedding_service: EmbeddingService,
    options: Optional[SearchOptions] = None,
    *,
    key_of: Callable[[T], str] = application_key,
) -> list[SearchResult[T]]:
    """
    Rank items using precomputed embeddings.

    Items without an entry in ``item_embeddings`` are skipped.
    """
    options = options or SearchOptions()
    results = []

    for item in items:
        embedding = item_embeddings.get(key_of(item))
        if embedding is None:
            continue

        score = embedding_service.cosine_similarity(query_embedding, embedding)
        if score >= options.min_score:
            results.append(SearchResult(item=item, score=score))

    return _rank(results, options.limit)


def lexical_search(
    query: str,
    items: Iterable[T],
    *,
    fields_of: Callable[[T], list[str]] = application_fields,
) -> list[SearchResult[T]]:
    """
    Case-insensitive substring search.

    Hits keep their input order and score 1.0. A blank query matches everything.
    """
    needle = query.lower().strip()
    return [
        SearchResult(item=item, score=1.0, matched_on=MATCHED_ON_TEXT)
        for item in items
        if needle in " ".join(fields_of(item)).lower()
    ]


async def hybrid_search(
    query: str,
    items: Sequence[StoredApplication],
    embedding_service: Optional[EmbeddingService],
    options: Optional[SearchOptions] = None,
    *,
    store: Optional[StorageAdapter] = None,
) -> list[SearchResult[StoredApplication]]:
    """
    Combine substring and semantic search.

    Without a ready embedding service this is plain ``lexical_search``.
    Confident semantic results (top score above the configured threshold)
    are returned as is; otherwise substring hits are blended in at a fixed
    score, with semantic results taking precedence for the same item.
    """
    options = options or SearchOptions()
    settings = get_settings().search

    text_results = lexical_search(query, items)

    if embedding_service is None or not embedding_service.is_ready():
        logger.debug("Embedding model unavailable, using text search")
        return text_results if options.limit is None else text_results[: options.limit]

    semantic_results = await semantic_search(
        query, items, embedding_service, options, store=store
    )

    if semantic_results and semantic_results[0].score > settings.hybrid_confidence_threshold:
        return semantic_results

    combined: dict[str, SearchResult[StoredApplication]] = {}
    # substring hits only join when their blend score clears min_score
    if settings.lexical_blend_score < options.min_score:
        text_results = []
    for result in text_results:
        combined[result.item.id] = SearchResult(
            item=result.item,
            score=settings.lexical_blend_score,
            matched_on=MATCHED_ON_TEXT,
        )
    for result in semantic_results:
        combined[result.item.id] = result

    return _rank(list(combined.values()), options.limit)
