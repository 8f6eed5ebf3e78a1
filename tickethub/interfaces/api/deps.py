"""
API Dependencies - Dependency injection for FastAPI routes.

Provides per-process instances of the record repository, index store and
search service.
"""

from __future__ import annotations

from functools import lru_cache

from tickethub.adapters.sqlite import SQLiteRepository
from tickethub.config import get_settings
from tickethub.domains.search import SearchExecutor, SearchIndexStore, SearchService


@lru_cache
def get_sqlite_repository() -> SQLiteRepository:
    """Get SQLite repository singleton."""
    settings = get_settings()
    return SQLiteRepository(settings.db_path)


@lru_cache
def get_index_store() -> SearchIndexStore:
    """Get search index store singleton."""
    settings = get_settings()
    return SearchIndexStore(settings.db_path)


@lru_cache
def get_search_service() -> SearchService:
    """Get search service singleton wired to the shared store and repository."""
    settings = get_settings()
    store = get_index_store()
    return SearchService(
        store,
        get_sqlite_repository(),
        executor=SearchExecutor(store, snippet_max_length=settings.snippet_max_length),
        max_limit=settings.search_max_limit,
    )


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    await get_sqlite_repository().initialize()
    await get_index_store().initialize()


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    await get_index_store().close()
    await get_sqlite_repository().close()
