"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import threading

from linnsite.config import get_settings
from linnsite.db import DbClient, InMemoryDbClient, SqlDbClient
from linnsite.github import GithubRepoCache
from linnsite.service import SiteService

_db_client: DbClient | None = None
_repo_cache: GithubRepoCache | None = None
_site_service: SiteService | None = None

# Sync handlers resolve these from the threadpool; first requests may race.
_lock = threading.RLock()


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so the counter and contacts share one store.

    Raises ``StoreError`` when the database cannot be opened.
    """
    global _db_client
    if _db_client:
        return _db_client

    with _lock:
        if _db_client:
            return _db_client
        settings = get_settings()
        if settings.use_in_memory_backends:
            _db_client = InMemoryDbClient()
        else:
            _db_client = SqlDbClient(settings.resolved_database_url())
        return _db_client


def get_repo_cache() -> GithubRepoCache:
    global _repo_cache
    if _repo_cache:
        return _repo_cache

    with _lock:
        if _repo_cache:
            return _repo_cache
        settings = get_settings()
        _repo_cache = GithubRepoCache(
            settings.github_repo,
            token=settings.github_token,
            api_base=settings.github_api_base,
            ttl_seconds=settings.github_cache_ttl,
        )
        return _repo_cache


def get_site_service() -> SiteService:
    global _site_service
    if _site_service:
        return _site_service

    with _lock:
        if _site_service:
            return _site_service
        _site_service = SiteService(get_db_client(), get_repo_cache())
        return _site_service
