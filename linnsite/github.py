"""
Cached access to GitHub repository metadata.

The cache holds a single slot: the slim projection of one repository and the
time it was fetched. A fresh slot is served as is; a stale or empty slot
triggers one upstream request whose outcome is shared by every caller that
missed while it was in flight. Failed fetches never touch the slot.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import asdict, dataclass
from typing import Callable, Optional

import requests

from linnsite.exceptions import UpstreamError, UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600.0
REQUEST_TIMEOUT = 30  # seconds
USER_AGENT = "www-linn-games"


@dataclass(frozen=True)
class RepoSummary:
    full_name: Optional[str]
    html_url: Optional[str]
    description: Optional[str]
    stargazers_count: Optional[int]
    forks_count: Optional[int]
    open_issues_count: Optional[int]
    license: Optional[str]
    pushed_at: Optional[str]

    @classmethod
    def from_api(cls, data: dict) -> "RepoSummary":
        """Keep only the fields the site shows; everything else is dropped."""
        license_info = data.get("license") or {}
        return cls(
            full_name=data.get("full_name"),
            html_url=data.get("html_url"),
            description=data.get("description"),
            stargazers_count=data.get("stargazers_count"),
            forks_count=data.get("forks_count"),
            open_issues_count=data.get("open_issues_count"),
            license=license_info.get("spdx_id") or None,
            pushed_at=data.get("pushed_at"),
        )

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CachedRepo:
    fetched_at: float
    summary: RepoSummary


class GithubRepoCache:
    """Single-slot TTL cache in front of ``GET /repos/{owner}/{repo}``."""

    def __init__(
        self,
        repo: str,
        *,
        token: Optional[str] = None,
        api_base: str = "https://api.github.com",
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repo = repo
        self.url = f"{api_base.rstrip('/')}/repos/{repo}"
        self.ttl_seconds = ttl_seconds
        self._token = token
        self._session = session or requests.Session()
        self._clock = clock
        self._slot: Optional[CachedRepo] = None
        self._slot_lock = threading.Lock()
        self._inflight: Optional[Future] = None

    def _fresh_slot(self) -> Optional[CachedRepo]:
        slot = self._slot
        if slot is not None and self._clock() - slot.fetched_at < self.ttl_seconds:
            return slot
        return None

    def get_resource(self) -> dict:
        """Return the repository projection, fetching it when the slot is stale.

        Concurrent callers that miss together share one upstream request and
        all receive its outcome, success or failure.

        Raises ``UpstreamError`` when GitHub answers with a non-success status
        and ``UpstreamUnavailable`` when it cannot be reached.
        """
        with self._slot_lock:
            slot = self._fresh_slot()
            if slot is not None:
                return slot.summary.as_dict()
            flight = self._inflight
            leader = flight is None
            if leader:
                flight = self._inflight = Future()

        if not leader:
            return flight.result().as_dict()

        try:
            fetched_at = self._clock()
            summary = RepoSummary.from_api(self._fetch())
        except BaseException as exc:
            with self._slot_lock:
                self._inflight = None
            flight.set_exception(exc)
            raise

        with self._slot_lock:
            self._slot = CachedRepo(fetched_at=fetched_at, summary=summary)
            self._inflight = None
        flight.set_result(summary)
        logger.info("Refreshed GitHub metadata for %s", self.repo)
        return summary.as_dict()

    def _fetch(self) -> dict:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/vnd.github+json",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = self._session.get(
                self.url, headers=headers, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as exc:
            logger.warning("GitHub unreachable for %s: %s", self.repo, exc)
            raise UpstreamUnavailable(str(exc)) from exc

        # Only 2xx carries a repository body; redirects and 304 count as failures.
        if not 200 <= response.status_code < 300:
            logger.warning(
                "GitHub returned HTTP %s for %s", response.status_code, self.repo
            )
            raise UpstreamError(response.status_code)
        return response.json()
