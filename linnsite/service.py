"""
Service facade composing the store, the validator and the GitHub cache.

Every operation returns a tagged result (``Ok`` or ``Err``); turning results
into HTTP responses is left to the routes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from linnsite.db import DbClient
from linnsite.exceptions import (
    StoreError,
    UpstreamError,
    UpstreamUnavailable,
    ValidationError,
)
from linnsite.github import GithubRepoCache
from linnsite.validation import validate_contact

logger = logging.getLogger(__name__)

DB_ERROR = "db_error"
DB_ERROR_MESSAGE = "Datenbankfehler"
GITHUB_FETCH_FAILED = "github_fetch_failed"
SERVER_ERROR = "server_error"


@dataclass(frozen=True)
class Ok:
    payload: dict


@dataclass(frozen=True)
class Err:
    kind: str
    status: int = 500
    message: Optional[str] = None

    def as_dict(self) -> dict:
        body = {"error": self.kind}
        if self.message is not None:
            body["message"] = self.message
        return body


Result = Union[Ok, Err]


class SiteService:
    def __init__(self, db: DbClient, repo_cache: GithubRepoCache):
        self.db = db
        self.repo_cache = repo_cache

    def record_visit(self) -> Result:
        """Count a visit and report the new total."""
        try:
            return Ok({"visits": self.db.increment_visits()})
        except StoreError:
            logger.exception("Failed to record visit")
            return Err(DB_ERROR)

    def current_visits(self) -> Result:
        try:
            return Ok({"visits": self.db.get_visits()})
        except StoreError:
            logger.exception("Failed to read visit counter")
            return Err(DB_ERROR)

    def submit_contact(self, raw: Mapping[str, Any]) -> Result:
        """Validate and store a contact submission.

        Store failures are reported once and never retried: the user decides
        whether to submit again.
        """
        try:
            fields = validate_contact(raw)
        except ValidationError as exc:
            logger.debug("Rejected contact submission: %s", exc.kind)
            return Err(exc.kind, 400, exc.message)

        try:
            contact_id = self.db.append_contact(fields)
        except StoreError:
            logger.exception("Failed to store contact submission")
            return Err(DB_ERROR, 500, DB_ERROR_MESSAGE)

        logger.info(
            "New contact submission #%s from %s", contact_id, fields.email
        )
        return Ok({"success": True, "id": contact_id})

    def repository_metadata(self) -> Result:
        try:
            return Ok(self.repo_cache.get_resource())
        except UpstreamError as exc:
            return Err(GITHUB_FETCH_FAILED, exc.status)
        except UpstreamUnavailable:
            return Err(SERVER_ERROR)
        except Exception:
            logger.exception("Unexpected failure fetching GitHub metadata")
            return Err(SERVER_ERROR)
