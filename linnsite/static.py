"""
Static site serving with cache headers and an SPA-style index fallback.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from starlette.exceptions import HTTPException
from starlette.responses import FileResponse
from starlette.staticfiles import StaticFiles

logger = logging.getLogger(__name__)

PUBLIC_MAX_AGE = 60 * 60
STATIC_MAX_AGE = 24 * 60 * 60


class CachedStaticFiles(StaticFiles):
    """StaticFiles that adds a ``Cache-Control`` max-age to file responses."""

    def __init__(self, *args, max_age: int, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_age = max_age

    def file_response(self, *args, **kwargs):
        response = super().file_response(*args, **kwargs)
        response.headers.setdefault("Cache-Control", f"public, max-age={self.max_age}")
        return response


class SpaStaticFiles(CachedStaticFiles):
    """Serves the site's ``index.html`` for any path that does not match a file."""

    def __init__(self, *args, index_file: Path, **kwargs):
        super().__init__(*args, **kwargs)
        self.index_file = index_file

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404 or not self.index_file.is_file():
                raise
            return FileResponse(
                self.index_file, headers={"Cache-Control": "public, max-age=0"}
            )


def mount_static_site(app: FastAPI, public_dir: str, static_dir: str) -> None:
    """Mount ``/static`` and the public site root; missing directories are skipped.

    Misses under either mount fall back to ``<public_dir>/index.html``.
    """
    index_file = Path(public_dir) / "index.html"
    if Path(static_dir).is_dir():
        app.mount(
            "/static",
            SpaStaticFiles(
                directory=static_dir, max_age=STATIC_MAX_AGE, index_file=index_file
            ),
            name="static",
        )
    else:
        logger.info("Static directory %s not found, /static disabled", static_dir)

    if Path(public_dir).is_dir():
        app.mount(
            "/",
            SpaStaticFiles(
                directory=public_dir,
                html=True,
                max_age=PUBLIC_MAX_AGE,
                index_file=index_file,
            ),
            name="public",
        )
    else:
        logger.info("Public directory %s not found, site root disabled", public_dir)
