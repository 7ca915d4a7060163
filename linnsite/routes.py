"""
HTTP routes for the site API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from linnsite.dependencies import get_site_service
from linnsite.schemas import (
    ContactRequest,
    ContactResponse,
    ErrorResponse,
    HealthResponse,
    RepoSummaryResponse,
    VisitsResponse,
)
from linnsite.service import Err, Result, SiteService

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()

_errors = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _respond(result: Result) -> JSONResponse:
    if isinstance(result, Err):
        return JSONResponse(status_code=result.status, content=result.as_dict())
    return JSONResponse(content=result.payload)


@health_router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@router.get("/hit", response_model=VisitsResponse, responses=_errors)
def hit(service: SiteService = Depends(get_site_service)):
    """
    Count a visit and return the new total.
    """
    return _respond(service.record_visit())


@router.get("/views", response_model=VisitsResponse, responses=_errors)
def views(service: SiteService = Depends(get_site_service)):
    return _respond(service.current_visits())


@router.post("/contact", response_model=ContactResponse, responses=_errors)
def contact(
    payload: Optional[ContactRequest] = None,
    service: SiteService = Depends(get_site_service),
):
    raw = payload.model_dump() if payload else {}
    return _respond(service.submit_contact(raw))


@router.get("/github", response_model=RepoSummaryResponse, responses=_errors)
def github(service: SiteService = Depends(get_site_service)):
    """
    Slim GitHub repository metadata, cached for ten minutes.
    """
    return _respond(service.repository_metadata())
