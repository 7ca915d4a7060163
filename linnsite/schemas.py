"""
Pydantic schemas for the site API.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict


class HealthResponse(BaseModel):
    status: Literal["ok"]


class VisitsResponse(BaseModel):
    visits: int


class ContactRequest(BaseModel):
    """Raw contact form body; field checks happen in ``validate_contact``."""

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    company: Any = None
    email: Any = None
    project_type: Any = None
    message: Any = None
    timeline: Any = None


class ContactResponse(BaseModel):
    success: Literal[True]
    id: int


class RepoSummaryResponse(BaseModel):
    full_name: Optional[str] = None
    html_url: Optional[str] = None
    description: Optional[str] = None
    stargazers_count: Optional[int] = None
    forks_count: Optional[int] = None
    open_issues_count: Optional[int] = None
    license: Optional[str] = None
    pushed_at: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
