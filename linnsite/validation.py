"""
Validation of contact form submissions.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from linnsite.db import ContactFields
from linnsite.exceptions import ValidationError

INVALID_NAME = "invalid_name"
INVALID_EMAIL = "invalid_email"
INVALID_PROJECT_TYPE = "invalid_project_type"
INVALID_MESSAGE = "invalid_message"

MESSAGES = {
    INVALID_NAME: "Name ist erforderlich",
    INVALID_EMAIL: "Gültige E-Mail ist erforderlich",
    INVALID_PROJECT_TYPE: "Projektart ist erforderlich",
    INVALID_MESSAGE: "Nachricht ist erforderlich",
}


def _fail(kind: str) -> ValidationError:
    return ValidationError(kind, MESSAGES[kind])


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def validate_contact(payload: Mapping[str, Any]) -> ContactFields:
    """Check a raw submission and return the trimmed fields to store.

    Checks run in a fixed order (name, email, project type, message) and stop
    at the first failure, which is raised as ``ValidationError``. The email
    check only requires an ``@``.
    """
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise _fail(INVALID_NAME)

    email = payload.get("email")
    if not isinstance(email, str) or "@" not in email:
        raise _fail(INVALID_EMAIL)

    project_type = payload.get("project_type")
    if not isinstance(project_type, str) or not project_type:
        raise _fail(INVALID_PROJECT_TYPE)

    message = payload.get("message")
    if not isinstance(message, str) or not message.strip():
        raise _fail(INVALID_MESSAGE)

    return ContactFields(
        name=name.strip(),
        email=email.strip(),
        project_type=project_type.strip(),
        message=message.strip(),
        company=_optional_text(payload.get("company")),
        timeline=_optional_text(payload.get("timeline")),
    )
