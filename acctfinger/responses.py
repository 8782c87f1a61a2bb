"""Translate discovery results into HTTP responses."""

from __future__ import annotations

from typing import List

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .models import DiscoveryResult, DiscoverySuccess, NotFound, QueryInvalid


class LinkView(BaseModel):
    rel: str
    href: str


class WebFingerResponse(BaseModel):
    subject: str
    links: List[LinkView]


class ErrorResponse(BaseModel):
    message: str
    errors: List[str] = Field(default_factory=list)


def not_found_message(email: str) -> str:
    return f"No user with email address {email} exists"


def render_result(result: DiscoveryResult) -> JSONResponse:
    """Return the HTTP response for ``result``.

    This is the only place where status codes are chosen for the
    ``/webfinger`` endpoint.
    """

    if isinstance(result, DiscoverySuccess):
        body = WebFingerResponse(
            subject=result.subject,
            links=[LinkView(rel=link.rel, href=link.href) for link in result.links],
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump())

    if isinstance(result, NotFound):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ErrorResponse(message=not_found_message(result.queried_email)).model_dump(
                exclude={"errors"}
            ),
        )

    if isinstance(result, QueryInvalid):
        first = result.errors[0] if result.errors else "malformed query"
        error = ErrorResponse(message=f"Invalid query string: {first}", errors=list(result.errors))
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error.model_dump())

    raise TypeError(f"Unsupported discovery result: {result!r}")


__all__ = ["ErrorResponse", "LinkView", "WebFingerResponse", "not_found_message", "render_result"]
