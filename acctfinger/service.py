"""HTTP service exposing WebFinger account discovery."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from . import __version__
from .config import trusted_proxy_hosts
from .directory import DirectoryIndex
from .models import NotFound, QueryInvalid
from .resolution import handle_query
from .responses import render_result

logger = logging.getLogger("acctfinger.service")


def register_routes(app: FastAPI) -> None:
    """Expose the discovery endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    async def healthcheck(request: Request) -> Dict[str, Any]:
        return {"status": "ok", "accounts": len(request.app.state.index)}

    @app.get("/webfinger")
    async def webfinger(request: Request) -> JSONResponse:
        result = handle_query(
            request.scope.get("query_string", b""),
            request.app.state.index,
            request.app.state.callback_url,
        )

        if isinstance(result, QueryInvalid):
            logger.debug("Rejected WebFinger query %s: %s", request.url.query, "; ".join(result.errors))
        elif isinstance(result, NotFound):
            logger.debug("No account for %s", result.queried_email)

        return render_result(result)


def create_app(
    *,
    index: DirectoryIndex,
    callback_url: str,
    trusted_proxies: List[str] | str | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application serving ``/webfinger``."""

    app = FastAPI(
        title="acctfinger",
        version=__version__,
        description="WebFinger responder pointing accounts at their sign-on provider.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        ProxyHeadersMiddleware,
        trusted_hosts=trusted_proxies if trusted_proxies is not None else trusted_proxy_hosts(),
    )

    app.state.index = index
    app.state.callback_url = callback_url

    register_routes(app)
    return app


__all__ = ["create_app", "register_routes"]
