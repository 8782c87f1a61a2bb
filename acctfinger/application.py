"""Application factory driven by environment variables.

Usable directly with uvicorn::

    ACCTFINGER_AUTH_URL=https://auth.example.com \
        uvicorn acctfinger.application:create_application --factory
"""
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .config import (
    load_user_directory,
    resolve_auth_url,
    resolve_config_path,
    trusted_proxy_hosts,
)
from .directory import build_index
from .service import create_app


def create_application(
    *,
    config_path: Optional[str] = None,
    auth_url: Optional[str] = None,
    trusted_proxies: Optional[str] = None,
) -> FastAPI:
    """Load the users database, index it and create the ASGI application."""

    callback_url = resolve_auth_url(auth_url)
    users = load_user_directory(resolve_config_path(config_path))
    index = build_index(users)

    return create_app(
        index=index,
        callback_url=callback_url,
        trusted_proxies=trusted_proxy_hosts(trusted_proxies),
    )


__all__ = ["create_application"]
