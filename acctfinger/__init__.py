"""WebFinger responder that points accounts at their single-sign-on provider."""

from __future__ import annotations

from typing import Any

__version__ = "0.1.0"

from .directory import DirectoryIndex, build_index
from .resolution import normalize_resource, resolve


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the discovery application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


def create_application(*args: Any, **kwargs: Any):
    """Factory function that loads configuration from the environment."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


__all__ = [
    "DirectoryIndex",
    "__version__",
    "build_index",
    "create_app",
    "create_application",
    "normalize_resource",
    "resolve",
]
