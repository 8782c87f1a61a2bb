"""Configuration loading for the WebFinger responder."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

import yaml

from .models import UserRecord

DEFAULT_USERS_DATABASE = "users_database.yaml"

_REQUIRED_USER_FIELDS = {"disabled", "displayname", "password", "email", "groups"}


class DirectoryLoadError(ValueError):
    """Raised when the users database cannot be read or parsed."""


def user_from_dict(username: str, data: object) -> UserRecord:
    """Create a :class:`UserRecord` from the raw YAML entry for ``username``."""
    if not isinstance(data, dict):
        raise DirectoryLoadError(f"User '{username}' must be a mapping of attributes")

    missing = _REQUIRED_USER_FIELDS - data.keys()
    if missing:
        raise DirectoryLoadError(
            f"User '{username}' is missing required fields: {', '.join(sorted(missing))}"
        )

    groups = data["groups"]
    if groups is None:
        groups = []
    if not isinstance(groups, list) or not all(isinstance(group, str) for group in groups):
        raise DirectoryLoadError(f"User '{username}' must list its groups as strings")

    if not isinstance(data["disabled"], bool):
        raise DirectoryLoadError(f"User '{username}' field 'disabled' must be true or false")
    for name in ("displayname", "password", "email"):
        if not isinstance(data[name], str):
            raise DirectoryLoadError(f"User '{username}' field '{name}' must be a string")

    return UserRecord(
        disabled=data["disabled"],
        display_name=data["displayname"],
        password_hash=data["password"],
        email=data["email"],
        groups=frozenset(groups),
    )


def parse_user_directory(raw: object) -> Dict[str, UserRecord]:
    """Validate a decoded users database document."""
    if not isinstance(raw, dict) or "users" not in raw:
        raise DirectoryLoadError("Users database must define accounts under the 'users' key")

    users_raw = raw["users"] or {}
    if not isinstance(users_raw, dict):
        raise DirectoryLoadError("The 'users' key must map usernames to user attributes")

    return {str(username): user_from_dict(str(username), data) for username, data in users_raw.items()}


def load_user_directory(config_path: Path) -> Dict[str, UserRecord]:
    """Load the users database from a YAML file, preserving file order."""
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except OSError as exc:
        raise DirectoryLoadError(f"Unable to read users database file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise DirectoryLoadError(f"Unable to parse YAML in users database file {config_path}: {exc}") from exc

    return parse_user_directory(raw)


def resolve_config_path(value: Optional[str]) -> Path:
    """Resolve the path to the users database file."""
    raw = value or os.getenv("ACCTFINGER_USERS_DATABASE") or DEFAULT_USERS_DATABASE
    return Path(raw).expanduser().resolve(strict=False)


def resolve_auth_url(value: Optional[str]) -> str:
    """Return the validated callback URL advertised for every account."""
    raw = (value or os.getenv("ACCTFINGER_AUTH_URL") or "").strip()
    if not raw:
        raise ValueError("An auth callback URL must be provided via --auth-url or ACCTFINGER_AUTH_URL")

    parsed = urlparse(raw)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Auth callback URL must be an absolute http(s) URL: {raw}")
    return raw


def trusted_proxy_hosts(value: Optional[str] = None) -> List[str] | str:
    """Return the proxies allowed to set forwarded headers, or ``"*"`` for any."""
    raw = value if value is not None else os.getenv("ACCTFINGER_TRUSTED_PROXIES")
    if not raw:
        return "*"
    hosts = [item.strip() for item in raw.split(",") if item.strip()]
    return hosts or "*"


__all__ = [
    "DEFAULT_USERS_DATABASE",
    "DirectoryLoadError",
    "load_user_directory",
    "parse_user_directory",
    "resolve_auth_url",
    "resolve_config_path",
    "trusted_proxy_hosts",
    "user_from_dict",
]
