"""Domain models for WebFinger account discovery."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple, Union

from pydantic import BaseModel, ConfigDict, StrictStr


@dataclass(frozen=True)
class UserRecord:
    """A single account from the users database."""

    disabled: bool
    display_name: str
    password_hash: str
    email: str
    groups: FrozenSet[str] = field(default_factory=frozenset)


class DiscoveryQuery(BaseModel):
    """The ``rel`` and ``resource`` parameters of a WebFinger request."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    rel: StrictStr
    resource: StrictStr


@dataclass(frozen=True)
class Link:
    rel: str
    href: str


@dataclass(frozen=True)
class DiscoverySuccess:
    """The account exists; ``subject`` echoes the requested resource."""

    subject: str
    links: Tuple[Link, ...]


@dataclass(frozen=True)
class NotFound:
    queried_email: str


@dataclass(frozen=True)
class QueryInvalid:
    """The query string was missing a parameter or could not be decoded."""

    errors: Tuple[str, ...]


DiscoveryResult = Union[DiscoverySuccess, NotFound, QueryInvalid]


__all__ = [
    "DiscoveryQuery",
    "DiscoveryResult",
    "DiscoverySuccess",
    "Link",
    "NotFound",
    "QueryInvalid",
    "UserRecord",
]
