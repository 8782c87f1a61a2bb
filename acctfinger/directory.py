"""Read-only index from email address to username."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .models import UserRecord

logger = logging.getLogger("acctfinger.directory")


@dataclass(frozen=True)
class DuplicateEmail:
    """An email shared by more than one account; ``kept`` owns it in the index."""

    email: str
    kept: str
    discarded: str


class DirectoryIndex(Mapping[str, str]):
    """Immutable mapping of email address to username.

    Built once from the users database before the first request is served
    and shared by every request afterwards. When several accounts list the
    same email address the first one in directory order owns it.
    """

    def __init__(self, entries: Mapping[str, str], duplicates: Tuple[DuplicateEmail, ...] = ()) -> None:
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries))
        self._duplicates = tuple(duplicates)

    @classmethod
    def from_directory(cls, users: Mapping[str, UserRecord]) -> "DirectoryIndex":
        entries: Dict[str, str] = {}
        duplicates = []
        for username, record in users.items():
            owner = entries.get(record.email)
            if owner is not None:
                duplicates.append(DuplicateEmail(email=record.email, kept=owner, discarded=username))
                logger.warning(
                    "Email address %s is shared by users %s and %s; resolving it to %s",
                    record.email,
                    owner,
                    username,
                    owner,
                )
                continue
            entries[record.email] = username

        logger.info("Indexed %d account(s) from %d user(s)", len(entries), len(users))
        return cls(entries, tuple(duplicates))

    @property
    def duplicates(self) -> Tuple[DuplicateEmail, ...]:
        return self._duplicates

    def lookup(self, email: str) -> Optional[str]:
        return self._entries.get(email)

    def __getitem__(self, email: str) -> str:
        return self._entries[email]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"DirectoryIndex({len(self._entries)} accounts)"


def build_index(users: Mapping[str, UserRecord]) -> DirectoryIndex:
    """Build the :class:`DirectoryIndex` for a loaded users database."""

    return DirectoryIndex.from_directory(users)


__all__ = ["DirectoryIndex", "DuplicateEmail", "build_index"]
