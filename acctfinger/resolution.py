"""Resolve WebFinger queries against the directory index."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple, Union
from urllib.parse import parse_qsl

from pydantic import ValidationError

from .directory import DirectoryIndex
from .models import (
    DiscoveryQuery,
    DiscoveryResult,
    DiscoverySuccess,
    Link,
    NotFound,
    QueryInvalid,
)

ACCT_PREFIX = "acct:"

_QUERY_FIELDS = ("rel", "resource")

QueryParams = Union[bytes, Iterable[Tuple[str, object]], Dict[str, object]]


def normalize_resource(resource: str) -> str:
    """Strip a single leading ``acct:`` from ``resource``.

    The comparison is case-sensitive and only one prefix is removed, so
    ``acct:acct:x`` normalizes to ``acct:x``.
    """

    if resource.startswith(ACCT_PREFIX):
        return resource[len(ACCT_PREFIX):]
    return resource


def _describe_validation_error(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "query"
        if error.get("type") == "missing":
            messages.append(f"missing field '{location}'")
        else:
            messages.append(f"invalid field '{location}': {error.get('msg', 'invalid value')}")
    return messages


def decode_query_string(raw: bytes) -> Union[List[Tuple[str, str]], QueryInvalid]:
    """Split a raw query string into UTF-8 decoded ``(name, value)`` pairs.

    Percent escapes are unquoted byte for byte first, so a parameter whose
    bytes are not valid UTF-8 is reported instead of being replaced.
    """

    pairs: List[Tuple[str, str]] = []
    query_string = raw.decode("latin-1")
    for raw_name, raw_value in parse_qsl(query_string, keep_blank_values=True, encoding="latin-1"):
        try:
            name = raw_name.encode("latin-1").decode("utf-8")
        except UnicodeDecodeError:
            return QueryInvalid(errors=("query string is not valid UTF-8",))
        try:
            value = raw_value.encode("latin-1").decode("utf-8")
        except UnicodeDecodeError:
            return QueryInvalid(errors=(f"invalid field '{name}': not valid UTF-8",))
        pairs.append((name, value))
    return pairs


def parse_query(params: QueryParams) -> Union[DiscoveryQuery, QueryInvalid]:
    """Validate raw query parameters.

    ``params`` is the raw query string as bytes, a mapping, or a sequence of
    ``(name, value)`` pairs as produced by a multi-valued query string. A
    required parameter that is absent, repeated, not a string, or not valid
    UTF-8 makes the query invalid.
    """

    if isinstance(params, bytes):
        decoded = decode_query_string(params)
        if isinstance(decoded, QueryInvalid):
            return decoded
        items: Iterable[Tuple[str, object]] = decoded
    elif isinstance(params, dict):
        items = params.items()
    else:
        items = params

    values: Dict[str, object] = {}
    errors: List[str] = []
    for name, value in items:
        if name not in _QUERY_FIELDS:
            continue
        if name in values:
            message = f"duplicate field '{name}'"
            if message not in errors:
                errors.append(message)
            continue
        values[name] = value

    try:
        query = DiscoveryQuery.model_validate(values)
    except ValidationError as exc:
        errors.extend(_describe_validation_error(exc))
        return QueryInvalid(errors=tuple(errors))

    if errors:
        return QueryInvalid(errors=tuple(errors))
    return query


def resolve(
    query: DiscoveryQuery,
    index: DirectoryIndex,
    callback_url: str,
) -> Union[DiscoverySuccess, NotFound]:
    """Resolve ``query`` to the callback URL, or report the unknown address."""

    normalized_email = normalize_resource(query.resource)
    if index.lookup(normalized_email) is None:
        return NotFound(queried_email=normalized_email)

    return DiscoverySuccess(
        subject=query.resource,
        links=(Link(rel=query.rel, href=callback_url),),
    )


def handle_query(
    params: QueryParams,
    index: DirectoryIndex,
    callback_url: str,
) -> DiscoveryResult:
    parsed = parse_query(params)
    if isinstance(parsed, QueryInvalid):
        return parsed
    return resolve(parsed, index, callback_url)


__all__ = ["ACCT_PREFIX", "decode_query_string", "handle_query", "normalize_resource", "parse_query", "resolve"]
