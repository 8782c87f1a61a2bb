"""Command-line interface for the acctfinger WebFinger responder."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import Sequence

import httpx

from acctfinger import __version__
from acctfinger.config import (
    DirectoryLoadError,
    load_user_directory,
    resolve_auth_url,
    resolve_config_path,
    trusted_proxy_hosts,
)
from acctfinger.directory import DirectoryIndex, build_index

logger = logging.getLogger("acctfinger.main")

_DEFAULT_SERVICE_URL = "http://localhost:8081"
_DEFAULT_REL = "http://openid.net/specs/connect/1.0/issuer"


def _add_conf_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--conf",
        default=None,
        help=(
            "Path to the Authelia users_database.yaml file "
            "(default: ACCTFINGER_USERS_DATABASE or users_database.yaml)"
        ),
    )


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="acctfinger",
        description="WebFinger responder for an Authelia users database",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the WebFinger HTTP service")
    serve_parser.add_argument("-i", "--ip", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve_parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=8081,
        help="Port for the HTTP listener (default: 8081)",
    )
    _add_conf_argument(serve_parser)
    serve_parser.add_argument(
        "-u",
        "--auth-url",
        default=None,
        help="The callback URL for performing auth (default: ACCTFINGER_AUTH_URL)",
    )
    serve_parser.add_argument(
        "--trusted-proxies",
        default=None,
        help="Comma-separated proxy addresses allowed to set X-Forwarded-* headers",
    )

    check_parser = subparsers.add_parser(
        "check", help="Validate a users database and list the indexed email addresses"
    )
    _add_conf_argument(check_parser)

    lookup_parser = subparsers.add_parser(
        "lookup", help="Query a running responder for an account"
    )
    lookup_parser.add_argument("resource", help="Account to resolve, e.g. acct:alice@example.com")
    lookup_parser.add_argument(
        "--rel",
        default=_DEFAULT_REL,
        help=f"Link relation to request (default: {_DEFAULT_REL})",
    )
    lookup_parser.add_argument(
        "--service-url",
        default=None,
        help=f"Base URL of the responder (default: {_DEFAULT_SERVICE_URL})",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "check", "lookup"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help", "--version"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_index(conf: str | None) -> DirectoryIndex:
    config_path = resolve_config_path(conf)
    try:
        users = load_user_directory(config_path)
    except DirectoryLoadError as exc:
        raise SystemExit(str(exc)) from exc
    return build_index(users)


def _serve(
    *,
    ip: str,
    port: int,
    conf: str | None,
    auth_url: str | None,
    trusted_proxies: str | None,
) -> None:
    from acctfinger.service import create_app
    import uvicorn

    try:
        callback_url = resolve_auth_url(auth_url)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    config_path = resolve_config_path(conf)
    logger.info("Starting acctfinger v%s: http://%s:%s for %s", __version__, ip, port, config_path)

    index = _load_index(conf)
    app = create_app(
        index=index,
        callback_url=callback_url,
        trusted_proxies=trusted_proxy_hosts(trusted_proxies),
    )
    uvicorn.run(app, host=ip, port=port, log_level="info")


def _check(conf: str | None) -> int:
    config_path = resolve_config_path(conf)
    try:
        users = load_user_directory(config_path)
    except DirectoryLoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    index = build_index(users)
    if not len(index):
        print(f"No accounts are defined in {config_path}.")
        return 0

    print(f"{len(index)} account(s) indexed from {config_path}:")
    print(f"{'Email':<40}  Username")
    print("-" * 64)
    for email in sorted(index):
        print(f"{email or '<no email>':<40}  {index[email]}")

    if index.duplicates:
        print()
        print(f"{len(index.duplicates)} duplicate email address(es):")
        for duplicate in index.duplicates:
            print(
                f"- {duplicate.email or '<no email>'}: {duplicate.discarded} is shadowed by {duplicate.kept}"
            )
        return 1
    return 0


def _lookup(resource: str, *, rel: str, service_url: str | None) -> int:
    base_url = service_url or os.getenv("ACCTFINGER_SERVICE_URL") or _DEFAULT_SERVICE_URL
    endpoint = base_url.rstrip("/") + "/webfinger"

    try:
        response = httpx.get(
            endpoint,
            params={"rel": rel, "resource": resource},
            timeout=10.0,
        )
    except httpx.HTTPError as exc:
        print(f"Failed to contact WebFinger service: {exc}", file=sys.stderr)
        return 2

    try:
        payload = response.json()
    except ValueError:
        print(
            f"Service responded with {response.status_code}: {response.text.strip()}",
            file=sys.stderr,
        )
        return 2

    if not isinstance(payload, dict):
        print(f"Service returned an unexpected response format ({response.status_code}).", file=sys.stderr)
        return 2

    if response.status_code == 404:
        print(payload.get("message", f"{resource} was not found"))
        return 1
    if response.status_code != 200:
        message = payload.get("message")
        print(f"Service responded with {response.status_code}: {message or response.text.strip()}", file=sys.stderr)
        return 2

    print(f"Subject: {payload.get('subject', resource)}")
    for link in payload.get("links", []):
        print(f"- {link.get('rel', '?')} -> {link.get('href', '?')}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "serve":
        _serve(
            ip=args.ip,
            port=args.port,
            conf=args.conf,
            auth_url=args.auth_url,
            trusted_proxies=args.trusted_proxies,
        )
        return 0
    if args.command == "check":
        return _check(args.conf)
    if args.command == "lookup":
        return _lookup(args.resource, rel=args.rel, service_url=args.service_url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
