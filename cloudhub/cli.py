"""Cloudhub CLI: inspect configuration and call service clients.

Usage examples::

    cloudhub services
    cloudhub --project my-project config
    cloudhub --project my-project call storage list-buckets
    cloudhub call pubsub publish my-topic --kwargs '{"data": "hi"}'
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from pydantic import ValidationError

from cloudhub.base.defaults import configure
from cloudhub.base.exceptions import ServiceNotFoundError
from cloudhub.facade import new


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ``cloudhub`` CLI.

    Returns:
        Configured :class:`~argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="cloudhub",
        description="Cloud service clients from the command line",
    )
    parser.add_argument(
        "--project", "-p",
        default=None,
        help="Project ID (defaults to GOOGLE_CLOUD_PROJECT / GCLOUD_PROJECT)",
    )
    parser.add_argument(
        "--credentials",
        default=None,
        help="Keyfile path or keyfile JSON",
    )
    parser.add_argument("--retries", type=int, default=None, help="Retries on server error")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("services", help="List registered services")
    commands.add_parser("config", help="Print the shared configuration as JSON")

    call = commands.add_parser("call", help="Create a service client and invoke an operation")
    call.add_argument("service", help="Service name (e.g. storage)")
    call.add_argument("operation", help="Operation to perform (method name, e.g. list-buckets)")
    call.add_argument("args", nargs="*", help="Positional arguments for the operation")
    call.add_argument(
        "--kwargs", "-k",
        type=str,
        default="{}",
        help="JSON keyword arguments for the operation",
    )
    return parser


def _parse_credentials(raw: str | None) -> Any:
    if raw is None or not raw.lstrip().startswith("{"):
        return raw
    return json.loads(raw)


def _mask_credentials(values: dict[str, Any]) -> dict[str, Any]:
    """Hide keyfile contents and credential objects; keyfile paths are kept."""
    masked: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, dict) and key != "credentials":
            value = _mask_credentials(value)
        elif key == "credentials" and value is not None and not isinstance(value, str):
            value = "<keyfile contents>"
        masked[key] = value
    return masked


def _print_result(result: Any) -> None:
    if result is None:
        print("OK")
    elif isinstance(result, (dict, list)):
        print(json.dumps(result, indent=2, default=str))
    else:
        print(result)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Args:
        argv: Optional argument list (defaults to ``sys.argv``).
    """
    parser = _build_parser()
    ns = parser.parse_args(argv)

    try:
        credentials = _parse_credentials(ns.credentials)
    except json.JSONDecodeError as e:
        print(f"Invalid --credentials JSON: {e}", file=sys.stderr)
        sys.exit(1)

    hub = new(ns.project, credentials, retries=ns.retries, timeout=ns.timeout)

    if ns.command == "services":
        names = hub.registry.names()
        print("\n".join(names) if names else "No services registered")
        return

    if ns.command == "config":
        _print_result(_mask_credentials(configure().to_dict()))
        return

    try:
        kwargs: dict[str, Any] = json.loads(ns.kwargs)
    except json.JSONDecodeError as e:
        print(f"Invalid --kwargs JSON: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        svc = hub.service(ns.service)
    except (ServiceNotFoundError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Convert operation-name to method_name
    method_name = ns.operation.replace("-", "_")
    method = getattr(svc, method_name, None)
    if method is None or not callable(method):
        print(f"Unknown operation '{ns.operation}' for {ns.service}", file=sys.stderr)
        sys.exit(1)

    try:
        result = method(*ns.args, **kwargs)
    except Exception as e:
        print(f"Operation failed: {e}", file=sys.stderr)
        sys.exit(1)

    _print_result(result)


if __name__ == "__main__":
    main()
