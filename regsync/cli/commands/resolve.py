"""Resolve command: show the canonical address used for a registry host."""

import sys

import cyclopts

from regsync.cli.console import get_console
from regsync.domain.mirror.model.address import resolve_registry_address
from regsync.domain.shared.error import InvalidAddressError

app = cyclopts.App(name="resolve", help="Print the canonical host:port of a registry")


@app.default
def resolve(host: str, /, fallback_port: str | None = None) -> None:
    """Resolve a registry host to host:port.

    Args:
        host: Registry host, optionally with a port.
        fallback_port: Port (or host:port) that takes precedence over the host's own port.
    """
    console = get_console()
    try:
        console.print(resolve_registry_address(host, fallback_port))
    except InvalidAddressError as e:
        console.error(e.message)
        sys.exit(1)
