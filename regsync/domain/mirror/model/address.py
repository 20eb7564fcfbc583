"""Canonical ``host:port`` registry addresses."""

from typing import NewType

from regsync.domain.shared.error import InvalidAddressError

RegistryAddress = NewType("RegistryAddress", str)

LOCALHOST = "127.0.0.1"
DEFAULT_PORT = "5000"


def split_host_port(value: str) -> tuple[str, str]:
    """Split ``host:port`` (or ``[v6]:port``) into its parts.

    Raises:
        InvalidAddressError: If the value is not a well-formed host:port.
    """
    if value.startswith("["):
        end = value.find("]")
        if end < 0:
            raise InvalidAddressError(f"missing ']' in address {value!r}", value)
        host = value[1:end]
        rest = value[end + 1 :]
        if not rest.startswith(":"):
            raise InvalidAddressError(f"missing port in address {value!r}", value)
        port = rest[1:]
        if ":" in port:
            raise InvalidAddressError(f"too many colons in address {value!r}", value)
        return host, port

    host, sep, port = value.rpartition(":")
    if not sep:
        raise InvalidAddressError(f"missing port in address {value!r}", value)
    if ":" in host:
        raise InvalidAddressError(f"too many colons in address {value!r}", value)
    if "[" in host or "]" in host or "[" in port or "]" in port:
        raise InvalidAddressError(f"unexpected bracket in address {value!r}", value)
    return host, port


def join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _validate_port(port: str, address: str) -> str:
    # str.isdigit also accepts non-ASCII digits such as "５"
    if not (port.isascii() and port.isdigit()) or int(port) > 65535:
        raise InvalidAddressError(f"invalid port {port!r} in address {address!r}", address)
    return port


def resolve_registry_address(host: str, fallback_port: str | None = None) -> RegistryAddress:
    """Normalize a registry host into a canonical ``host:port`` string.

    Port precedence is: the fallback port, then a port carried by ``host``,
    then :data:`DEFAULT_PORT`. A fallback that itself looks like ``host:port``
    (``":5000"``, ``"0.0.0.0:5000"``) contributes only its trailing segment.

    Keeping a carried port ahead of the default departs from dropping it
    outright, so a destination such as ``r1.example.com:8443`` is not
    silently moved to port 5000.

    Examples:
        >>> resolve_registry_address("r1.example.com")
        'r1.example.com:5000'
        >>> resolve_registry_address("r1.example.com:8443")
        'r1.example.com:8443'
        >>> resolve_registry_address("127.0.0.1", ":5001")
        '127.0.0.1:5001'

    Raises:
        InvalidAddressError: If host/port splitting fails.
    """
    host = host.strip()
    carried_port = ""
    if ":" in host:
        host, carried_port = split_host_port(host)
    if not host:
        raise InvalidAddressError("empty registry host", host)

    port = fallback_port or ""
    if ":" in port:
        port = port.rpartition(":")[2]
    if not port:
        port = carried_port
    if not port:
        port = DEFAULT_PORT

    return RegistryAddress(join_host_port(host, _validate_port(port, host)))
