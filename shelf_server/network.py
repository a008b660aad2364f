from __future__ import annotations

import socket
from collections.abc import Iterator

from shelf_server.errors import NetworkUnavailableError

# Never contacted: connecting a UDP socket only selects the outbound interface.
PROBE_ADDRESS = ("10.255.255.255", 1)


def _hostname_addresses() -> Iterator[str]:
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except OSError:
        return
    for info in infos:
        yield info[4][0]


def _routed_address() -> Iterator[str]:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(PROBE_ADDRESS)
        yield sock.getsockname()[0]
    except OSError:
        return
    finally:
        sock.close()


def local_ipv4_address() -> str:
    """Return the first non-loopback IPv4 address of this host."""

    for candidate in (*_hostname_addresses(), *_routed_address()):
        if candidate and not candidate.startswith("127.") and candidate != "0.0.0.0":
            return candidate
    raise NetworkUnavailableError("IP not found. Please connect to a network")


def advertised_address(port: int) -> str:
    return f"{local_ipv4_address()}:{port}"
