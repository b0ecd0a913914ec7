from __future__ import annotations

import socket

from netsink.errors import DescriptorError

_INET_NETWORKS: dict[str, tuple[int, int]] = {
    "tcp": (socket.AF_UNSPEC, socket.SOCK_STREAM),
    "tcp4": (socket.AF_INET, socket.SOCK_STREAM),
    "tcp6": (socket.AF_INET6, socket.SOCK_STREAM),
    "udp": (socket.AF_UNSPEC, socket.SOCK_DGRAM),
    "udp4": (socket.AF_INET, socket.SOCK_DGRAM),
    "udp6": (socket.AF_INET6, socket.SOCK_DGRAM),
}

_UNIX_NETWORKS: dict[str, int] = {
    "unix": socket.SOCK_STREAM,
    "unixgram": socket.SOCK_DGRAM,
}


def supported_networks() -> list[str]:
    return sorted([*_INET_NETWORKS, *_UNIX_NETWORKS])


def split_host_port(address: str) -> tuple[str, int | str]:
    """Split ``host:port``; non-numeric ports are service names such as ``syslog``."""
    if address.startswith("["):
        end = address.find("]")
        if end < 0 or address[end + 1 : end + 2] != ":":
            raise DescriptorError(f"Invalid address '{address}': malformed IPv6 host")
        host, port_text = address[1:end], address[end + 2 :]
    else:
        if ":" not in address:
            raise DescriptorError(f"Invalid address '{address}': missing port")
        host, port_text = address.rsplit(":", 1)
        if ":" in host:
            raise DescriptorError(
                f"Invalid address '{address}': IPv6 hosts must be bracketed"
            )
    if not port_text:
        raise DescriptorError(f"Invalid address '{address}': missing port")
    if not (port_text.isascii() and port_text.isdigit()):
        if not (port_text.isascii() and port_text.replace("-", "").isalnum()):
            raise DescriptorError(f"Invalid address '{address}': bad port '{port_text}'")
        return host, port_text
    port = int(port_text)
    if not 0 < port < 65536:
        raise DescriptorError(f"Invalid address '{address}': port out of range")
    return host, port


def _dial_inet(family: int, sock_type: int, address: str, timeout: float) -> socket.socket:
    host, port = split_host_port(address)
    last_error: OSError | None = None
    for af, kind, proto, _canon, sockaddr in socket.getaddrinfo(
        host or None, port, family, sock_type
    ):
        sock = socket.socket(af, kind, proto)
        try:
            sock.settimeout(timeout)
            sock.connect(sockaddr)
            return sock
        except OSError as exc:
            last_error = exc
            sock.close()
    if last_error is not None:
        raise last_error
    raise OSError(f"no addresses found for {address}")


def _dial_unix(sock_type: int, path: str, timeout: float) -> socket.socket:
    sock = socket.socket(socket.AF_UNIX, sock_type)
    try:
        sock.settimeout(timeout)
        sock.connect(path)
    except OSError:
        sock.close()
        raise
    return sock


def dial(protocol: str, address: str, timeout: float = 5.0) -> socket.socket:
    """Open a connected socket for a Go-style network name.

    Raises ``DescriptorError`` for unknown networks or malformed addresses and
    ``OSError`` when the endpoint cannot be reached. Datagram sockets are
    connected so plain ``sendall`` targets the remote address.
    """
    if protocol in _INET_NETWORKS:
        family, sock_type = _INET_NETWORKS[protocol]
        return _dial_inet(family, sock_type, address, timeout)
    if protocol in _UNIX_NETWORKS:
        if not hasattr(socket, "AF_UNIX"):
            raise DescriptorError(f"Network '{protocol}' is not supported on this platform")
        return _dial_unix(_UNIX_NETWORKS[protocol], address, timeout)
    raise DescriptorError(
        f"Unknown network '{protocol}'. Supported: {', '.join(supported_networks())}"
    )
