"""IP address arithmetic, reserved-range checks and network dialing helpers."""

from __future__ import annotations

import ipaddress
import socket
from typing import List, Optional, Tuple, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
AddressLike = Union[str, IPAddress]
NetworkLike = Union[str, IPNetwork]

IPV4_RE = (
    "((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)[.]){3}"
    "(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
)
"""Regular expression that matches an IPv4 address."""

RESERVED_CIDR_DESCRIPTION = "Reserved Network Address Blocks"

RESERVED_CIDRS = (
    "192.168.0.0/16",
    "172.16.0.0/12",
    "10.0.0.0/8",
    "127.0.0.0/8",
    "224.0.0.0/4",
    "240.0.0.0/4",
    "100.64.0.0/10",
    "198.18.0.0/15",
    "169.254.0.0/16",
    "192.88.99.0/24",
    "192.0.0.0/24",
    "192.0.2.0/24",
    "192.94.77.0/24",
    "192.94.78.0/24",
    "192.52.193.0/24",
    "192.12.109.0/24",
    "192.31.196.0/24",
    "192.0.0.0/29",
)

_RESERVED_NETWORKS = tuple(ipaddress.ip_network(c) for c in RESERVED_CIDRS)

# Network interface address (CIDR notation, e.g. "192.0.2.5/24") that outgoing
# connections are bound to; None leaves the choice to the operating system.
local_addr: Optional[str] = None


def _to_ip(ip: AddressLike) -> IPAddress:
    if isinstance(ip, str):
        return ipaddress.ip_address(ip)
    return ip


def _to_net(cidr: NetworkLike) -> IPNetwork:
    if isinstance(cidr, str):
        return ipaddress.ip_network(cidr, strict=False)
    return cidr


def _unmap(ip: IPAddress) -> IPAddress:
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _ip_text(ip: AddressLike) -> str:
    if isinstance(ip, str):
        try:
            return str(_unmap(ipaddress.ip_address(ip)))
        except ValueError:
            return ip
    return str(_unmap(ip))


def _split_host_port(address: str) -> Tuple[str, str]:
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address {address!r}")
        rest = address[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"missing port in address {address!r}")
        return address[1:end], rest[1:]
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {address!r}")
    if ":" in host:
        raise ValueError(f"too many colons in address {address!r}")
    return host, port


def _local_source(port: int) -> Optional[Tuple[str, int]]:
    if not local_addr:
        return None
    try:
        iface = ipaddress.ip_interface(local_addr)
    except ValueError:
        return None
    return str(iface.ip), port


def dial(network: str, address: str, timeout: Optional[float] = None) -> socket.socket:
    """Open a connected socket for a "tcp"/"udp" network (optionally suffixed 4 or 6)."""
    host, port_text = _split_host_port(address)
    port = int(port_text)

    if network.startswith("tcp"):
        kind = socket.SOCK_STREAM
    elif network.startswith("udp"):
        kind = socket.SOCK_DGRAM
    else:
        raise ValueError(f"unknown network {network!r}")

    if network.endswith("4"):
        family = socket.AF_INET
    elif network.endswith("6"):
        family = socket.AF_INET6
    else:
        family = socket.AF_UNSPEC

    source = _local_source(port)
    last_error: Optional[OSError] = None
    for fam, socktype, proto, _, sockaddr in socket.getaddrinfo(host, port, family, kind):
        sock = socket.socket(fam, socktype, proto)
        try:
            sock.settimeout(timeout)
            if source is not None:
                sock.bind(source)
            sock.connect(sockaddr)
            return sock
        except OSError as exc:
            sock.close()
            last_error = exc
    if last_error is not None:
        raise last_error
    raise OSError(f"no addresses found for {host}")


def is_ipv4(ip: AddressLike) -> bool:
    """Return True when the address is written in IPv4 form."""
    return _ip_text(ip).count(":") < 2


def is_ipv6(ip: AddressLike) -> bool:
    """Return True when the address is written in IPv6 form."""
    return _ip_text(ip).count(":") >= 2


def is_reserved_address(addr: AddressLike) -> Optional[str]:
    """Return the reserved CIDR that holds addr, or None when it is not reserved."""
    try:
        ip = _unmap(_to_ip(addr))
    except ValueError:
        return None
    for block in _RESERVED_NETWORKS:
        if ip in block:
            return str(block)
    return None


def first_last(cidr: NetworkLike) -> Tuple[IPAddress, IPAddress]:
    """Return the first and last address of the netblock."""
    net = _to_net(cidr)
    return net.network_address, net.broadcast_address


def range_to_cidr(first: AddressLike, last: AddressLike) -> Optional[IPNetwork]:
    """Return the largest netblock starting at first that does not pass last."""
    start = _to_ip(first)
    end = _to_ip(last)
    if start.version != end.version:
        raise ValueError("addresses belong to different families")
    if int(start) > int(end):
        return None

    start_int, end_int = int(start), int(end)
    bits = 0
    for k in range(1, start.max_prefixlen + 1):
        size = 1 << k
        if start_int % size != 0 or start_int | (size - 1) > end_int:
            break
        bits = k
    return ipaddress.ip_network(f"{start}/{start.max_prefixlen - bits}")


def all_hosts(cidr: NetworkLike) -> List[IPAddress]:
    """Return every address in the netblock, minus network and broadcast when there are more than two."""
    ips = list(_to_net(cidr))
    if len(ips) > 2:
        ips = ips[1:-1]
    return ips


def range_hosts(start: Optional[AddressLike], end: Optional[AddressLike]) -> List[IPAddress]:
    """Return all addresses from start to end inclusive."""
    if start is None or end is None:
        return []
    first = _to_ip(start)
    last = _to_ip(end)
    if first.version != last.version:
        raise ValueError("addresses belong to different families")
    if int(last) < int(first):
        return []
    if first == last:
        return [first]
    cls = type(first)
    return [cls(n) for n in range(int(first), int(last) + 1)]


def cidr_subset(cidr: NetworkLike, addr: AddressLike, num: int) -> List[IPAddress]:
    """Return up to num addresses around addr that stay inside the netblock."""
    net = _to_net(cidr)
    ip = _to_ip(addr)
    if ip not in net:
        return [ip]

    offset = num // 2
    value = int(ip)
    low = max(value - offset, int(net.network_address))
    high = min(value + offset, int(net.broadcast_address))
    cls = type(ip)
    if low == high:
        return [cls(low)]
    return range_hosts(cls(low), cls(high))


def ip_inc(ip: AddressLike) -> IPAddress:
    """Return the next address, wrapping at the top of the address space."""
    addr = _to_ip(ip)
    return type(addr)((int(addr) + 1) % (1 << addr.max_prefixlen))


def ip_dec(ip: AddressLike) -> IPAddress:
    """Return the previous address, wrapping at the bottom of the address space."""
    addr = _to_ip(ip)
    return type(addr)((int(addr) - 1) % (1 << addr.max_prefixlen))