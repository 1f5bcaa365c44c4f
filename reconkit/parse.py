"""Comma-separated option values: strings, integers, addresses, netblocks and ASNs."""

from __future__ import annotations

import ipaddress
import re
from typing import Optional, Tuple, Union

from reconkit.network import range_hosts

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

_INT_RE = re.compile(r"[+-]?[0-9]+")
_PREFIX_RE = re.compile(r"[0-9]+")
_MAX_BYTE = 255


def _atoi(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid syntax: {text!r}")
    return int(text)


def _parse_ip(text: str) -> Optional[IPAddress]:
    if not text or "%" in text or text != text.strip():
        return None
    try:
        ip = ipaddress.ip_address(text)
    except ValueError:
        return None
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _parse_cidr(text: str) -> Optional[IPNetwork]:
    addr, sep, bits = text.partition("/")
    if not sep or not _PREFIX_RE.fullmatch(bits):
        return None
    if not addr or "%" in addr or addr != addr.strip():
        return None
    try:
        ip = ipaddress.ip_address(addr)
        return ipaddress.ip_network(f"{ip}/{int(bits)}", strict=False)
    except ValueError:
        return None


def _parse_range(text: str) -> Optional[Tuple[IPAddress, IPAddress]]:
    parts = text.split("-")
    if len(parts) != 2:
        return None
    start = _parse_ip(parts[0])
    if start is None:
        return None
    end = _parse_ip(parts[1])
    if end is None:
        try:
            num = _atoi(parts[1])
        except ValueError:
            return None
        if num > _MAX_BYTE:
            return None
        end = type(start)((int(start) & ~0xFF) | num)
    return start, end


class ParseStrings(list):
    """A list of strings filled from comma-separated text."""

    def set(self, s: str) -> None:
        """Append every comma-separated value of s, stripped of whitespace."""
        if s == "":
            raise ValueError("String parsing failed")
        self.extend(part.strip() for part in s.split(","))

    def __str__(self) -> str:
        return ",".join(self)


class ParseInts(list):
    """A list of integers filled from comma-separated text."""

    def set(self, s: str) -> None:
        """Append every comma-separated integer of s."""
        if s == "":
            raise ValueError("Integer parsing failed")
        self.extend([_atoi(part.strip()) for part in s.split(",")])

    def __str__(self) -> str:
        return ",".join(str(n) for n in self)


class ParseIPs(list):
    """A list of IP addresses filled from addresses and address ranges."""

    def set(self, s: str) -> None:
        """Append the addresses named by s: single addresses, "a-b" or "a-N" ranges."""
        if s == "":
            raise ValueError("IP address parsing failed")

        found = []
        for value in s.split(","):
            bounds = _parse_range(value)
            if bounds is not None:
                try:
                    ips = range_hosts(*bounds)
                except ValueError:
                    ips = []
                if not ips:
                    raise ValueError(f"{value} is not a valid IP address or range")
                found.extend(ips)
                continue

            ip = _parse_ip(value)
            if ip is None:
                raise ValueError(f"{value} is not a valid IP address or range")
            found.append(ip)
        self.extend(found)

    def __str__(self) -> str:
        return ",".join(str(ip) for ip in self)


class ParseCIDRs(list):
    """A list of netblocks filled from comma-separated CIDR notation."""

    def set(self, s: str) -> None:
        """Append every comma-separated netblock of s."""
        if s == "":
            raise ValueError(f"{s} is not a valid CIDR")

        found = []
        for cidr in s.split(","):
            net = _parse_cidr(cidr)
            if net is None:
                raise ValueError(f"Failed to parse {cidr} as a CIDR")
            found.append(net)
        self.extend(found)

    def __str__(self) -> str:
        return ",".join(str(net) for net in self)


class ParseASNs(list):
    """A list of autonomous system numbers, with or without an "AS" prefix."""

    def set(self, s: str) -> None:
        """Append every comma-separated ASN of s."""
        if s == "":
            raise ValueError("ASN parsing failed")
        self.extend([_atoi(part.strip().removeprefix("AS")) for part in s.split(",")])

    def __str__(self) -> str:
        return ",".join(str(n) for n in self)