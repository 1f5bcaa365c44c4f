"""Regular expressions and string helpers for DNS names and reverse lookups."""

from __future__ import annotations

import ipaddress
import re
from typing import Pattern

SUBRE = "(([a-zA-Z0-9]{1}|[_a-zA-Z0-9]{1}[_a-zA-Z0-9-]{0,61}[a-zA-Z0-9]{1})[.]{1})+"
"""Matches the subdomain labels that precede a domain name."""


def subdomain_regex(domain: str) -> Pattern[str]:
    """Return a compiled pattern matching subdomain names ending with domain."""
    return re.compile(subdomain_regex_string(domain))


def subdomain_regex_string(domain: str) -> str:
    """Return the pattern text matching subdomain names ending with domain."""
    return SUBRE + re.escape(domain)


def any_subdomain_regex() -> Pattern[str]:
    """Return a compiled pattern matching any DNS subdomain name."""
    return re.compile(any_subdomain_regex_string())


def any_subdomain_regex_string() -> str:
    """Return the pattern text matching any DNS subdomain name."""
    return SUBRE + "[a-zA-Z]{2,61}"


def remove_asterisk_label(s: str) -> str:
    """Return the name with everything up to the last asterisk label removed."""
    index = s.rfind("*.")
    if index == -1:
        return s
    return s[index + 2:]


def reverse_string(s: str) -> str:
    """Return the characters of s in reverse order."""
    return s[::-1]


def reverse_ip(ip: str) -> str:
    """Return the dotted address with its parts in reverse order."""
    return ".".join(reversed(ip.split(".")))


def ipv6_nibble_format(ip: str) -> str:
    """Return the IPv6 address in reversed nibble format."""
    digits = expand_ipv6_addr(ip).replace(":", "")
    return ".".join(reversed(digits))


def expand_ipv6_addr(addr: str) -> str:
    """Return the address as eight fully written groups of four hex digits."""
    ip = ipaddress.ip_address(addr)
    if isinstance(ip, ipaddress.IPv4Address):
        ip = ipaddress.IPv6Address("::ffff:" + str(ip))
    digits = ip.packed.hex()
    return ":".join(digits[i:i + 4] for i in range(0, len(digits), 4))