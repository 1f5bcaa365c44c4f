"""Request and result records passed between the stages of an enumeration."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Union

from reconkit.dnsutil import remove_asterisk_label

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

# Request tag types.
NONE = "none"
ALT = "alt"
GUESS = "guess"
ARCHIVE = "archive"
API = "api"
AXFR = "axfr"
BRUTE = "brute"
CERT = "cert"
CRAWL = "crawl"
DNS = "dns"
RIR = "rir"
EXTERNAL = "ext"
SCRAPE = "scrape"

_TRUSTED_TAGS = frozenset({ARCHIVE, AXFR, CERT, CRAWL, DNS})

# Publish/subscribe topics.
NEW_NAME_TOPIC = "amass:newname"
NEW_ADDR_TOPIC = "amass:newaddr"
SUB_DISCOVERED_TOPIC = "amass:newsub"
ASN_REQUEST_TOPIC = "amass:asnreq"
NEW_ASN_TOPIC = "amass:newasn"
WHOIS_REQUEST_TOPIC = "amass:whoisreq"
NEW_WHOIS_TOPIC = "amass:whoisinfo"
LOG_TOPIC = "amass:log"
OUTPUT_TOPIC = "amass:output"

_MAX_WIRE_NAME = 256
_MAX_LABEL = 63
_PREFIX_RE = re.compile(r"[0-9]+")


def _parse_ip(text: str) -> Optional[IPAddress]:
    if not text or "%" in text:
        return None
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def _parse_cidr(text: str) -> Optional[IPNetwork]:
    addr, sep, bits = text.partition("/")
    if not sep or not _PREFIX_RE.fullmatch(bits):
        return None
    ip = _parse_ip(addr)
    if ip is None:
        return None
    try:
        return ipaddress.ip_network(f"{ip}/{int(bits)}", strict=False)
    except ValueError:
        return None


def is_domain_name(name: str) -> bool:
    """Return True when name is a syntactically valid DNS name in wire-length terms."""
    if not name:
        return False
    if not name.endswith("."):
        name += "."
    raw = name.encode("utf-8")

    offset = 0
    begin = 0
    was_dot = False
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == ord("\\"):
            if offset + 1 > _MAX_WIRE_NAME:
                return False
            if i + 3 < len(raw) and all(0x30 <= c <= 0x39 for c in raw[i + 1:i + 4]):
                i += 3
                begin += 3
            else:
                i += 1
                begin += 1
            was_dot = False
        elif ch == ord("."):
            if was_dot:
                return False
            was_dot = True
            label_len = i - begin
            if label_len > _MAX_LABEL:
                return False
            offset += 1 + label_len
            if offset > _MAX_WIRE_NAME:
                return False
            begin = i + 1
        else:
            was_dot = False
        i += 1
    return True


def _labels(name: str) -> List[str]:
    if name in ("", "."):
        return []
    if name.endswith("."):
        name = name[:-1]
    return name.lower().split(".")


def is_subdomain(parent: str, child: str) -> bool:
    """Return True when child equals parent or lies beneath it, ignoring case."""
    parent_labels = _labels(parent)
    child_labels = _labels(child)
    common = 0
    for p, c in zip(reversed(parent_labels), reversed(child_labels)):
        if p != c:
            break
        common += 1
    return common == len(parent_labels)


def _valid_name_pair(name: str, domain: str) -> bool:
    return is_domain_name(name) and is_domain_name(domain) and is_subdomain(domain, name)


@dataclass
class DNSAnswer:
    """A single DNS resource record."""

    name: str = ""
    type: int = 0
    ttl: int = 0
    data: str = ""


def _copy_answers(records: List[DNSAnswer]) -> List[DNSAnswer]:
    return [replace(r) for r in records]


@dataclass
class DNSRequest:
    """A DNS name and the records found for it."""

    name: str = ""
    domain: str = ""
    records: List[DNSAnswer] = field(default_factory=list)
    tag: str = ""
    source: str = ""

    def clone(self) -> DNSRequest:
        """Return an independent copy."""
        return replace(self, records=_copy_answers(self.records))

    def valid(self) -> bool:
        """Return True when the name and domain are valid and the name is within the domain."""
        return _valid_name_pair(self.name, self.domain)


@dataclass
class ResolvedRequest:
    """A DNS name that has been resolved."""

    name: str = ""
    domain: str = ""
    records: List[DNSAnswer] = field(default_factory=list)
    tag: str = ""
    source: str = ""

    def clone(self) -> ResolvedRequest:
        """Return an independent copy."""
        return replace(self, records=_copy_answers(self.records))

    def valid(self) -> bool:
        """Return True when the name and domain are valid and the name is within the domain."""
        return _valid_name_pair(self.name, self.domain)


@dataclass
class SubdomainRequest:
    """A proper subdomain discovered during enumeration and how often it was seen."""

    name: str = ""
    domain: str = ""
    records: List[DNSAnswer] = field(default_factory=list)
    tag: str = ""
    source: str = ""
    times: int = 0

    def clone(self) -> SubdomainRequest:
        """Return an independent copy; the times counter is not carried over."""
        return replace(self, records=_copy_answers(self.records), times=0)

    def valid(self) -> bool:
        """Return True when the names are valid and the subdomain has been seen."""
        return _valid_name_pair(self.name, self.domain) and self.times != 0


@dataclass
class ZoneXFRRequest:
    """A request to attempt a zone transfer against a name server."""

    name: str = ""
    domain: str = ""
    server: str = ""
    tag: str = ""
    source: str = ""

    def clone(self) -> ZoneXFRRequest:
        """Return a copy."""
        return replace(self)


@dataclass
class AddrRequest:
    """A network address discovered during enumeration."""

    address: str = ""
    in_scope: bool = False
    domain: str = ""
    tag: str = ""
    source: str = ""

    def clone(self) -> AddrRequest:
        """Return a copy."""
        return replace(self)

    def valid(self) -> bool:
        """Return True when the address parses and any domain is a valid name."""
        if _parse_ip(self.address) is None:
            return False
        if self.domain and not is_domain_name(self.domain):
            return False
        return True


@dataclass
class ASNRequest:
    """Autonomous system information for an address or netblock."""

    address: str = ""
    asn: int = 0
    prefix: str = ""
    cc: str = ""
    registry: str = ""
    allocation_date: Optional[datetime] = None
    description: str = ""
    netblocks: List[str] = field(default_factory=list)
    tag: str = ""
    source: str = ""

    def clone(self) -> ASNRequest:
        """Return a copy."""
        return replace(self, netblocks=list(self.netblocks))

    def valid(self) -> bool:
        """Return True when the address, prefix and every netblock parse."""
        if _parse_ip(self.address) is None:
            return False
        if _parse_cidr(self.prefix) is None:
            return False
        return all(_parse_cidr(n) is not None for n in self.netblocks)


@dataclass
class WhoisRequest:
    """Data gathered for reverse whois lookups."""

    domain: str = ""
    company: str = ""
    email: str = ""
    new_domains: List[str] = field(default_factory=list)
    tag: str = ""
    source: str = ""


@dataclass
class AddressInfo:
    """Addressing details reported for a discovered name."""

    address: Optional[IPAddress] = None
    netblock: Optional[IPNetwork] = None
    cidr_str: str = ""
    asn: int = 0
    description: str = ""


@dataclass
class Output:
    """The reported result for an enumerated DNS name."""

    name: str = ""
    domain: str = ""
    addresses: List[AddressInfo] = field(default_factory=list)
    tag: str = ""
    sources: List[str] = field(default_factory=list)

    def clone(self) -> Output:
        """Return an independent copy."""
        return replace(
            self,
            addresses=[replace(a) for a in self.addresses],
            sources=list(self.sources),
        )

    def complete(self, passive: bool) -> bool:
        """Return True when all required fields are populated."""
        if not self.name or not self.domain or not self.tag or not self.sources:
            return False
        if any(not src for src in self.sources):
            return False
        if not passive:
            for a in self.addresses:
                if a.address is None or a.netblock is None or not a.cidr_str or not a.description:
                    return False
        return True


def trusted_tag(tag: str) -> bool:
    """Return True for tags whose findings are trusted even in the face of DNS wildcards."""
    return tag in _TRUSTED_TAGS


def sanitize_dns_request(req: DNSRequest) -> DNSRequest:
    """Normalise the name and domain of req in place and return it."""
    name = req.name.lower().strip()
    name = remove_asterisk_label(name)
    req.name = name.strip(".")
    req.domain = req.domain.lower().strip().strip(".")
    return req