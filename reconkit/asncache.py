"""In-memory cache of autonomous system and netblock information."""

from __future__ import annotations

import ipaddress
import re
import threading
from typing import Dict, List, Optional, Union

from reconkit.network import RESERVED_CIDR_DESCRIPTION, is_reserved_address
from reconkit.records import RIR, ASNRequest

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

_PREFIX_RE = re.compile(r"[0-9]+")


def _parse_ip(text: str) -> Optional[IPAddress]:
    if not text or "%" in text:
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
    ip = _parse_ip(addr)
    if ip is None:
        return None
    try:
        return ipaddress.ip_network(f"{ip}/{int(bits)}", strict=False)
    except ValueError:
        return None


class ASNCache:
    """Stores ASN records and answers searches by ASN, description or address."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cache: Dict[int, ASNRequest] = {}
        self._ranger: Dict[IPNetwork, ASNRequest] = {}

    def update(self, req: ASNRequest) -> None:
        """Save req, or merge its details into the entry already held for its ASN."""
        with self._lock:
            known = self._cache.get(req.asn)
            if known is None:
                self._cache[req.asn] = req
                if not req.netblocks:
                    req.netblocks = [req.prefix]
                return

            if not known.cc and req.cc:
                known.cc = req.cc
            if not known.registry and req.registry:
                known.registry = req.registry
            if known.allocation_date is None and req.allocation_date is not None:
                known.allocation_date = req.allocation_date
            if len(known.description) < len(req.description):
                known.description = req.description

            for cidr in [req.prefix, *req.netblocks]:
                if cidr not in known.netblocks:
                    known.netblocks.append(cidr)

    def description_search(self, s: str) -> List[ASNRequest]:
        """Return the entries whose description contains s."""
        with self._lock:
            return [entry for entry in self._cache.values() if s in entry.description]

    def asn_search(self, asn: int) -> Optional[ASNRequest]:
        """Return the entry for asn, or None."""
        with self._lock:
            return self._cache.get(asn)

    def addr_search(self, addr: str) -> Optional[ASNRequest]:
        """Return the ASN information for the netblock holding addr, or None."""
        with self._lock:
            ip = _parse_ip(addr)
            if ip is None:
                return None

            reserved = is_reserved_address(addr)
            if reserved is not None:
                return ASNRequest(
                    address=addr,
                    asn=0,
                    prefix=reserved,
                    description=RESERVED_CIDR_DESCRIPTION,
                    tag=RIR,
                    source="RIR",
                )

            found = self._search_ranger(ip)
            if found is None:
                self._load_into_ranger(ip)
                found = self._search_ranger(ip)
                if found is None:
                    return None

            network, data = found
            prefix = str(network)
            netblocks = list(dict.fromkeys([prefix, *data.netblocks]))
            return ASNRequest(
                address=addr,
                asn=data.asn,
                cc=data.cc,
                prefix=prefix,
                netblocks=netblocks,
                description=data.description,
                tag=RIR,
                source="RIR",
            )

    def _search_ranger(self, ip: IPAddress):
        containing = [(net, data) for net, data in self._ranger.items() if ip in net]
        if not containing:
            return None
        return min(containing, key=lambda item: item[0].prefixlen)

    def _load_into_ranger(self, ip: IPAddress) -> None:
        best: Optional[IPNetwork] = None
        best_data: Optional[ASNRequest] = None

        for record in self._cache.values():
            for netblock in record.netblocks:
                net = _parse_cidr(netblock)
                if net is None or net.prefixlen == 0:
                    continue
                if ip not in net:
                    continue
                # Keep the smallest netblock that holds the address
                if best is not None and best.prefixlen > net.prefixlen:
                    continue
                best, best_data = net, record

        if best is not None and best_data is not None:
            self._ranger[best] = best_data