"""Banner, enumeration summary and result line formatting for the command line."""

from __future__ import annotations

import ipaddress
import os
import socket
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, MutableMapping, TextIO, Tuple

import psutil
from termcolor import colored

from reconkit.network import is_ipv4, is_ipv6
from reconkit.records import AddressInfo, Output

BANNER = """
  +--------------------------------------------------------------------------+
  |                                                                          |
  |                              r e c o n k i t                             |
  |                                                                          |
  +--------------------------------------------------------------------------+
"""

VERSION = "v0.1.0"
AUTHOR = "The reconkit developers"
DESCRIPTION = "In-depth Attack Surface Mapping and Asset Discovery"

_RULE = "-" * 80
_RIGHTMOST = 76

_GREEN = "light_green"
_BLUE = "light_blue"
_YELLOW = "light_yellow"
_RED = "light_red"


@dataclass
class ASNSummaryData:
    """Discovered autonomous system and how many addresses fell in each netblock."""

    name: str = ""
    netblocks: Dict[str, int] = field(default_factory=dict)


def _color_enabled(out: TextIO) -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(out, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        return False


def _painter(out: TextIO) -> Callable[[str, str], str]:
    enabled = _color_enabled(out)

    def paint(text: str, color: str) -> str:
        return colored(text, color) if enabled else text

    return paint


def update_summary_data(
    output: Output,
    tags: MutableMapping[str, int],
    asns: MutableMapping[int, ASNSummaryData],
) -> None:
    """Count the output's tag and the netblocks of its addresses."""
    tags[output.tag] = tags.get(output.tag, 0) + 1

    for addr in output.addresses:
        if not addr.cidr_str:
            continue
        data = asns.get(addr.asn)
        if data is None:
            data = asns[addr.asn] = ASNSummaryData(name=addr.description)
        data.netblocks[addr.cidr_str] = data.netblocks.get(addr.cidr_str, 0) + 1


def print_enumeration_summary(
    total: int,
    tags: MutableMapping[str, int],
    asns: MutableMapping[int, ASNSummaryData],
    demo: bool,
) -> None:
    """Write the enumeration summary to standard error."""
    fprint_enumeration_summary(sys.stderr, total, tags, asns, demo)


def fprint_enumeration_summary(
    out: TextIO,
    total: int,
    tags: MutableMapping[str, int],
    asns: MutableMapping[int, ASNSummaryData],
    demo: bool,
) -> None:
    """Write the enumeration summary to out."""
    paint = _painter(out)

    out.write("\n")
    out.write(paint("reconkit " + VERSION, _BLUE) + "\n")
    out.write(paint(_RULE, _BLUE))
    out.write("\n" + paint(str(total), _YELLOW) + paint(" names discovered - ", _GREEN))
    stats = [f"{paint(k, _GREEN)}: {paint(str(v), _YELLOW)}" for k, v in tags.items()]
    out.write(paint(", ", _GREEN).join(stats))
    out.write("\n")

    if not asns:
        return

    out.write(paint(_RULE, _BLUE) + "\n")
    for asn, data in asns.items():
        asnstr = str(asn)
        datastr = data.name
        if demo and asn > 0:
            asnstr = _censor_string(asnstr, 0, len(asnstr))
            datastr = _censor_string(datastr, 0, len(datastr))
        out.write(
            f"{paint('ASN: ', _BLUE)}{paint(asnstr, _YELLOW)} "
            f"{paint('-', _GREEN)} {paint(datastr, _GREEN)}\n"
        )

        for cidr, ips in data.netblocks.items():
            cidrstr = _censor_netblock(cidr) if demo else cidr
            cidr_col = "\t" + f"{cidrstr:<18}"
            count_col = "\t" + f"{ips!s:<4}"
            out.write(
                f"{paint(cidr_col, _YELLOW)}{paint(count_col, _YELLOW)} "
                f"{paint('Subdomain Name(s)', _BLUE)}\n"
            )


def print_banner() -> None:
    """Write the banner to standard error."""
    fprint_banner(sys.stderr)


def fprint_banner(out: TextIO) -> None:
    """Write the banner, version, author and description to out."""
    paint = _painter(out)

    out.write(paint(BANNER, _RED) + "\n")
    out.write(" " * (_RIGHTMOST - len(VERSION)) + paint(VERSION, _YELLOW) + "\n")
    out.write(" " * (_RIGHTMOST - len(AUTHOR)) + paint(AUTHOR, _YELLOW) + "\n")
    out.write(" " * (_RIGHTMOST - len(DESCRIPTION)) + paint(DESCRIPTION, _YELLOW) + "\n\n\n")


def _censor_domain(text: str) -> str:
    return _censor_string(text, max(text.find("."), 0), len(text))


def _censor_ip(text: str) -> str:
    return _censor_string(text, 0, text.rfind("."))


def _censor_netblock(text: str) -> str:
    return _censor_string(text, 0, text.find("/"))


def _censor_string(text: str, start: int, end: int) -> str:
    chars = list(text)
    for i in range(start, end):
        if chars[i] not in "./- ":
            chars[i] = "x"
    return "".join(chars)


def output_line_parts(out: Output, src: bool, addrs: bool, demo: bool) -> Tuple[str, str, str]:
    """Return the source, name and address columns of a printed result line."""
    source = ""
    ips = ""
    if src:
        source = f"{'[' + out.sources[0] + '] ':<18}"
    if addrs:
        texts = [str(a.address) for a in out.addresses]
        if demo:
            texts = [_censor_ip(t) for t in texts]
        ips = ",".join(texts) or "N/A"

    name = _censor_domain(out.name) if demo else out.name
    return source, name, ips


def desired_addr_types(addrs: List[AddressInfo], ipv4: bool, ipv6: bool) -> List[AddressInfo]:
    """Drop the address families that were not asked for; keep all when neither was."""
    if not ipv4 and not ipv6:
        return addrs

    keep = []
    for addr in addrs:
        if is_ipv4(addr.address) and not ipv4:
            continue
        if is_ipv6(addr.address) and not ipv6:
            continue
        keep.append(addr)
    return keep


def _interface_flags(stats) -> str:
    if stats is None:
        return ""
    flags = getattr(stats, "flags", None)
    if flags:
        return flags.replace(",", "|")
    return "up" if stats.isup else ""


def _address_with_prefix(address: str, netmask) -> str:
    address = address.split("%")[0]
    if not netmask:
        return address
    try:
        mask = ipaddress.ip_address(netmask.split("%")[0])
        prefix = bin(int(mask)).count("1")
        return str(ipaddress.ip_interface(f"{address}/{prefix}"))
    except ValueError:
        return address


def interface_info() -> str:
    """Describe the network interfaces of this host."""
    paint = _painter(sys.stdout)
    stats = psutil.net_if_stats()
    lines = []

    for name, entries in psutil.net_if_addrs().items():
        flags = _interface_flags(stats.get(name))
        lines.append(
            f"{paint(name + ': ', _BLUE)}{paint('flags=', _GREEN)}"
            f"{paint('<' + flags.upper() + '>', _YELLOW)}"
        )

        hardware = next(
            (e.address for e in entries if e.family == psutil.AF_LINK and e.address), ""
        )
        if hardware and hardware.strip("0:-"):
            lines.append(f"\t{paint('ether: ', _GREEN)}{paint(hardware, _YELLOW)}")

        for entry in entries:
            if entry.family == socket.AF_INET:
                label = "inet: "
            elif entry.family == socket.AF_INET6:
                label = "inet6: "
            else:
                continue
            text = _address_with_prefix(entry.address, entry.netmask)
            lines.append(f"\t{paint(label, _GREEN)}{paint(text, _YELLOW)}")

    return "".join(line + "\n" for line in lines)