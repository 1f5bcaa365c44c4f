"""DNS zone transfers and the popular service names probed with SRV queries."""

from __future__ import annotations

import time
from typing import Dict, Iterable, Iterator, List

import dns.exception
import dns.message
import dns.name
import dns.query
import dns.rcode
import dns.rdatatype
import dns.rrset

from reconkit.network import dial
from reconkit.records import AXFR, DNSAnswer, DNSRequest

XFR_PORT = 53
"""TCP port that zone transfers are requested on."""

CONNECT_TIMEOUT = 10.0
READ_TIMEOUT = 15.0

XFR_SOURCE = "DNS Zone XFR"

# Each line names a service followed by the protocols it is probed over.
_SRV_SERVICES = """
afs3-kaserver tcp tcp udp
afs3-prserver tcp udp
afs3-vlserver tcp udp
amt udp
autodiscover tcp
autotunnel udp
avatars-sec tcp
avatars tcp
bittorrent-tracker tcp
caldavs tcp
caldav tcp
carddavs tcp
carddav tcp
ceph-mon tcp
ceph tcp
certificates tcp
chat udp
collab-edge tls
crls tcp
daap tcp
diameters tcp
diameter tcp tls
dns-llq tcp udp
dns-llq-tls tcp udp
dns-push-tls tcp
dns-sd udp
dns udp
dns-update tcp udp
dns-update-tls tcp
dots-call-home tcp udp
dots-data tcp
dots-signal tcp udp
dvbservdsc tcp udp
ftp tcp
gc tcp
hip-nat-t udp
http tcp
hybrid-pop tcp udp
imap3 tcp udp
imaps tcp udp
imap tcp udp
imps-server tcp
ipp tcp
jabber tcp
jmap tcp
kca udp
kerberos-adm tcp udp
kerberos-master tcp udp
kerberos tcp udp
kerberos-tls tcp
kerneros-iv udp
kftp-data tcp udp
kftp tcp udp
kpasswd tcp udp
ktelnet tcp udp
ldap-admin tcp udp
ldaps tcp udp
ldap tcp udp
matrix tcp
matrix-vnet tcp
MIHIS tcp udp
minecraft tcp
msft-gc-ssl tcp udp
msrps tcp
mtqp tcp
nfs-domainroot tcp
nicname tcp udp
ntp udp
pop2 tcp udp
pop3s tcp udp
pop3 tcp udp
presence tcp udp
puppet tcp
radiusdtls udp
radiustls tcp udp
radsec tcp
rwhois tcp udp
sieve tcp
sips tcp udp
sip tcp udp
slpda tcp udp
slp tcp udp
smtp tcp tls udp
soap-beep tcp
ssh tcp
stun-behaviors tcp udp
stun-behavior tcp udp
stun-p1 tcp udp
stun-p2 tcp udp
stun-p3 tcp udp
stun-port tcp udp
stuns tcp udp
stun tcp udp
submissions tcp
submission tcp udp
sztp tcp
telnet tcp
timezones tcp
timezone tcp
ts3 udp
tsdns tcp
tunnel tcp
turns tcp udp
turn tcp udp
whoispp tcp udp
www-http tcp
www-ldap-gw tcp udp
www tcp
xmlrpc-beep tcp
xmpp-bosh tcp
xmpp-client tcp udp
xmpp-server tcp udp
xmpp tcp
x-puppet tcp
"""

POPULAR_SRV_RECORDS = tuple(
    f"_{service}._{proto}"
    for service, *protos in (line.split() for line in _SRV_SERVICES.strip().splitlines())
    for proto in protos
)
"""Service labels that are prefixed to a name when looking for SRV records."""


class ZoneTransferError(Exception):
    """Raised when a zone transfer cannot be started."""


def _remove_last_dot(text: str) -> str:
    return text[:-1] if text.endswith(".") else text


def _name_text(name: dns.name.Name) -> str:
    return _remove_last_dot(name.to_text())


def _real_name(name: dns.name.Name) -> str:
    return _remove_last_dot(name.to_text().split(" ")[-1])


def _txt_data(strings: Iterable[bytes]) -> str:
    return "".join(piece.decode("utf-8", errors="replace") + " " for piece in strings)


def _answers(rrset: dns.rrset.RRset) -> Iterator[DNSAnswer]:
    rdtype = rrset.rdtype
    owner = _name_text(rrset.name)
    for rdata in rrset:
        if rdtype == dns.rdatatype.CNAME:
            yield DNSAnswer(name=owner, type=int(rdtype), data=_name_text(rdata.target))
        elif rdtype in (dns.rdatatype.A, dns.rdatatype.AAAA):
            yield DNSAnswer(name=owner, type=int(rdtype), data=rdata.address)
        elif rdtype == dns.rdatatype.PTR:
            yield DNSAnswer(name=owner, type=int(rdtype), data=_name_text(rdata.target))
        elif rdtype == dns.rdatatype.NS:
            yield DNSAnswer(
                name=_real_name(rrset.name), type=int(rdtype), data=_name_text(rdata.target)
            )
        elif rdtype == dns.rdatatype.MX:
            yield DNSAnswer(name=owner, type=int(rdtype), data=_name_text(rdata.exchange))
        elif rdtype in (dns.rdatatype.TXT, dns.rdatatype.SPF):
            yield DNSAnswer(name=owner, type=int(rdtype), data=_txt_data(rdata.strings))
        elif rdtype == dns.rdatatype.SOA:
            yield DNSAnswer(
                name=owner,
                type=int(rdtype),
                data=rdata.mname.to_text() + " " + rdata.rname.to_text(),
            )
        elif rdtype == dns.rdatatype.SRV:
            yield DNSAnswer(name=owner, type=int(rdtype), data=_name_text(rdata.target))


def requests_from_zone(rrsets: Iterable[dns.rrset.RRset], domain: str) -> List[DNSRequest]:
    """Group the supported records of one transfer message into a request per owner name."""
    found: Dict[str, DNSRequest] = {}
    for rrset in rrsets:
        for record in _answers(rrset):
            req = found.get(record.name)
            if req is None:
                found[record.name] = DNSRequest(
                    name=record.name,
                    domain=domain,
                    records=[record],
                    tag=AXFR,
                    source=XFR_SOURCE,
                )
            else:
                req.records.append(record)
    return list(found.values())


def _join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _is_soa(rrset: dns.rrset.RRset) -> bool:
    return rrset.rdtype == dns.rdatatype.SOA


def _transfer_messages(sock) -> Iterator[dns.message.Message]:
    first = True
    while True:
        try:
            message, _ = dns.query.receive_tcp(
                sock, time.time() + READ_TIMEOUT, one_rr_per_rrset=True
            )
        except (OSError, EOFError, ValueError, dns.exception.DNSException):
            return
        if message.rcode() != dns.rcode.NOERROR:
            return
        answer = list(message.answer)
        if not answer:
            return
        if first and not _is_soa(answer[0]):
            return

        yield message
        # The transfer ends with the closing SOA record
        if first:
            if len(answer) > 1 and _is_soa(answer[-1]):
                return
            first = False
        elif _is_soa(answer[-1]):
            return


def zone_transfer(sub: str, domain: str, server: str) -> List[DNSRequest]:
    """Attempt a zone transfer of sub from server and return the discovered records."""
    addr = _join_host_port(server, XFR_PORT)
    try:
        sock = dial("tcp", addr, timeout=CONNECT_TIMEOUT)
    except (OSError, ValueError) as exc:
        raise ZoneTransferError(
            f"zone xfr error: Failed to obtain TCP connection to [{addr}]: {exc}"
        ) from exc

    results: List[DNSRequest] = []
    with sock:
        sock.settimeout(READ_TIMEOUT)
        try:
            query = dns.message.make_query(dns.name.from_text(sub), dns.rdatatype.AXFR)
            dns.query.send_tcp(sock, query, time.time() + READ_TIMEOUT)
        except (OSError, ValueError, dns.exception.DNSException) as exc:
            raise ZoneTransferError(f"DNS zone transfer error for [{addr}]: {exc}") from exc

        for message in _transfer_messages(sock):
            results.extend(requests_from_zone(message.answer, domain))
    return results