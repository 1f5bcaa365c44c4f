# reconkit

A library of building blocks for mapping the DNS footprint of a domain:
address arithmetic, subdomain matching, request records, an ASN cache,
option parsing, summary printing, web crawling, TLS certificate name
harvesting and AXFR zone transfers.

## Modules

- **`reconkit.network`** – IP address helpers working on `ipaddress` objects
  or strings: `is_ipv4`, `is_ipv6`, `is_reserved_address` (returns the
  reserved CIDR holding an address, or `None`), `first_last`,
  `range_to_cidr`, `all_hosts`, `range_hosts`, `cidr_subset`, `ip_inc`,
  `ip_dec`. `dial(network, address, timeout)` opens a connected TCP or UDP
  socket; setting the module variable `local_addr` (CIDR notation) binds
  outgoing connections to that interface address. `IPV4_RE` and
  `RESERVED_CIDRS` are exported as well.
- **`reconkit.dnsutil`** – `subdomain_regex` / `subdomain_regex_string`,
  `any_subdomain_regex` / `any_subdomain_regex_string`,
  `remove_asterisk_label`, `reverse_string`, `reverse_ip`,
  `ipv6_nibble_format` and `expand_ipv6_addr`.
- **`reconkit.limits`** – `get_file_limit()` raises the open-file soft limit
  to the hard limit where the platform allows it and returns the resulting
  limit (a fixed 10000 on Windows).
- **`reconkit.records`** – dataclasses passed around during enumeration:
  `DNSAnswer`, `DNSRequest`, `ResolvedRequest`, `SubdomainRequest`,
  `ZoneXFRRequest`, `AddrRequest`, `ASNRequest`, `WhoisRequest`,
  `AddressInfo`, `Output`, with `clone()`, `valid()` and `Output.complete()`.
  Also `is_domain_name`, `is_subdomain`, `trusted_tag`,
  `sanitize_dns_request`, and the tag constants (`DNS`, `AXFR`, `CERT`, …).
- **`reconkit.asncache`** – `ASNCache` stores ASN and netblock data
  (`update`) and searches it by ASN (`asn_search`), description
  (`description_search`) or address (`addr_search`, which picks the
  smallest known netblock and answers reserved ranges with ASN 0).
- **`reconkit.parse`** – list subclasses filled from comma-separated text
  with `set()`: `ParseStrings`, `ParseInts`, `ParseIPs` (single addresses and
  ranges such as `10.0.0.1-3` or `10.0.0.1-10.0.0.3`), `ParseCIDRs`,
  `ParseASNs` (with or without an `AS` prefix). `str()` joins the values
  back with commas; bad input raises `ValueError`.
- **`reconkit.printing`** – `fprint_banner` / `print_banner`,
  `update_summary_data`, `fprint_enumeration_summary` /
  `print_enumeration_summary` (with a `demo` mode that masks ASNs,
  descriptions and netblocks), `output_line_parts`, `desired_addr_types`
  and `interface_info`. Colour is used only when writing to a terminal and
  is turned off by `NO_COLOR` or `TERM=dumb`.
- **`reconkit.webclient`** – `request_web_page` (GET, or POST when a body is
  given; a status outside 200–399 raises `requests.HTTPError`),
  `copy_cookies` and `check_cookie` on the shared `DEFAULT_SESSION`,
  `crawl` (follows in-scope links, returns the host names seen, raises
  `LookupError` when none were found), `peer_certificate`,
  `names_from_cert`, `pull_certificate_names` and `clean_name`.
- **`reconkit.zone`** – `zone_transfer(sub, domain, server)` performs an
  AXFR over TCP port 53 and returns `DNSRequest` objects grouped by owner
  name (failures to connect or send raise `ZoneTransferError`);
  `requests_from_zone` does the grouping for already received record sets.
  `POPULAR_SRV_RECORDS` lists the service labels commonly probed with SRV
  queries.

## Installation

```
pip install .
```

## Examples

```python
from reconkit.parse import ParseIPs
from reconkit.asncache import ASNCache
from reconkit.records import ASNRequest

ips = ParseIPs()
ips.set("127.0.0.1-3,255.0.0.0")
print(ips)            # 127.0.0.1,127.0.0.2,127.0.0.3,255.0.0.0

cache = ASNCache()
cache.update(ASNRequest(address="72.237.4.113", asn=26808, prefix="72.237.4.0/24"))
print(cache.addr_search("72.237.4.20").asn)   # 26808
```

```python
from reconkit.network import cidr_subset
from reconkit.dnsutil import subdomain_regex

print(len(cidr_subset("192.168.1.0/24", "192.168.1.55", 50)))        # 51
print(subdomain_regex("example.com").search("see www.example.com").group())
```

## What it does not do

reconkit is a library only. It has no command-line program, and it does not
run a complete enumeration: there is no resolver pool, no wildcard
detection, no pluggable data sources and no graph storage of findings. The
pieces here are meant to be combined by your own code.

## Tests

```
pip install .[test]
pytest
```