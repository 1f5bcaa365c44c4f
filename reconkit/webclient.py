"""HTTP requests, cookie handling, web crawling and TLS certificate name harvesting."""

from __future__ import annotations

import re
import ssl
import string
import sys
import time
import warnings
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple
from urllib.parse import urljoin, urlsplit

import requests
from bs4 import BeautifulSoup
from cryptography import x509
from cryptography.x509.oid import NameOID

from reconkit.dnsutil import any_subdomain_regex, remove_asterisk_label
from reconkit.network import dial

ACCEPT = "text/html,application/json,application/xhtml+xml,application/xml;q=0.5,*/*;q=0.2"
"""Default Accept header value."""

ACCEPT_LANG = "en-US,en;q=0.5"
"""Default Accept-Language header value."""

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.45 Safari/537.36"
)
_WINDOWS_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.45 Safari/537.36"
)
_DARWIN_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 12_0_1) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.45 Safari/537.36"
)

if sys.platform == "win32":
    USER_AGENT = _WINDOWS_USER_AGENT
elif sys.platform == "darwin":
    USER_AGENT = _DARWIN_USER_AGENT
else:
    USER_AGENT = _DEFAULT_USER_AGENT

HTTP_TIMEOUT = 60.0
HANDSHAKE_TIMEOUT = 20.0
CRAWL_TIMEOUT = 5 * 60.0

_MAX_BODY_SIZE = 50 * 1024 * 1024
_RETRY_TIMES = 2
_RETRY_HTTP_CODES = frozenset({408, 500, 502, 503, 504, 522, 524})

_CRAWL_TAGS = (
    "a", "area", "audio", "base", "blockquote", "button", "embed", "form", "frame",
    "frameset", "html", "iframe", "img", "input", "ins", "link", "noframes", "object",
    "q", "script", "source", "track", "video",
)
_CRAWL_ATTRS = (
    "action", "cite", "data", "formaction", "href", "longdesc", "poster", "src",
    "srcset", "xmlns",
)

_SUB_RE = any_subdomain_regex()
_NAME_STRIP_RE = re.compile(r"^u[0-9a-f]{4}|20|22|25|27|2b|2f|3d|3a|40")

DEFAULT_SESSION = requests.Session()
"""Session shared by the request and cookie helpers; holds the cookie jar."""


@dataclass
class BasicAuth:
    """Credentials for HTTP basic authentication."""

    username: str
    password: str


def _is_web_url(parts) -> bool:
    return parts.scheme in ("http", "https") and bool(parts.hostname)


def _path_matches(request_path: str, cookie_path: str) -> bool:
    if not cookie_path or request_path == cookie_path:
        return True
    if not request_path.startswith(cookie_path):
        return False
    return cookie_path.endswith("/") or request_path[len(cookie_path)] == "/"


def _cookies_for(url: str) -> Iterator:
    parts = urlsplit(url)
    if not _is_web_url(parts):
        return
    host = parts.hostname.lower()
    path = parts.path or "/"
    secure = parts.scheme == "https"
    now = time.time()

    for cookie in DEFAULT_SESSION.cookies:
        if cookie.is_expired(now):
            continue
        if cookie.secure and not secure:
            continue
        domain = cookie.domain.lower().lstrip(".")
        if host != domain and not (cookie.domain_initial_dot and host.endswith("." + domain)):
            continue
        if not _path_matches(path, cookie.path):
            continue
        yield cookie


def _default_cookie_path(path: str) -> str:
    if not path.startswith("/") or path.count("/") == 1:
        return "/"
    return path[:path.rfind("/")]


def copy_cookies(src: str, dest: str) -> None:
    """Copy the cookies that apply to the src URL so they also apply to the dest URL."""
    parts = urlsplit(dest)
    if not _is_web_url(parts):
        return
    host = parts.hostname.lower()
    path = _default_cookie_path(parts.path)
    for cookie in list(_cookies_for(src)):
        DEFAULT_SESSION.cookies.set(cookie.name, cookie.value, domain=host, path=path)


def check_cookie(url: str, cookie_name: str) -> bool:
    """Return True when a cookie with that name applies to the URL."""
    return any(cookie.name == cookie_name for cookie in _cookies_for(url))


def request_web_page(
    url: str,
    body=None,
    headers: Optional[Dict[str, str]] = None,
    auth: Optional[BasicAuth] = None,
) -> str:
    """Fetch the URL (POST when a body is given) and return the response text.

    A status outside 200-399 raises requests.HTTPError with the response attached.
    """
    method = "POST" if body is not None else "GET"
    request_headers = {
        "User-Agent": USER_AGENT,
        "Accept": ACCEPT,
        "Accept-Language": ACCEPT_LANG,
        "Connection": "close",
    }
    if headers:
        request_headers.update(headers)

    credentials = None
    if auth is not None and auth.username and auth.password:
        credentials = (auth.username, auth.password)

    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", message="Unverified HTTPS request")
        resp = DEFAULT_SESSION.request(
            method,
            url,
            data=body,
            headers=request_headers,
            auth=credentials,
            timeout=HTTP_TIMEOUT,
            verify=False,
        )

    with resp:
        text = resp.text
    if not 200 <= resp.status_code < 400:
        code = resp.status_code
        raise requests.HTTPError(f"{code}: {code} {resp.reason}", response=resp)
    return text


def _which_domain(name: str, scope: Iterable[str]) -> str:
    n = name.strip()
    for d in scope:
        if n.endswith(d) and (len(n) == len(d) or n[len(n) - len(d) - 1] == "."):
            return d
    return ""


def _read_limited(resp: requests.Response) -> bytes:
    data = bytearray()
    for chunk in resp.iter_content(chunk_size=65536):
        data += chunk
        if len(data) >= _MAX_BODY_SIZE:
            return bytes(data[:_MAX_BODY_SIZE])
    return bytes(data)


def _fetch(session: requests.Session, url: str, deadline: float) -> Optional[Tuple[str, str]]:
    for _ in range(_RETRY_TIMES + 1):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return None
        try:
            with session.get(url, stream=True, timeout=min(HTTP_TIMEOUT, remaining)) as resp:
                if resp.status_code in _RETRY_HTTP_CODES:
                    continue
                if "html" not in resp.headers.get("Content-Type", "").lower():
                    return None
                raw = _read_limited(resp)
                text = raw.decode(resp.encoding or "utf-8", errors="replace")
                return resp.url, text
        except (requests.RequestException, LookupError):
            continue
    return None


def _page_links(html: str) -> Iterator[str]:
    soup = BeautifulSoup(html, "html.parser")
    for tag_name in _CRAWL_TAGS:
        for tag in soup.find_all(tag_name):
            for attr in _CRAWL_ATTRS:
                value = tag.get(attr)
                if value is None:
                    continue
                if isinstance(value, list):
                    value = " ".join(value)
                yield value


def crawl(
    url: str,
    scope: List[str],
    max_links: int = 0,
    seen: Optional[Set[str]] = None,
) -> List[str]:
    """Spider pages starting at url and return the host names found in their links.

    Links whose host is within scope are followed, at most max_links of them
    (no limit when max_links <= 0). Followed URLs are added to seen.
    Raises LookupError when no names were discovered.
    """
    if seen is None:
        seen = set()

    results: Dict[str, None] = {}
    visited: Set[str] = set()
    pending = deque([url])
    count = 0
    deadline = time.monotonic() + CRAWL_TIMEOUT

    with requests.Session() as session:
        session.headers["User-Agent"] = USER_AGENT
        while pending and time.monotonic() < deadline:
            target = pending.popleft()
            if target in visited:
                continue
            visited.add(target)

            page = _fetch(session, target, deadline)
            if page is None:
                continue
            base, html = page

            for link in _page_links(html):
                try:
                    absolute = urljoin(base, link)
                    host = urlsplit(absolute).hostname or ""
                except ValueError:
                    continue
                if host:
                    results[host] = None
                if not _which_domain(host, scope):
                    continue
                if absolute and absolute not in seen:
                    count += 1
                    if max_links <= 0 or count < max_links:
                        seen.add(absolute)
                        pending.append(absolute)

    if not results:
        raise LookupError(f"no DNS names were discovered during the crawl of {url}")
    return list(results)


def _join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def peer_certificate(host: str, port: int) -> bytes:
    """Complete a TLS handshake with host:port and return the peer certificate in DER form."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE

    sock = dial("tcp", _join_host_port(host, port), timeout=HANDSHAKE_TIMEOUT)
    try:
        with context.wrap_socket(sock, server_hostname=None) as tls:
            der = tls.getpeercert(binary_form=True)
    finally:
        sock.close()
    if not der:
        raise ssl.SSLError(f"no certificate was presented by {host}:{port}")
    return der


def names_from_cert(der: bytes) -> List[str]:
    """Return the subject common name and DNS names of a DER certificate, wildcards removed."""
    cert = x509.load_der_x509_certificate(der)

    names: Dict[str, None] = {}
    common = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if common:
        cn = remove_asterisk_label(str(common[0].value))
        if cn:
            names[cn] = None

    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        dns_names = san.get_values_for_type(x509.DNSName)
    except (x509.ExtensionNotFound, ValueError):
        dns_names = []
    for name in dns_names:
        n = remove_asterisk_label(name)
        if n:
            names[n] = None
    return list(names)


def pull_certificate_names(addr: str, ports: Iterable[int]) -> List[str]:
    """Collect certificate names from each port of addr that completes a TLS handshake."""
    names: List[str] = []
    for port in ports:
        try:
            der = peer_certificate(addr, port)
            names.extend(names_from_cert(der))
        except (OSError, ValueError):
            continue
    return names


def _hex_value(text: str, width: int) -> int:
    if len(text) != width or not all(c in string.hexdigits for c in text):
        raise ValueError("invalid hex escape")
    return int(text, 16)


def _unquote(body: str) -> str:
    """Interpret escape sequences as in a double-quoted string literal."""
    out = bytearray()
    i = 0
    n = len(body)
    simple = {
        "a": b"\a", "b": b"\b", "f": b"\f", "n": b"\n", "r": b"\r",
        "t": b"\t", "v": b"\v", "\\": b"\\", '"': b'"',
    }
    while i < n:
        ch = body[i]
        if ch in ('"', "\n"):
            raise ValueError("invalid character in quoted string")
        if ch != "\\":
            out += ch.encode("utf-8")
            i += 1
            continue
        if i + 1 >= n:
            raise ValueError("unterminated escape")
        esc = body[i + 1]
        if esc in simple:
            out += simple[esc]
            i += 2
        elif esc == "x":
            out.append(_hex_value(body[i + 2:i + 4], 2))
            i += 4
        elif esc in ("u", "U"):
            width = 4 if esc == "u" else 8
            value = _hex_value(body[i + 2:i + 2 + width], width)
            if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
                raise ValueError("invalid unicode escape")
            out += chr(value).encode("utf-8")
            i += 2 + width
        elif esc in "01234567":
            digits = body[i + 1:i + 4]
            if len(digits) != 3 or not all(c in "01234567" for c in digits):
                raise ValueError("invalid octal escape")
            value = int(digits, 8)
            if value > 0xFF:
                raise ValueError("octal escape out of range")
            out.append(value)
            i += 4
        else:
            raise ValueError(f"unknown escape \\{esc}")
    return out.decode("utf-8", errors="replace")


def clean_name(name: str) -> str:
    """Clean up a DNS name scraped from web content."""
    try:
        clean = _unquote(name.strip())
    except ValueError:
        return name

    match = _SUB_RE.search(clean)
    if match and match.group(0):
        clean = match.group(0)

    clean = clean.lower()
    while True:
        clean = clean.strip("-.")
        strip = _NAME_STRIP_RE.search(clean)
        if strip is None:
            break
        clean = clean[strip.end():]
    return clean