import base64
import datetime
import socket
import ssl
import threading
from contextlib import contextmanager
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from reconkit import webclient
from reconkit.webclient import (
    BasicAuth,
    check_cookie,
    clean_name,
    copy_cookies,
    crawl,
    names_from_cert,
    peer_certificate,
    pull_certificate_names,
    request_web_page,
)


@pytest.fixture(autouse=True)
def _clear_jar():
    webclient.DEFAULT_SESSION.cookies.clear()
    yield
    webclient.DEFAULT_SESSION.cookies.clear()


@contextmanager
def _serve(handler_cls):
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler_cls)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


class _QuietHandler(BaseHTTPRequestHandler):
    def log_message(self, format, *args):
        pass

    def _reply(self, status, body, content_type="text/plain"):
        data = body.encode()
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)


USERNAME = "user"
PASSWORD = "password"
HEADER_KEY = "X-Test-Leader"
POST_BODY = "Test Body"


class _AuthHandler(_QuietHandler):
    def _check(self, method):
        expected = "Basic " + base64.b64encode(f"{USERNAME}:{PASSWORD}".encode()).decode()
        if self.headers.get("Authorization") != expected:
            return self._reply(401, "Authentication Failed")
        if self.headers.get(HEADER_KEY) != USERNAME:
            return self._reply(400, "Header value was missing")
        if method != "POST":
            return self._reply(400, "Method was not POST")
        length = int(self.headers.get("Content-Length", "0"))
        if self.rfile.read(length).decode() != POST_BODY:
            return self._reply(400, "POST body did not match")
        return self._reply(200, "Success")

    def do_GET(self):
        self._check("GET")

    def do_POST(self):
        self._check("POST")


PAGES = {
    "/": '<html><body><a href="/page2">next</a>'
         '<a href="http://www.example.com/">out</a></body></html>',
    "/page2": '<html><body><a href="http://sub.example.com/x">sub</a>'
              '<img src="/img.png"></body></html>',
    "/empty": "<html><head><title>Sample</title></head>"
              "<body><p>Just text as a placeholder.</p></body></html>",
}


class _PageHandler(_QuietHandler):
    def do_GET(self):
        page = PAGES.get(self.path)
        if page is None:
            self._reply(404, "missing")
        else:
            self._reply(200, page, "text/html; charset=utf-8")


def test_copy_cookies():
    webclient.DEFAULT_SESSION.cookies.set("Test", "Cookie", domain="owasp.org", path="/")
    copy_cookies("http://owasp.org", "http://example.com")
    assert check_cookie("http://example.com", "Test") is True
    assert webclient.DEFAULT_SESSION.cookies.get("Test", domain="example.com") == "Cookie"


def test_check_cookie_success():
    webclient.DEFAULT_SESSION.cookies.set(
        "cookie1", "sample cookie value", domain="owasp.org", path="/"
    )
    assert check_cookie("https://owasp.org", "cookie1") is True


def test_check_cookie_failure():
    assert check_cookie("http://domain.local", "cookie2") is False


def test_request_web_page_detects_bad_request():
    password = PASSWORD
    with _serve(_AuthHandler) as url:
        with pytest.raises(requests.HTTPError) as info:
            request_web_page(url, None, None, BasicAuth(USERNAME, password=password))
    assert info.value.response.status_code == 400
    assert info.value.response.text != "Success"


def test_request_web_page_post_succeeds():
    password = PASSWORD
    with _serve(_AuthHandler) as url:
        text = request_web_page(
            url, POST_BODY, {HEADER_KEY: USERNAME}, BasicAuth(USERNAME, password=password)
        )
    assert text == "Success"


def test_request_web_page_without_auth_is_unauthorized():
    with _serve(_AuthHandler) as url:
        with pytest.raises(requests.HTTPError) as info:
            request_web_page(url, POST_BODY, {HEADER_KEY: USERNAME}, None)
    assert info.value.response.status_code == 401
    assert str(info.value).startswith("401: 401")


def test_crawl_first_page_only():
    with _serve(_PageHandler) as url:
        got = crawl(url + "/", ["127.0.0.1"], 1, None)
    assert set(got) == {"127.0.0.1", "www.example.com"}


def test_crawl_all_pages_and_records_seen():
    seen = set()
    with _serve(_PageHandler) as url:
        got = crawl(url + "/", ["127.0.0.1"], 0, seen)
        assert url + "/page2" in seen
        assert url + "/img.png" in seen
    assert set(got) == {"127.0.0.1", "www.example.com", "sub.example.com"}


def test_crawl_without_names_raises():
    with _serve(_PageHandler) as url:
        target = url + "/empty"
        with pytest.raises(LookupError) as info:
            crawl(target, ["127.0.0.1"], 0, None)
    assert str(info.value) == "no DNS names were discovered during the crawl of " + target


def _make_cert(common_name, dns_names):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
    )
    if dns_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(n) for n in dns_names]),
            critical=False,
        )
    return builder.sign(key, hashes.SHA256()), key


def test_names_from_cert_with_alt_names():
    cert, _ = _make_cert(
        "*.example.com", ["www.example.com", "*.api.example.com", "example.com"]
    )
    names = names_from_cert(cert.public_bytes(serialization.Encoding.DER))
    assert sorted(names) == ["api.example.com", "example.com", "www.example.com"]


def test_names_from_cert_common_name_only():
    cert, _ = _make_cert("host.example.com", [])
    names = names_from_cert(cert.public_bytes(serialization.Encoding.DER))
    assert names == ["host.example.com"]


@contextmanager
def _tls_server(tmp_path, cert, key):
    cert_file = tmp_path / "cert.pem"
    key_file = tmp_path / "key.pem"
    cert_file.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_file.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(str(cert_file), str(key_file))

    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    listener.settimeout(10)

    def serve():
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        try:
            with context.wrap_socket(conn, server_side=True):
                pass
        except OSError:
            conn.close()

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    try:
        yield listener.getsockname()[1]
    finally:
        thread.join(10)
        listener.close()


def test_pull_certificate_names_from_local_server(tmp_path):
    cert, key = _make_cert("*.example.com", ["www.example.com"])
    with _tls_server(tmp_path, cert, key) as port:
        names = pull_certificate_names("127.0.0.1", [port])
    assert sorted(names) == ["example.com", "www.example.com"]


def test_peer_certificate_returns_der(tmp_path):
    cert, key = _make_cert("tls.example.com", [])
    with _tls_server(tmp_path, cert, key) as port:
        der = peer_certificate("127.0.0.1", port)
    assert der == cert.public_bytes(serialization.Encoding.DER)


def test_pull_certificate_names_closed_port():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    assert pull_certificate_names("127.0.0.1", [port]) == []


@pytest.mark.parametrize(
    "data, want",
    [
        ("3aowasp.org", "owasp.org"),
        ("http://www.owasp.org/index.html", "www.owasp.org"),
        ("-Sub.OWASP.org.", "sub.owasp.org"),
        ("http://www.owasp.org/index.html", "www.owasp.org"),
    ],
)
def test_clean_name(data, want):
    assert clean_name(data) == want


def test_clean_name_invalid_escape_returns_input():
    assert clean_name(" bad\\q.example.com") == " bad\\q.example.com"