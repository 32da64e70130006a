"""A chainable HTTP client for simple requests."""

from __future__ import annotations

import http.client
import json
import shutil
import xml.etree.ElementTree as ET
from typing import Any
from urllib.parse import quote_plus, urljoin, urlsplit

from hivekit.context import _canonical_key

DEFAULT_USER_AGENT = "hivekitServer"
_MAX_REDIRECTS = 10
_REDIRECT_CODES = frozenset({301, 302, 303, 307, 308})


class HttpRequest:
    """An HTTP request assembled by chained calls and sent on demand."""

    def __init__(self, url: str, method: str) -> None:
        self.url = url
        self.method = method
        self._headers: dict[str, str] = {"User-Agent": DEFAULT_USER_AGENT}
        self._params: dict[str, str] = {}
        self._body: bytes | None = None
        self._show_debug = False
        self.connect_timeout = 60.0
        self.read_write_timeout = 60.0

    def debug(self, isdebug: bool) -> HttpRequest:
        """Print the outgoing request when ``isdebug`` is true."""
        self._show_debug = isdebug
        return self

    def set_timeout(self, connect_timeout: float, read_write_timeout: float) -> HttpRequest:
        """Set the connect and read/write timeouts, in seconds."""
        self.connect_timeout = connect_timeout
        self.read_write_timeout = read_write_timeout
        return self

    def header(self, key: str, value: str) -> HttpRequest:
        self._headers[_canonical_key(key)] = value
        return self

    def param(self, key: str, value: str) -> HttpRequest:
        """Add a parameter: to the query for GET, to a form body for POST."""
        self._params[key] = value
        return self

    def body(self, data: str | bytes) -> HttpRequest:
        """Set the raw request body; values other than text or bytes are ignored."""
        if isinstance(data, str):
            self._body = data.encode("utf-8")
        elif isinstance(data, (bytes, bytearray)):
            self._body = bytes(data)
        return self

    def _prepare(self) -> tuple[str, dict[str, str], bytes | None]:
        url = self.url
        headers = dict(self._headers)
        body = self._body
        param_body = "&".join(f"{quote_plus(k)}={quote_plus(v)}" for k, v in self._params.items())
        if self.method == "GET" and param_body:
            url += ("&" if "?" in url else "?") + param_body
        elif self.method == "POST" and body is None and param_body:
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            body = param_body.encode("ascii")
        if not urlsplit(url).scheme:
            url = "http://" + url
        return url, headers, body

    def _dump(self, url: str, headers: dict[str, str], body: bytes | None) -> None:
        parts = urlsplit(url)
        target = (parts.path or "/") + (f"?{parts.query}" if parts.query else "")
        lines = [f"{self.method} {target} HTTP/1.1", f"Host: {parts.netloc}"]
        lines += [f"{key}: {value}" for key, value in headers.items()]
        text = "\r\n".join(lines) + "\r\n\r\n"
        if body:
            text += body.decode("utf-8", errors="replace")
        print(text)

    def _send(self, url: str, headers: dict[str, str], body: bytes | None) -> http.client.HTTPResponse:
        parts = urlsplit(url)
        if parts.scheme == "http":
            conn_cls: type[http.client.HTTPConnection] = http.client.HTTPConnection
        elif parts.scheme == "https":
            conn_cls = http.client.HTTPSConnection
        else:
            raise ValueError(f"unsupported protocol scheme {parts.scheme!r}")
        if not parts.hostname:
            raise ValueError(f"no host in request URL {url!r}")
        conn = conn_cls(parts.hostname, parts.port, timeout=self.connect_timeout)
        conn.connect()
        if conn.sock is not None:
            conn.sock.settimeout(self.read_write_timeout)
        target = (parts.path or "/") + (f"?{parts.query}" if parts.query else "")
        conn.request(self.method, target, body=body, headers=headers)
        return conn.getresponse()

    def response(self) -> http.client.HTTPResponse:
        """Send the request and return the response, following GET/HEAD redirects."""
        url, headers, body = self._prepare()
        if self._show_debug:
            self._dump(url, headers, body)
        for _ in range(_MAX_REDIRECTS + 1):
            resp = self._send(url, headers, body)
            location = resp.getheader("Location")
            if (
                resp.status in _REDIRECT_CODES
                and location
                and self.method in ("GET", "HEAD")
            ):
                resp.read()
                resp.close()
                url = urljoin(url, location)
                continue
            return resp
        raise ConnectionError(f"stopped after {_MAX_REDIRECTS} redirects")

    def to_bytes(self) -> bytes:
        with self.response() as resp:
            return resp.read()

    def to_string(self) -> str:
        return self.to_bytes().decode("utf-8", errors="replace")

    def to_file(self, filename: str) -> None:
        """Save the response body to ``filename``."""
        with open(filename, "wb") as fh, self.response() as resp:
            shutil.copyfileobj(resp, fh)

    def to_json(self) -> Any:
        return json.loads(self.to_bytes())

    def to_xml(self) -> ET.Element:
        return ET.fromstring(self.to_bytes())


def get(url: str) -> HttpRequest:
    return HttpRequest(url, "GET")


def post(url: str) -> HttpRequest:
    return HttpRequest(url, "POST")


def put(url: str) -> HttpRequest:
    return HttpRequest(url, "PUT")


def delete(url: str) -> HttpRequest:
    return HttpRequest(url, "DELETE")


def head(url: str) -> HttpRequest:
    return HttpRequest(url, "HEAD")