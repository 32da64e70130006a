"""Request and response wrappers used by request handlers."""

from __future__ import annotations

import email.utils
import gzip
import json
import mimetypes
import os
import zlib
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import parse_qs, urlsplit

_TOKEN_PUNCTUATION = frozenset("!#$%&'*+-.^_`|~")
_MIME = mimetypes.MimeTypes()

_NAME_SANITIZER = str.maketrans({"\n": "-", "\r": "-"})
_VALUE_SANITIZER = str.maketrans({"\n": " ", "\r": " ", ";": " "})
_XML_ESCAPES = str.maketrans(
    {
        '"': "&#34;",
        "'": "&#39;",
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        "\t": "&#x9;",
        "\n": "&#xA;",
        "\r": "&#xD;",
    }
)
_JSON_ESCAPES = str.maketrans(
    {
        "<": "\\u003c",
        ">": "\\u003e",
        "&": "\\u0026",
        "\u2028": "\\u2028",
        "\u2029": "\\u2029",
    }
)


def _is_token_char(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char in _TOKEN_PUNCTUATION


def _canonical_key(key: str) -> str:
    """Canonical MIME header form: ``content-type`` becomes ``Content-Type``."""
    if not all(_is_token_char(c) for c in key):
        return key
    chars = []
    upper = True
    for char in key:
        chars.append(char.upper() if upper else char.lower())
        upper = char == "-"
    return "".join(chars)


def _type_by_extension(ext: str) -> str:
    """Return the MIME type for ``ext`` (with leading dot), or an empty string."""
    ctype = (
        _MIME.types_map[True].get(ext)
        or _MIME.types_map[True].get(ext.lower())
        or _MIME.types_map[False].get(ext.lower())
    )
    if not ctype:
        return ""
    if ctype.startswith("text/"):
        ctype += "; charset=utf-8"
    return ctype


def sanitize_name(n: str) -> str:
    """Replace line breaks in a cookie name with dashes."""
    return n.translate(_NAME_SANITIZER)


def sanitize_value(v: str) -> str:
    """Replace line breaks and semicolons in a cookie value with spaces."""
    return v.translate(_VALUE_SANITIZER)


def build_cookie(name: str, value: str, *args: Any) -> str:
    """Build a Set-Cookie value.

    Optional positional arguments: max age in seconds (0 means a session
    cookie, negative deletes it), path, domain, secure flag, http-only flag.
    The two flags are set merely by being present.
    """
    parts = [f"{sanitize_name(name)}={sanitize_value(value)}"]
    if args:
        max_age = args[0]
        if isinstance(max_age, int) and not isinstance(max_age, bool):
            if max_age > 0:
                parts.append(f"Max-Age={max_age}")
            elif max_age < 0:
                parts.append("Max-Age=0")
    for label, text in zip(("Path", "Domain"), args[1:3]):
        if not isinstance(text, str):
            raise TypeError(f"cookie {label.lower()} must be a string")
        parts.append(f"{label}={sanitize_value(text)}")
    if len(args) > 3:
        parts.append("Secure")
    if len(args) > 4:
        parts.append("HttpOnly")
    return "; ".join(parts)


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str = "GET"
    uri: str = "/"
    url: str = ""
    proto: str = "HTTP/1.1"
    host: str = ""
    remote_addr: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    form: dict[str, list[str]] | None = None
    body: bytes = b""
    multipart_form: Any = None

    def __post_init__(self) -> None:
        if not self.url:
            self.url = self.uri
        self.headers = {_canonical_key(k): v for k, v in self.headers.items()}
        if self.form is None:
            self.form = parse_qs(urlsplit(self.url).query, keep_blank_values=True)


def _header(request: Request, key: str) -> str:
    return request.headers.get(_canonical_key(key), "")


def _read_cookie(request: Request, key: str) -> str:
    """Return the value of cookie ``key`` sent with ``request``, or ''."""
    for pair in _header(request, "Cookie").split(";"):
        name, sep, value = pair.strip().partition("=")
        if not sep or name != key:
            continue
        if len(value) > 1 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        return value
    return ""


class Response:
    """An outgoing HTTP response being assembled."""

    def __init__(self) -> None:
        self._headers: dict[str, list[str]] = {}
        self._body = bytearray()
        self.status: int | None = None

    def set_header(self, key: str, value: str) -> None:
        """Replace every value of ``key`` with ``value``."""
        self._headers[_canonical_key(key)] = [value]

    def add_header(self, key: str, value: str) -> None:
        """Append ``value`` to the values of ``key``."""
        self._headers.setdefault(_canonical_key(key), []).append(value)

    def get_header(self, key: str) -> str:
        """Return the first value of ``key``, or ''."""
        values = self._headers.get(_canonical_key(key))
        return values[0] if values else ""

    def get_all(self, key: str) -> list[str]:
        """Return every value of ``key``."""
        return list(self._headers.get(_canonical_key(key), []))

    def write(self, data: bytes) -> int:
        """Append ``data`` to the body, sending status 200 if none was sent."""
        if self.status is None:
            self.status = 200
        self._body.extend(data)
        return len(data)

    def write_header(self, status: int) -> None:
        """Send ``status``; later calls are ignored."""
        if self.status is None:
            self.status = status

    @property
    def body(self) -> bytes:
        """The bytes written so far."""
        return bytes(self._body)


class SessionStore(Protocol):
    def get(self, key: Any) -> Any: ...


class Input:
    """Read access to the request of a :class:`Context`."""

    def __init__(self, request: Request) -> None:
        self._req = request
        self.cru_session: SessionStore | None = None
        self.param: dict[str, str] = {}
        self.request_body: bytes = b""

    def protocol(self) -> str:
        return self._req.proto

    def uri(self) -> str:
        return self._req.uri

    def url(self) -> str:
        return self._req.url

    def site(self) -> str:
        return self.scheme() + "://" + self.domain()

    def scheme(self) -> str:
        return urlsplit(self._req.url).scheme

    def domain(self) -> str:
        return self.host()

    def host(self) -> str:
        """Request host without port, or 'localhost' when the request names none."""
        if self._req.host:
            return self._req.host.split(":")[0]
        return "localhost"

    def method(self) -> str:
        return self._req.method

    def is_method(self, method: str) -> bool:
        return self.method() == method

    def is_ajax(self) -> bool:
        return self.header("HTTP_X_REQUESTED_WITH") == "XMLHttpRequest"

    def is_secure(self) -> bool:
        return self.scheme() == "https"

    def is_upload(self) -> bool:
        return self._req.multipart_form is not None

    def ip(self) -> str:
        """First forwarded address, else the remote address without port."""
        ips = self.proxy()
        if ips and ips[0]:
            return ips[0]
        return self._req.remote_addr.split(":")[0]

    def proxy(self) -> list[str]:
        ips = self.header("HTTP_X_FORWARDED_FOR")
        return ips.split(",") if ips else []

    def refer(self) -> str:
        return self.header("HTTP_REFERER")

    def sub_domains(self) -> str:
        """The last two labels of the host name."""
        parts = self.host().split(".")
        if len(parts) < 2:
            raise ValueError(f"host {self.host()!r} has no sub domains")
        return ".".join(parts[-2:])

    def port(self) -> int:
        parts = self._req.host.split(":")
        if len(parts) == 2:
            try:
                return int(parts[1])
            except ValueError:
                return 0
        return 80

    def user_agent(self) -> str:
        return self.header("HTTP_USER_AGENT")

    def params(self, key: str) -> str:
        return self.param.get(key, "")

    def query(self, key: str) -> str:
        values = (self._req.form or {}).get(key)
        return values[0] if values else ""

    def header(self, key: str) -> str:
        return _header(self._req, key)

    def cookie(self, key: str) -> str:
        return _read_cookie(self._req, key)

    def session(self, key: Any) -> Any:
        if self.cru_session is None:
            raise RuntimeError("no session is attached to the request")
        return self.cru_session.get(key)

    def body(self) -> bytes:
        return bytes(self._req.body)


class Output:
    """Write access to the response of a :class:`Context`."""

    def __init__(self, res: Response, context: Context | None = None) -> None:
        self._res = res
        self.context = context
        self.status = 0
        self.enable_gzip = False

    def header(self, key: str, val: str) -> None:
        self._res.set_header(key, val)

    def _accept_encoding(self) -> str:
        return self.context.input.header("Accept-Encoding") if self.context else ""

    def body(self, content: bytes) -> None:
        """Write ``content``, compressed when gzip is enabled and accepted."""
        accept = self._accept_encoding()
        if self.enable_gzip and accept:
            for encoding in (part.strip() for part in accept.split(",")):
                if encoding == "gzip":
                    self.header("Content-Encoding", "gzip")
                    content = gzip.compress(content, compresslevel=1, mtime=0)
                    break
                if encoding == "deflate":
                    self.header("Content-Encoding", "deflate")
                    compressor = zlib.compressobj(1, zlib.DEFLATED, -15)
                    content = compressor.compress(content) + compressor.flush()
                    break
        else:
            self.header("Content-Length", str(len(content)))
        self._res.write(content)

    def cookie(self, name: str, value: str, *args: Any) -> None:
        self._res.add_header("Set-Cookie", build_cookie(name, value, *args))

    def json(self, data: Any) -> None:
        self.header("Content-Type", "application/json;charset=UTF-8")
        self.body(_marshal_json(data))

    def jsonp(self, data: Any) -> None:
        self.header("Content-Type", "application/javascript;charset=UTF-8")
        content = _marshal_json(data)
        callback = self.context.input.query("callback") if self.context else ""
        if not callback:
            raise ValueError('"callback" parameter required')
        self.body(callback.encode() + b"(" + content + b");\r\n")

    def xml(self, data: str) -> None:
        if not isinstance(data, str):
            raise TypeError("xml output accepts a string")
        self.header("Content-Type", "application/xml;charset=UTF-8")
        self.body(f"<string>{data.translate(_XML_ESCAPES)}</string>".encode())

    def download(self, file: str) -> None:
        """Send ``file`` as an attachment."""
        self.header("Content-Description", "File Transfer")
        self.header("Content-Type", "application/octet-stream")
        self.header("Content-Disposition", "attachment; filename=" + os.path.basename(file))
        self.header("Content-Transfer-Encoding", "binary")
        self.header("Expires", "0")
        self.header("Cache-Control", "must-revalidate")
        self.header("Pragma", "public")
        if not os.path.isfile(file):
            self.header("Content-Type", "text/plain; charset=utf-8")
            self.header("X-Content-Type-Options", "nosniff")
            self._res.write_header(404)
            self._res.write(b"404 page not found\n")
            return
        with open(file, "rb") as fh:
            content = fh.read()
        self.header("Last-Modified", email.utils.formatdate(os.path.getmtime(file), usegmt=True))
        self.header("Content-Length", str(len(content)))
        self._res.write_header(200)
        method = self.context.request.method if self.context else "GET"
        if method != "HEAD":
            self._res.write(content)

    def content_type(self, ext: str) -> None:
        if not ext.startswith("."):
            ext = "." + ext
        ctype = _type_by_extension(ext)
        if ctype:
            self.header("Content-Type", ctype)

    def set_status(self, status: int) -> None:
        self._res.write_header(status)
        self.status = status

    def is_cachable(self) -> bool:
        return 200 <= self.status < 300 or self.status == 304

    def is_empty(self) -> bool:
        return self.status in (201, 204, 304)

    def is_ok(self) -> bool:
        return self.status == 200

    def is_successful(self) -> bool:
        return 200 <= self.status < 300

    def is_redirect(self) -> bool:
        return self.status in (301, 302, 303, 307)

    def is_forbidden(self) -> bool:
        return self.status == 403

    def is_not_found(self) -> bool:
        return self.status == 404

    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    def is_server_error(self) -> bool:
        return 500 <= self.status < 600


def _marshal_json(data: Any) -> bytes:
    text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    return text.translate(_JSON_ESCAPES).encode("utf-8")


class Context:
    """A request together with the response being built for it."""

    def __init__(self, request: Request, response: Response | None = None) -> None:
        self.request = request
        self.response = response if response is not None else Response()
        self.input = Input(request)
        self.output = Output(self.response, self)

    def redirect(self, status: int, localurl: str) -> None:
        self.output.header("Location", localurl)
        self.output.set_status(status)

    def write_string(self, content: str) -> None:
        self.output.body(content.encode("utf-8"))

    def get_cookie(self, key: str) -> str:
        return self.input.cookie(key)

    def set_cookie(self, name: str, value: str, *args: Any) -> None:
        self.output.cookie(name, value, *args)