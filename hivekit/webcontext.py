"""A minimal request context writing straight to a response."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hivekit.context import Request, Response, _read_cookie, _type_by_extension, build_cookie


@dataclass
class WebContext:
    """A request, its response, its raw body and its route parameters."""

    response_writer: Response = field(default_factory=Response)
    request: Request = field(default_factory=Request)
    request_body: bytes = b""
    params: dict[str, str] = field(default_factory=dict)

    def write_string(self, content: str) -> None:
        self.response_writer.write(content.encode("utf-8"))

    def abort(self, status: int, body: str) -> None:
        self.response_writer.write_header(status)
        self.response_writer.write(body.encode("utf-8"))

    def redirect(self, status: int, url: str) -> None:
        self.response_writer.set_header("Location", url)
        self.response_writer.write_header(status)

    def not_modified(self) -> None:
        self.response_writer.write_header(304)

    def not_found(self, message: str) -> None:
        self.response_writer.write_header(404)
        self.response_writer.write(message.encode("utf-8"))

    def content_type(self, ext: str) -> None:
        """Set Content-Type from a file extension such as ``json``."""
        if not ext.startswith("."):
            ext = "." + ext
        ctype = _type_by_extension(ext)
        if ctype:
            self.response_writer.set_header("Content-Type", ctype)

    def set_header(self, hdr: str, val: str, unique: bool) -> None:
        if unique:
            self.response_writer.set_header(hdr, val)
        else:
            self.response_writer.add_header(hdr, val)

    def set_cookie(self, name: str, value: str, *args: Any) -> None:
        """Add a cookie; see :func:`hivekit.context.build_cookie` for ``args``."""
        self.set_header("Set-Cookie", build_cookie(name, value, *args), False)

    def get_cookie(self, key: str) -> str:
        return _read_cookie(self.request, key)