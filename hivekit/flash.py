"""One-shot messages carried to the next request in a cookie."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote_plus, unquote_plus

from hivekit.webcontext import WebContext

FLASH_COOKIE = "HIVEKIT_FLASH"


@dataclass
class FlashData:
    """Messages keyed by kind: notice, warning or error."""

    data: dict[str, str] = field(default_factory=dict)

    def _set(self, kind: str, msg: str, args: tuple[Any, ...]) -> None:
        self.data[kind] = msg % args if args else msg

    def notice(self, msg: str, *args: Any) -> None:
        self._set("notice", msg, args)

    def warning(self, msg: str, *args: Any) -> None:
        self._set("warning", msg, args)

    def error(self, msg: str, *args: Any) -> None:
        self._set("error", msg, args)

    def store(self, data: dict[str, Any], ctx: WebContext) -> None:
        """Expose the messages in ``data`` and save them in the flash cookie."""
        data["flash"] = self.data
        value = "".join(f"\x00{key}:{val}\x00" for key, val in self.data.items())
        ctx.set_cookie(FLASH_COOKIE, quote_plus(value), 0, "/")


def _has_cookie(ctx: WebContext, name: str) -> bool:
    for pair in ctx.request.headers.get("Cookie", "").split(";"):
        key, sep, _ = pair.strip().partition("=")
        if sep and key == name:
            return True
    return False


def read_from_request(data: dict[str, Any], ctx: WebContext) -> FlashData:
    """Load the messages sent with the request and delete the flash cookie."""
    flash = FlashData()
    if _has_cookie(ctx, FLASH_COOKIE):
        for entry in unquote_plus(ctx.get_cookie(FLASH_COOKIE)).split("\x00"):
            if not entry:
                continue
            parts = entry.split(":")
            if len(parts) == 2:
                flash.data[parts[0]] = parts[1]
        ctx.set_cookie(FLASH_COOKIE, "", -1, "/")
    data["flash"] = flash.data
    return flash